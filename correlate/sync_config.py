"""
Configuration for the correlation heuristic.

The configuration is a frozen value passed explicitly to the correlators; use
``dataclasses.replace`` to derive a variant.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, Pattern, Tuple

logger = logging.getLogger(__name__)

# Noise in text extracted from a rendered page: brackets, braces, pipes,
# backslashes, control characters and hyphenated line wraps.
RENDERED_FLUSH_PATTERN = re.compile(
    r"-\n+|[][(){}|\\]|[\x00-\x08\x0e-\x1f\x7f]"
)

# Noise in markup source: reference-like commands with their argument,
# comments, grouping and math-mode characters and the command backslash.
SOURCE_FLUSH_PATTERN = re.compile(
    r"\\(?:begin|end|label|(?:eq|auto|page|c)?ref|cite[pt]?)\s*\{[^}]*\}"
    r"|(?<!\\)%[^\n]*"
    r"|[][(){}$\\&^_~|]"
)

DEFAULT_TRANSLATIONS: Dict[str, Tuple[str, ...]] = {
    "∫": ("int",),
    "∬": ("iint",),
    "∮": ("oint",),
    "∑": ("sum",),
    "∏": ("prod",),
    "∐": ("coprod",),
    "×": ("times",),
    "÷": ("div",),
    "±": ("pm",),
    "∓": ("mp",),
    "·": ("cdot",),
    "⋅": ("cdot",),
    "∘": ("circ",),
    "≤": ("leq", "le"),
    "≥": ("geq", "ge"),
    "≠": ("neq", "ne"),
    "≈": ("approx",),
    "≡": ("equiv",),
    "∼": ("sim",),
    "∝": ("propto",),
    "→": ("to", "rightarrow"),
    "←": ("leftarrow", "gets"),
    "⇒": ("Rightarrow", "implies"),
    "⇔": ("Leftrightarrow", "iff"),
    "↦": ("mapsto",),
    "∞": ("infty",),
    "∂": ("partial",),
    "∇": ("nabla",),
    "∈": ("in",),
    "∉": ("notin",),
    "⊂": ("subset",),
    "⊆": ("subseteq",),
    "∪": ("cup",),
    "∩": ("cap",),
    "∅": ("emptyset", "varnothing"),
    "∀": ("forall",),
    "∃": ("exists",),
    "¬": ("neg", "lnot"),
    "∧": ("wedge", "land"),
    "∨": ("vee", "lor"),
    "…": ("ldots", "dots"),
    "⋯": ("cdots",),
    "√": ("sqrt",),
    "α": ("alpha",),
    "β": ("beta",),
    "γ": ("gamma",),
    "δ": ("delta",),
    "ε": ("epsilon", "varepsilon"),
    "ϵ": ("epsilon",),
    "ζ": ("zeta",),
    "η": ("eta",),
    "θ": ("theta", "vartheta"),
    "ι": ("iota",),
    "κ": ("kappa",),
    "λ": ("lambda",),
    "μ": ("mu",),
    "ν": ("nu",),
    "ξ": ("xi",),
    "π": ("pi", "varpi"),
    "ρ": ("rho", "varrho"),
    "σ": ("sigma", "varsigma"),
    "τ": ("tau",),
    "φ": ("phi", "varphi"),
    "ϕ": ("phi",),
    "χ": ("chi",),
    "ψ": ("psi",),
    "ω": ("omega",),
    "Γ": ("Gamma",),
    "Δ": ("Delta",),
    "Θ": ("Theta",),
    "Λ": ("Lambda",),
    "Ξ": ("Xi",),
    "Π": ("Pi",),
    "Σ": ("Sigma",),
    "Φ": ("Phi",),
    "Ψ": ("Psi",),
    "Ω": ("Omega",),
}

DEFAULT_ENCLOSING_CONSTRUCTS: Tuple[str, ...] = (
    "equation",
    "equation*",
    "align",
    "align*",
    "gather",
    "gather*",
    "multline",
    "multline*",
    "eqnarray",
    "eqnarray*",
    "displaymath",
    "math",
    "figure",
    "table",
)


@dataclass(frozen=True)
class CorrelationConfig:
    """Read-only settings shared by the backward and forward correlators."""

    backward_enabled: bool = True
    forward_enabled: bool = True
    translations: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_TRANSLATIONS)
    )
    rendered_flush: Pattern = RENDERED_FLUSH_PATTERN
    source_flush: Pattern = SOURCE_FLUSH_PATTERN
    context_budget: int = 64
    enclosing_constructs: Tuple[str, ...] = DEFAULT_ENCLOSING_CONSTRUCTS
    rect_merge_tolerance: float = 2.0
    strict: bool = False

    def __post_init__(self):
        if self.context_budget <= 0:
            raise ValueError(
                f"context_budget must be positive, got {self.context_budget}"
            )
        if self.rect_merge_tolerance < 0:
            raise ValueError(
                f"rect_merge_tolerance must not be negative, got {self.rect_merge_tolerance}"
            )


def load_translation_table(file_path: str) -> Dict[str, Tuple[str, ...]]:
    """
    Load a glyph translation table from a text file.

    Each line holds a single glyph followed by one or more whitespace-separated
    spellings. Empty lines and lines starting with ``#`` are skipped.

    Args:
        file_path: Path to the translation file

    Returns:
        Mapping of glyph to its spellings; empty if the file cannot be read
    """
    table: Dict[str, Tuple[str, ...]] = {}
    try:
        with open(os.path.abspath(file_path), "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                fields = line.split()
                if not fields or fields[0].startswith("#"):
                    continue
                glyph, spellings = fields[0], tuple(fields[1:])
                if len(glyph) != 1 or not spellings:
                    logger.warning(
                        "Ignoring malformed translation at %s:%s: %r",
                        file_path,
                        lineno,
                        line.rstrip("\n"),
                    )
                    continue
                table[glyph] = spellings

        logger.debug("Loaded %s translations from %s", len(table), file_path)

    except OSError as e:
        logger.warning("Failed to load translations from %s: %s", file_path, e)

    return table

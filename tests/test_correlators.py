"""
End-to-end tests for backward and forward search over in-memory documents.
"""

import dataclasses
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import correlate.heuristic.backward as backward_module
from correlate.heuristic import (
    BackwardCorrelator,
    CorrelationObserver,
    ForwardCorrelator,
    Glyph,
    Rect,
)
from correlate.sync_config import CorrelationConfig
from correlate.sync_correlator import build_correlators
from correlate.sync_document import OracleRecord, PageLayout, RecordOracle, SourceDocument
from correlate.sync_errors import AlignmentInvariantError, NoOracleMatch

GLYPH_WIDTH = 10.0
GLYPH_HEIGHT = 12.0

RENDERED_LINE = "The integral ∫ f(x) dx"
SOURCE_TEXT = "Some text\nThe $\\int f(x)\\,dx$\n"


def glyph_row(text, y, x0=0.0):
    return [
        Glyph(char, Rect(x0 + i * GLYPH_WIDTH, y, x0 + (i + 1) * GLYPH_WIDTH, y + GLYPH_HEIGHT))
        for i, char in enumerate(text)
    ]


def click(char_index, y=0.0):
    """Centre of the glyph at ``char_index`` in a row laid out by glyph_row."""
    return (char_index + 0.5) * GLYPH_WIDTH, y + GLYPH_HEIGHT / 2


def ligature_row():
    """Glyphs of "find me" where the first glyph is the "fi" ligature."""
    chars = ["fi", "n", "d", " ", "m", "e"]
    return [Glyph(char, Rect(i * 10.0, 0, i * 10.0 + 9, 10)) for i, char in enumerate(chars)]


class RecordingObserver(CorrelationObserver):
    def __init__(self):
        self.calls = []

    def before_alignment(self, direction, query, target):
        self.calls.append(("before_alignment", direction))

    def after_alignment(self, direction, alignment):
        self.calls.append(("after_alignment", direction))

    def after_resolution(self, direction, resolution):
        self.calls.append(("after_resolution", direction))


def make_setup(source_text=SOURCE_TEXT, rows=None, records=None, config=None, observer=None):
    source = SourceDocument(source_text)
    layout = PageLayout({1: rows if rows is not None else glyph_row(RENDERED_LINE, 0)})
    oracle = RecordOracle(
        records
        if records is not None
        else [OracleRecord(1, Rect(0, 0, 300, GLYPH_HEIGHT), line=2, column=0)]
    )
    return build_correlators(oracle, layout, source, config, observer)


class TestBackward:
    def test_glyph_resolves_to_macro(self):
        backward, _ = make_setup()
        x, y = click(RENDERED_LINE.index("∫"))
        result = backward.correlate(1, x, y)

        assert result.precise
        assert result.offset == SOURCE_TEXT.index("int")
        assert (result.line, result.column) == (2, len("The $\\"))
        assert result.reason is None

    def test_click_inside_word_keeps_character_offset(self):
        backward, _ = make_setup()
        x, y = click(RENDERED_LINE.index("dx") + 1)
        result = backward.correlate(1, x, y)
        assert result.offset == SOURCE_TEXT.index("dx") + 1

    def test_unmatched_word_snaps_to_next_match(self):
        backward, _ = make_setup()
        x, y = click(RENDERED_LINE.index("integral") + 4)
        result = backward.correlate(1, x, y)
        assert result.offset == SOURCE_TEXT.index("int")

    def test_disabled_heuristic_returns_oracle_position(self):
        config = dataclasses.replace(CorrelationConfig(), backward_enabled=False)
        backward, _ = make_setup(config=config)
        result = backward.correlate(1, *click(0))
        assert not result.precise
        assert (result.line, result.column) == (2, 0)
        assert result.reason == "disabled"

    def test_no_oracle_match(self):
        backward, _ = make_setup()
        with pytest.raises(NoOracleMatch):
            backward.correlate(7, 0, 0)

    def test_page_without_text_falls_back(self):
        records = [OracleRecord(2, Rect(0, 0, 300, GLYPH_HEIGHT), line=2, column=4)]
        backward, _ = make_setup(records=records)
        result = backward.correlate(2, 5, 5)
        assert result.reason == "EmptyContext"
        assert (result.line, result.column) == (2, 4)

    def test_unrelated_text_falls_back(self):
        backward, _ = make_setup(rows=glyph_row("Lorem ipsum", 0))
        result = backward.correlate(1, *click(2))
        assert result.reason == "ResolutionGapExhausted"
        assert result.offset is None

    def test_context_budget_limits_rendered_text(self):
        line = "one two three four five six"
        source = "intro\none two three four five six\n"
        config = dataclasses.replace(CorrelationConfig(), context_budget=4)
        observer = RecordingObserver()
        backward, _ = make_setup(
            source_text=source, rows=glyph_row(line, 0), config=config, observer=observer
        )
        query = backward.rendered_context(1, *click(line.index("four")))
        assert [token.text for token in query.tokens] == ["ree", "four"]
        assert query.marked_token.text == "four"

        result = backward.correlate(1, *click(line.index("four")))
        assert result.offset == source.index("four")

    def test_context_budget_counts_ligature_characters(self):
        config = dataclasses.replace(CorrelationConfig(), context_budget=4)
        records = [OracleRecord(1, Rect(0, 0, 60, 10), line=1)]
        backward, _ = make_setup(
            source_text="find me\n", rows=ligature_row(), records=records, config=config
        )
        query = backward.rendered_context(1, 45, 5)
        assert [token.text for token in query.tokens] == ["ind", "me"]
        assert query.marked_token.text == "me"
        assert query.char_offset == 0

    def test_equation_region_is_used(self):
        source = (
            "Text before.\n"
            "\\begin{equation}\n"
            "  a + b = c\n"
            "\\end{equation}\n"
        )
        rendered = "a + b = c"
        records = [OracleRecord(1, Rect(0, 0, 300, GLYPH_HEIGHT), line=2, column=0)]
        backward, _ = make_setup(source_text=source, rows=glyph_row(rendered, 0), records=records)
        result = backward.correlate(1, *click(rendered.index("c")))
        assert result.offset == source.index("c\n")
        assert result.line == 3

    def test_equation_without_finder_falls_back(self):
        source = "Text before.\n\\begin{equation}\n  a + b = c\n\\end{equation}\n"
        rendered = "a + b = c"
        layout = PageLayout({1: glyph_row(rendered, 0)})
        oracle = RecordOracle([OracleRecord(1, Rect(0, 0, 300, GLYPH_HEIGHT), line=2)])
        backward = BackwardCorrelator(oracle, layout, SourceDocument(source))
        result = backward.correlate(1, *click(0))
        assert result.reason == "EmptyContext"

    def test_observer_hooks_are_called_in_order(self):
        observer = RecordingObserver()
        backward, _ = make_setup(observer=observer)
        backward.correlate(1, *click(0))
        assert observer.calls == [
            ("before_alignment", "backward"),
            ("after_alignment", "backward"),
            ("after_resolution", "backward"),
        ]

    def test_invariant_violation_degrades_unless_strict(self, monkeypatch):
        def broken_resolve(marked_index, char_offset, alignment):
            raise AlignmentInvariantError("broken")

        monkeypatch.setattr(backward_module, "resolve", broken_resolve)

        backward, _ = make_setup()
        result = backward.correlate(1, *click(0))
        assert result.reason == "AlignmentInvariantError"
        assert (result.line, result.column) == (2, 0)

        strict = dataclasses.replace(CorrelationConfig(), strict=True)
        backward, _ = make_setup(config=strict)
        with pytest.raises(AlignmentInvariantError):
            backward.correlate(1, *click(0))


class TestForward:
    def test_macro_resolves_to_glyph(self):
        _, forward = make_setup()
        column = len("The $\\")
        result = forward.correlate(2, column)

        glyph = RENDERED_LINE.index("∫")
        assert result.precise
        assert result.page == 1
        assert result.glyph_index == glyph
        assert result.rect == Rect(glyph * GLYPH_WIDTH, 0, (glyph + 1) * GLYPH_WIDTH, GLYPH_HEIGHT)

    def test_word_rect_covers_whole_word(self):
        _, forward = make_setup()
        column = len("The $\\int f(x)\\,")
        result = forward.correlate(2, column + 1)

        start = RENDERED_LINE.index("dx")
        assert result.glyph_index == start + 1
        assert result.rect == Rect(start * GLYPH_WIDTH, 0, (start + 2) * GLYPH_WIDTH, GLYPH_HEIGHT)

    def test_ligature_word_rect_stops_at_last_glyph(self):
        records = [OracleRecord(1, Rect(0, 0, 60, 10), line=1)]
        _, forward = make_setup(source_text="find me\n", rows=ligature_row(), records=records)
        result = forward.correlate(1, 0)
        assert result.glyph_index == 0
        assert result.rect == Rect(0, 0, 29, 10)

        result = forward.correlate(1, 2)
        assert result.glyph_index == 1
        assert result.rect == Rect(0, 0, 29, 10)

        result = forward.correlate(1, 5)
        assert result.glyph_index == 4
        assert result.rect == Rect(40, 0, 59, 10)

    def test_close_rectangles_are_merged(self):
        rows = glyph_row("The integral", 0) + glyph_row("∫ f(x) dx", GLYPH_HEIGHT + 1)
        records = [
            OracleRecord(1, Rect(0, 0, 300, GLYPH_HEIGHT), line=2),
            OracleRecord(1, Rect(0, GLYPH_HEIGHT + 1, 300, 2 * GLYPH_HEIGHT + 1), line=2),
        ]
        _, forward = make_setup(rows=rows, records=records)
        target = forward.rendered_context(1, [Rect(0, 0, 300, 2 * GLYPH_HEIGHT + 1)])
        assert [token.text for token in target.tokens] == ["The", "integral", "∫", "f", "x", "dx"]

        result = forward.correlate(2, len("The $\\int f(x)\\,"))
        dx = len("The integral") + "∫ f(x) dx".index("dx")
        assert result.glyph_index == dx
        assert result.rect.y0 == GLYPH_HEIGHT + 1

    def test_separate_rectangles_keep_words_apart(self):
        rows = glyph_row("ab", 0) + glyph_row("cd", 40)
        _, forward = make_setup(rows=rows)
        target = forward.rendered_context(
            1, [Rect(0, 0, 100, GLYPH_HEIGHT), Rect(0, 40, 100, 40 + GLYPH_HEIGHT)]
        )
        assert [token.text for token in target.tokens] == ["ab", "cd"]
        assert [token.offset for token in target.tokens] == [0, 2]

    def test_disabled_heuristic_returns_page_only(self):
        config = dataclasses.replace(CorrelationConfig(), forward_enabled=False)
        _, forward = make_setup(config=config)
        result = forward.correlate(2, 6)
        assert result.page == 1
        assert result.rect is None
        assert result.reason == "disabled"

    def test_no_oracle_match(self):
        _, forward = make_setup()
        with pytest.raises(NoOracleMatch):
            forward.correlate(1)

    def test_unrelated_text_falls_back_to_page(self):
        _, forward = make_setup(rows=glyph_row("Lorem ipsum", 0))
        result = forward.correlate(2, 6)
        assert result.page == 1
        assert result.rect is None
        assert result.reason == "ResolutionGapExhausted"

    def test_standalone_correlator(self):
        source = SourceDocument(SOURCE_TEXT)
        layout = PageLayout({1: glyph_row(RENDERED_LINE, 0)})
        oracle = RecordOracle([OracleRecord(1, Rect(0, 0, 300, GLYPH_HEIGHT), line=2)])
        forward = ForwardCorrelator(oracle, layout, source)
        result = forward.correlate(2, 0)
        assert result.glyph_index == 0
        assert result.rect == Rect(0, 0, 3 * GLYPH_WIDTH, GLYPH_HEIGHT)

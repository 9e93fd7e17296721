#!/usr/bin/env python3

import argparse
import dataclasses
import io
import json
import logging
import sys
import time

from lark import __version__ as lark_version

from correlate.heuristic import LoggingObserver
from correlate.sync_config import CorrelationConfig, load_translation_table
from correlate.sync_correlator import build_correlators
from correlate.sync_document import SourceDocument, load_layout, load_records
from correlate.sync_errors import CorrelationError, NoOracleMatch

__version__ = "0.1.0"

# Ensure UTF-8 encoding for stdout
sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")


def build_config(args) -> CorrelationConfig:
    """Derive the correlation settings from command line options."""
    config = CorrelationConfig(strict=args.strict)
    if args.translations:
        translations = dict(config.translations)
        translations.update(load_translation_table(args.translations))
        config = dataclasses.replace(config, translations=translations)
    if args.context_budget is not None:
        config = dataclasses.replace(config, context_budget=args.context_budget)
    if args.no_heuristic:
        config = dataclasses.replace(
            config, backward_enabled=False, forward_enabled=False
        )
    return config


def result_to_dict(result) -> dict:
    item = dataclasses.asdict(result)
    item["precise"] = result.precise
    return item


def main():
    parser = argparse.ArgumentParser(
        description="Correlate positions between a rendered document and its source."
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument(
        "--pretty-print",
        action="store_true",
        help="Emit the result as pretty-printed JSON",
    )
    parser.add_argument(
        "--no-heuristic",
        action="store_true",
        help="Report the coarse locator position without word-level matching",
    )
    parser.add_argument(
        "--context-budget",
        type=int,
        default=None,
        help="Characters of rendered text taken on each side of a clicked point",
    )
    parser.add_argument(
        "--translations",
        type=str,
        default=None,
        help="File of extra glyph translations (glyph followed by spellings per line)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on internal alignment inconsistencies instead of falling back",
    )
    parser.add_argument(
        "--show-timing",
        action="store_true",
        help="Show detailed timing information",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write output to this file (UTF-8, LF line endings). If omitted, output goes to stdout.",
    )

    subparsers = parser.add_subparsers(dest="command")
    for name, help_text in (
        ("backward", "Find the source position of a point on a page"),
        ("forward", "Find the rendered word of a source position"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("source_file", help="Path to the markup source file")
        sub.add_argument("layout_file", help="Path to the JSON page layout dump")
        sub.add_argument("records_file", help="Path to the JSON coarse locator records")
        if name == "backward":
            sub.add_argument("--page", type=int, required=True, help="Page number")
            sub.add_argument("-x", type=float, required=True, help="Horizontal position")
            sub.add_argument("-y", type=float, required=True, help="Vertical position")
        else:
            sub.add_argument("--line", type=int, required=True, help="1-based source line")
            sub.add_argument("--column", type=int, default=0, help="0-based source column")

    args = parser.parse_args()

    if args.version:
        print("Version information:")
        print(f"  lark: {lark_version}")
        print(f"  synccorr: {__version__}")
        sys.exit(0)

    if not args.command:
        parser.error("a command is required: backward or forward")

    overall_start_time = time.time()

    logging.basicConfig(
        level=getattr(logging, args.log_level), format="[%(levelname)s] %(message)s"
    )
    logger = logging.getLogger("synccorr")

    load_start = time.time()
    with open(args.source_file, "r", encoding="utf-8") as f:
        source = SourceDocument(f.read())
    layout = load_layout(args.layout_file)
    oracle = load_records(args.records_file)
    config = build_config(args)
    load_time = time.time() - load_start

    if args.show_timing:
        sys.stderr.write(f"File loading time: {load_time:.3f}s\n")

    observer = LoggingObserver() if logger.isEnabledFor(logging.DEBUG) else None
    backward, forward = build_correlators(oracle, layout, source, config, observer)

    correlate_start = time.time()
    try:
        if args.command == "backward":
            logger.info("Backward search from page %s (%s, %s)", args.page, args.x, args.y)
            result = backward.correlate(args.page, args.x, args.y)
        else:
            logger.info("Forward search from line %s column %s", args.line, args.column)
            result = forward.correlate(args.line, args.column)
    except NoOracleMatch as e:
        sys.stderr.write(f"No destination: {e}\n")
        sys.exit(1)
    except CorrelationError as e:
        sys.stderr.write(f"Correlation failed: {e}\n")
        sys.exit(2)
    correlate_time = time.time() - correlate_start

    if args.show_timing:
        sys.stderr.write(f"Correlation time: {correlate_time:.3f}s\n")
        overall_time = time.time() - overall_start_time
        sys.stderr.write(f"Overall processing time: {overall_time:.3f} seconds\n")

    output = result_to_dict(result)

    output_stream = None
    if args.output:
        output_stream = open(args.output, "w", encoding="utf-8", newline="\n")
    else:
        output_stream = sys.stdout

    try:
        if args.pretty_print:
            json.dump(output, output_stream, indent=2, ensure_ascii=False)
        else:
            output_stream.write(json.dumps(output, ensure_ascii=False))
        output_stream.write("\n")
    finally:
        if args.output and output_stream is not sys.stdout:
            output_stream.close()


if __name__ == "__main__":
    main()

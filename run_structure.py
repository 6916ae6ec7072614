#!/usr/bin/env python3
"""
Command-line script to run the structure analyzer on HTML files.

Prints a text report per file, or one JSON document for the whole batch.
A file that fails is reported and the batch continues.

Usage:
    python run_structure.py page.html
    python run_structure.py pages/*.html --format json -o results.json
    python run_structure.py page.html --max-blocks 3 --min-score 0.6
    python run_structure.py page.html --options tuning.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Load .env file automatically
from dotenv import load_dotenv
load_dotenv()

from html_structure.exceptions import StructureAnalysisError
from html_structure.logger import setup_logger_from_env
from html_structure.main import StructureAnalyzer, merge_options
from html_structure.report import format_text_report, result_to_dict


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Detect main-content blocks in HTML from DOM depth"
    )
    parser.add_argument(
        "files",
        nargs="+",
        help="HTML files to analyze"
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Output file (default: print to stdout)"
    )
    parser.add_argument(
        "--max-blocks",
        type=int,
        help="Maximum number of blocks per document"
    )
    parser.add_argument(
        "--min-score",
        type=float,
        help="Minimum block score (0-1)"
    )
    parser.add_argument(
        "--min-size",
        type=int,
        help="Minimum block size in words"
    )
    parser.add_argument(
        "--options",
        help="JSON file with analysis option overrides"
    )
    parser.add_argument(
        "--include-words",
        action="store_true",
        help="Include word lists in JSON output"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )
    return parser


def collect_overrides(args: argparse.Namespace) -> dict:
    """Options file first, then the individual flags on top of it."""
    overrides = {}
    if args.options:
        overrides.update(json.loads(Path(args.options).read_text(encoding="utf-8")))
    if args.max_blocks is not None:
        overrides["max_blocks"] = args.max_blocks
    if args.min_score is not None:
        overrides["min_block_score"] = args.min_score
    if args.min_size is not None:
        overrides["min_block_size"] = args.min_size
    return overrides


def analyze_files(analyzer: StructureAnalyzer, files: list[str], include_words: bool = False) -> list[dict]:
    """Analyze each file; failures become error entries instead of stopping the batch."""
    results = []

    for file_path in files:
        file_path = Path(file_path)
        print(f"Analyzing: {file_path.name}", file=sys.stderr)

        try:
            result = analyzer.analyze_file(file_path)
            results.append({
                "file": str(file_path),
                "status": "success",
                "result": result,
                "data": result_to_dict(result, include_words=include_words)
            })
            print(f"  ✓ {len(result.blocks)} blocks", file=sys.stderr)

        except StructureAnalysisError as e:
            results.append({
                "file": str(file_path),
                "status": "error",
                "error": e.message,
                "details": e.to_response()
            })
            print(f"  ✗ Error: {e.message}", file=sys.stderr)

        except OSError as e:
            results.append({
                "file": str(file_path),
                "status": "error",
                "error": str(e)
            })
            print(f"  ✗ Error: {e}", file=sys.stderr)

    return results


def render(results: list[dict], output_format: str) -> str:
    if output_format == "json":
        payload = [{k: v for k, v in entry.items() if k != "result"} for entry in results]
        return json.dumps(payload, indent=2, ensure_ascii=False)

    sections = []
    for entry in results:
        header = f"##### {entry['file']}"
        if entry["status"] == "success":
            sections.append(f"{header}\n{format_text_report(entry['result'])}")
        else:
            sections.append(f"{header}\nError: {entry['error']}")
    return "\n\n".join(sections)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Setup logging (env vars from .env, --verbose wins)
    logger = setup_logger_from_env()
    if args.verbose:
        logger.setLevel(logging.DEBUG)
        for handler in logger.handlers:
            handler.setLevel(logging.DEBUG)

    try:
        analyzer = StructureAnalyzer(merge_options(collect_overrides(args)))
    except (StructureAnalysisError, OSError, ValueError) as e:
        print(f"Invalid options: {e}", file=sys.stderr)
        return 2

    results = analyze_files(analyzer, args.files, include_words=args.include_words)
    output = render(results, args.format)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"\nResults saved to: {args.output}", file=sys.stderr)
    else:
        print(output)

    return 0 if all(entry["status"] == "success" for entry in results) else 1


if __name__ == "__main__":
    sys.exit(main())

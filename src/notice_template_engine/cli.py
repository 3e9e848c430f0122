"""Command line entry point.

Usage:
    notice-engine generate <template_docx> <job_json> <output> [--format docx|pdf] [--rules PROFILE.md]
    notice-engine validate <docx>

``generate`` prints the mutation report as JSON; ``validate`` prints the
validation result as JSON. Both exit 1 on failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from .config.settings import settings
from .errors import EngineError
from .jobs import load_job
from .pipeline import OUTPUT_FORMATS, generate_notice
from .rules import DEFAULT_TABLE_RULES, load_rules_profile
from .utils import setup_logging
from .validation import validate_container

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notice-engine",
        description="Fill an auction notice DOCX template from resolved fields and lot records.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Apply a generation job to a template")
    gen.add_argument("template", help="Path to the DOCX template")
    gen.add_argument("job", help="Path to the job JSON")
    gen.add_argument("output", help="Output file path")
    gen.add_argument("--format", choices=sorted(OUTPUT_FORMATS), default="docx")
    gen.add_argument("--rules", help="Markdown rules profile with YAML frontmatter")

    val = sub.add_parser("validate", help="Validate a DOCX container")
    val.add_argument("docx", help="Path to the DOCX file")
    return parser


def _generate(args: argparse.Namespace) -> int:
    if not os.path.isfile(args.template):
        print(f"Error: Template not found: {args.template}", file=sys.stderr)
        return 1

    job = load_job(args.job)
    if args.rules:
        rules = load_rules_profile(args.rules)
    else:
        rules = job.category_rules() or dict(DEFAULT_TABLE_RULES)
    bindings = job.bindings(rules.keys())

    with open(args.template, "rb") as f:
        template = f.read()

    result = generate_notice(
        template,
        substitutions=job.field_substitutions(),
        bindings=bindings,
        rules=rules,
        output_format=args.format,
    )

    output_dir = os.path.dirname(args.output)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    with open(args.output, "wb") as f:
        f.write(result.content)

    report = result.report.to_dict()
    report["output"] = args.output
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def _validate(args: argparse.Namespace) -> int:
    if not os.path.isfile(args.docx):
        print(f"Error: File not found: {args.docx}", file=sys.stderr)
        return 1
    with open(args.docx, "rb") as f:
        result = validate_container(f.read(), body_entry=settings.body_entry)
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0 if result.valid else 1


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code: 0 on success, 1 on failure.
    """
    args = _build_parser().parse_args(argv)
    setup_logging()

    try:
        if args.command == "generate":
            return _generate(args)
        return _validate(args)
    except EngineError as e:
        logger.debug("Generation failed", exc_info=True)
        print(f"Error: {e.user_message()}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

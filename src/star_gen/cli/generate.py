"""CLI for generating STAR stories from a feedback CSV file."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

from star_gen.adapters.completion_client_factory import completion_client_from_env
from star_gen.adapters.observability import configure_runtime_logging
from star_gen.core.feedback_csv import parse_feedback_csv
from star_gen.core.story_format import format_star_stories
from star_gen.core.story_generation import generate_stories
from star_gen.domain.errors import CsvFormatError
from star_gen.domain.models import STORY_CATEGORIES, StoryRequest


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for one generation run."""
    parser = argparse.ArgumentParser(description="Generate STAR stories from feedback CSV.")
    parser.add_argument("csv_path", help="Feedback CSV export to read.")
    parser.add_argument("--category", choices=list(STORY_CATEGORIES), default="top5")
    parser.add_argument("--instructions", default="", help="Extra free-text instructions.")
    parser.add_argument(
        "--provider",
        choices=["azure-openai", "template"],
        default="",
        help="Completion provider (default: STAR_GEN_COMPLETION_PROVIDER or azure-openai).",
    )
    parser.add_argument("--format", choices=["text", "json"], default="text", dest="output_format")
    parser.add_argument("--output", default="", help="Write to this file instead of stdout.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Read CSV, call the configured provider, and print the stories."""
    configure_runtime_logging()
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)

    csv_path = Path(str(parsed.csv_path))
    if not csv_path.exists():
        raise SystemExit(f"CSV file not found: {csv_path}")
    try:
        records = parse_feedback_csv(csv_path.read_text(encoding="utf-8"))
    except CsvFormatError as exc:
        raise SystemExit(f"Could not read CSV: {exc}") from exc
    if not records:
        raise SystemExit(f"No feedback rows in {csv_path}")

    if parsed.provider:
        os.environ["STAR_GEN_COMPLETION_PROVIDER"] = str(parsed.provider)
    try:
        client = completion_client_from_env()
        stories = generate_stories(
            StoryRequest(
                records=records,
                category=str(parsed.category),
                instructions=str(parsed.instructions),
            ),
            client,
        )
    except RuntimeError as exc:
        raise SystemExit(f"Story generation failed: {exc}") from exc

    if parsed.output_format == "json":
        rendered = json.dumps([story.as_dict() for story in stories], indent=2)
    else:
        rendered = format_star_stories(stories)

    output = str(parsed.output).strip()
    if output:
        Path(output).write_text(rendered + "\n", encoding="utf-8")
        print(f"Wrote {len(stories)} stories to {output}")
    else:
        print(rendered)


if __name__ == "__main__":
    main()

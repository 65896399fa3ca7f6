"""CLI entrypoint for serving the star_gen HTTP API."""

from __future__ import annotations

import argparse
import os

import uvicorn

from star_gen.adapters.observability import configure_runtime_logging


def build_arg_parser() -> argparse.ArgumentParser:
    """Create CLI args for the API server process."""
    parser = argparse.ArgumentParser(description="Serve star_gen API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    parser.add_argument(
        "--provider",
        default="",
        choices=["", "azure-openai", "template"],
        help="Completion provider (default: STAR_GEN_COMPLETION_PROVIDER or azure-openai).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI flags and start uvicorn with the app import path."""
    configure_runtime_logging()
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    provider = str(parsed.provider).strip()
    if provider:
        os.environ["STAR_GEN_COMPLETION_PROVIDER"] = provider
    uvicorn.run(
        "star_gen.api.app:app",
        host=str(parsed.host),
        port=int(parsed.port),
        reload=bool(parsed.reload),
    )


if __name__ == "__main__":
    main()

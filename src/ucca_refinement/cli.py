"""Command-line entry point: refine the abstract UCCAs of a JSON document."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import Sequence

from pydantic import ValidationError
import tomllib

from .api import refine
from .config import RefinementSettings
from .errors import DocumentError, GroupOverlapError
from .logging_utils import configure_logging
from .models import dump_hierarchies, load_document


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Refine abstract UCCAs into controller-specific combinations")
    parser.add_argument("input", help="Path to the analysis document (JSON)")
    parser.add_argument("--config", help="Path to TOML settings file")
    parser.add_argument("--output", help="Write hierarchies to this file instead of stdout")
    parser.add_argument("--include-pruned", action="store_true", help="Also emit refinements flagged as equivalent")
    parser.add_argument(
        "--partial-authority",
        action="store_true",
        help="Tolerate performed actions without a declared authority relationship",
    )
    args = parser.parse_args(argv)

    try:
        settings = RefinementSettings.from_toml(args.config) if args.config else RefinementSettings()
    except (OSError, tomllib.TOMLDecodeError, ValidationError) as exc:
        print(f"error: invalid settings: {exc}", file=sys.stderr)
        return 2
    if args.partial_authority:
        settings.engine.include_partial_authority = True
    configure_logging(settings.logging)

    try:
        document = load_document(args.input)
        run = refine(document, settings)
    except (DocumentError, GroupOverlapError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    include_pruned = args.include_pruned or not settings.engine.prune_equivalent
    payload = json.dumps(
        {
            "hierarchies": dump_hierarchies(run.hierarchies, include_pruned=include_pruned),
            "metrics": run.metrics.metrics(),
        },
        indent=2,
    )
    if args.output:
        Path(args.output).write_text(payload + "\n")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Точка входа: пакетная конвертация ASCII PPM в PNG."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ppm2png.controllers.batch_controller import BatchController
from ppm2png.models.pixmap_model import BatchConfig


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ppm2png",
        description="Convert every ASCII PPM (P3) file in a directory to PNG.",
    )
    parser.add_argument("-i", dest="input_dir", type=Path, help="Input directory")
    parser.add_argument("-o", dest="output_dir", type=Path, help="Output directory")
    parser.add_argument("-p", dest="parallel", action="store_true", help="Run in parallel")
    parser.add_argument(
        "-w", dest="workers", type=_positive_int, default=None,
        help="Thread pool size in parallel mode (default: one per file)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Разбирает аргументы, запускает пакет и возвращает код выхода."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.input_dir is None or args.output_dir is None:
        parser.print_usage(sys.stderr)
        return 1

    config = BatchConfig(
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        parallel=args.parallel,
        workers=args.workers,
    )
    try:
        summary = BatchController(config=config).run()
    except OSError as exc:
        print(f"Directory error: {exc}", file=sys.stderr)
        return 1

    print(
        f"Done: {len(summary.converted)} converted, {len(summary.failed)} failed",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

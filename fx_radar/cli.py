"""Command line entry point: detect mentions and convert amounts."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Optional, Sequence

from fx_radar import FxRadar
from fx_radar.config import FxRadarSettings
from fx_radar.errors import FxRadarError
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["build_parser", "parse_args", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fx-radar", description=__doc__)
    parser.add_argument(
        "--storage",
        dest="storage_url",
        help="Storage URL for the rate cache (sqlite:///path, postgresql://..., mongodb://...)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    detect = subparsers.add_parser("detect", help="List the currency mentions found in TEXT")
    detect.add_argument("text")
    detect.add_argument(
        "--threshold",
        type=float,
        help="Minimum confidence for a mention to be reported (default 0.7)",
    )

    convert = subparsers.add_parser("convert", help="Convert AMOUNT from one currency to another")
    convert.add_argument("amount")
    convert.add_argument("from_currency", metavar="FROM")
    convert.add_argument("to_currency", metavar="TO")

    text = subparsers.add_parser("text", help="Convert the best mention in TEXT")
    text.add_argument("text")
    text.add_argument(
        "--to",
        dest="targets",
        action="append",
        required=True,
        help="Target currency; repeat for several targets",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _dump(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {}
    if args.storage_url:
        overrides["storage_url"] = args.storage_url
    if getattr(args, "threshold", None) is not None:
        overrides["confidence_threshold"] = args.threshold
    radar = FxRadar(FxRadarSettings.from_env(**overrides))

    if args.command == "detect":
        try:
            _dump([mention.to_dict() for mention in radar.detect(args.text)])
        finally:
            await radar.store.close()
        return 0

    async with radar:
        if args.command == "convert":
            result = await radar.convert(args.amount, args.from_currency, args.to_currency)
            _dump(result.to_dict())
            return 0

        best, results = await radar.convert_text(args.text, args.targets)
        payload: dict[str, Any] = {
            "mention": best.to_dict() if best else None,
            "conversions": [
                outcome.to_dict() if not isinstance(outcome, FxRadarError) else {"error": str(outcome)}
                for outcome in results
            ],
        }
        _dump(payload)
        return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except (FxRadarError, ValueError) as exc:
        LOGGER.error("%s", exc)
        print(json.dumps({"error": str(exc), "type": type(exc).__name__}), file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())

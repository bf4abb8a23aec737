"""k1s0-variants コマンドラインツール

設定ファイルの内容確認とフラグ値の評価を行うデバッグ用ツール。
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from .exceptions import VariantsError
from .logger import new_logger
from .registry import Registry


def _parse_pair(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {raw!r}")
    return key, value


def _parse_context(pairs: Sequence[tuple[str, str]]) -> dict[str, Any]:
    context: dict[str, Any] = {}
    for key, value in pairs:
        try:
            context[key] = json.loads(value)
        except ValueError:
            context[key] = value
    return context


def _parse_forced(pairs: Sequence[tuple[str, str]]) -> dict[str, bool]:
    forced: dict[str, bool] = {}
    for variant_id, value in pairs:
        lowered = value.lower()
        if lowered not in ("true", "false"):
            raise argparse.ArgumentTypeError(
                f"--force expects true or false for {variant_id!r}, got {value!r}"
            )
        forced[variant_id] = lowered == "true"
    return forced


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="k1s0-variants",
        description="Inspect variants config files and evaluate flag values",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument(
        "--log-format", choices=["json", "text"], default="text", help="Log output format"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    flags_cmd = sub.add_parser("flags", help="List flags with base values")
    flags_cmd.add_argument("file", help="Variants config file (JSON or YAML)")

    variants_cmd = sub.add_parser("variants", help="List variants with conditions and mods")
    variants_cmd.add_argument("file", help="Variants config file (JSON or YAML)")

    eval_cmd = sub.add_parser("eval", help="Evaluate a flag value")
    eval_cmd.add_argument("file", help="Variants config file (JSON or YAML)")
    eval_cmd.add_argument("flag", help="Flag name")
    eval_cmd.add_argument(
        "--context",
        "-c",
        action="append",
        type=_parse_pair,
        default=[],
        metavar="KEY=VALUE",
        help="Context entry; VALUE is parsed as JSON when possible",
    )
    eval_cmd.add_argument(
        "--force",
        "-f",
        action="append",
        type=_parse_pair,
        default=[],
        metavar="VARIANT=true|false",
        help="Force a variant on or off",
    )
    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = new_logger(level=args.log_level, format=args.log_format)

    registry = Registry()
    try:
        registry.load_file(args.file)
        if args.command == "flags":
            _print_json(
                [
                    {
                        "flag": f.name,
                        "desc": f.description,
                        "base_value": f.base_value,
                        "variants": [v.id for v in registry.variants_for_flag(f.name)],
                    }
                    for f in registry.flags()
                ]
            )
        elif args.command == "variants":
            _print_json(registry.to_document()["variants"])
        else:
            try:
                forced = _parse_forced(args.force)
            except argparse.ArgumentTypeError as e:
                parser.error(str(e))
            value = registry.flag_value(args.flag, _parse_context(args.context), forced)
            _print_json(value)
    except VariantsError as e:
        logger.error("variants command failed", code=e.code, error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

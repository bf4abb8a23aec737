"""設定ドキュメントファイル読み込み"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .exceptions import VariantsError, VariantsErrorCodes

_YAML_SUFFIXES = (".yaml", ".yml")


def read_document(path: Path | str) -> dict[str, Any]:
    """JSON または YAML の設定ドキュメントを読み込む。

    拡張子が .yaml / .yml の場合は YAML、それ以外は JSON として解析する。
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise VariantsError(
            code=VariantsErrorCodes.READ_FILE,
            message=f"Failed to read variants file: {path}",
            cause=e,
        ) from e
    if path.suffix.lower() in _YAML_SUFFIXES:
        try:
            data: Any = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise VariantsError(
                code=VariantsErrorCodes.PARSE_DOCUMENT,
                message=f"Failed to parse YAML: {path}",
                cause=e,
            ) from e
    else:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise VariantsError(
                code=VariantsErrorCodes.PARSE_DOCUMENT,
                message=f"Failed to parse JSON: {path}",
                cause=e,
            ) from e
    if not isinstance(data, dict):
        raise VariantsError(
            code=VariantsErrorCodes.INVALID_DOCUMENT,
            message=f"Variants file must contain an object: {path}",
        )
    return data

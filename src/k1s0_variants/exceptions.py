"""variants ライブラリの例外型定義"""

from __future__ import annotations


class VariantsError(Exception):
    """variants ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class VariantsErrorCodes:
    """VariantsError のエラーコード定数。"""

    # 定義・ロード時エラー
    DUPLICATE_FLAG: str = "DUPLICATE_FLAG"
    DUPLICATE_VARIANT: str = "DUPLICATE_VARIANT"
    DUPLICATE_CONDITION_TYPE: str = "DUPLICATE_CONDITION_TYPE"
    UNKNOWN_FLAG_REFERENCE: str = "UNKNOWN_FLAG_REFERENCE"
    MISSING_MODS: str = "MISSING_MODS"
    MISSING_OPERATOR: str = "MISSING_OPERATOR"
    INVALID_OPERATOR: str = "INVALID_OPERATOR"
    CONFLICTING_CONDITION_VALUES: str = "CONFLICTING_CONDITION_VALUES"
    UNKNOWN_CONDITION_TYPE: str = "UNKNOWN_CONDITION_TYPE"
    INVALID_CONDITION_PARAMS: str = "INVALID_CONDITION_PARAMS"
    INVALID_DOCUMENT: str = "INVALID_DOCUMENT"

    # 入出力エラー
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_DOCUMENT: str = "PARSE_DOCUMENT_ERROR"

    # 評価時エラー
    UNKNOWN_FLAG: str = "UNKNOWN_FLAG"
    FLAG_NOT_FOUND_IN_VARIANT: str = "FLAG_NOT_FOUND_IN_VARIANT"

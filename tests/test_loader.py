"""設定ファイル読み込みのユニットテスト"""

from pathlib import Path

import pytest
from k1s0_variants import Registry, VariantsError, VariantsErrorCodes, read_document


def test_read_json_document(testdata_path: Path) -> None:
    """JSON ファイルの読み込み。"""
    data = read_document(testdata_path)
    assert len(data["flag_defs"]) == 6
    assert data["variants"][0]["id"] == "AlwaysPassesTest"


def test_read_yaml_document(tmp_path: Path) -> None:
    """YAML ファイルの読み込み。"""
    path = tmp_path / "variants.yaml"
    path.write_text(
        "flag_defs:\n"
        "  - flag: checkout_v2\n"
        "    base_value: false\n"
        "variants:\n"
        "  - id: Staff\n"
        "    conditions:\n"
        "      - type: MOD_RANGE\n"
        "        values: [user_id, 0, 4]\n"
        "    mods:\n"
        "      - flag: checkout_v2\n"
        "        value: true\n"
    )
    r = Registry()
    r.load_file(path)
    assert r.flag_value("checkout_v2", {"user_id": 104}) is True
    assert r.flag_value("checkout_v2", {"user_id": 105}) is False


def test_read_empty_yaml(tmp_path: Path) -> None:
    """空の YAML は空のドキュメント。"""
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert read_document(path) == {}


def test_read_file_not_found(tmp_path: Path) -> None:
    """存在しないファイルで READ_FILE_ERROR。"""
    with pytest.raises(VariantsError) as exc_info:
        read_document(tmp_path / "missing.json")
    assert exc_info.value.code == VariantsErrorCodes.READ_FILE


def test_read_invalid_json(tmp_path: Path) -> None:
    """不正 JSON で PARSE_DOCUMENT_ERROR。"""
    path = tmp_path / "bad.json"
    path.write_text("{invalid")
    with pytest.raises(VariantsError) as exc_info:
        read_document(path)
    assert exc_info.value.code == VariantsErrorCodes.PARSE_DOCUMENT


def test_read_invalid_yaml(tmp_path: Path) -> None:
    """不正 YAML で PARSE_DOCUMENT_ERROR。"""
    path = tmp_path / "bad.yaml"
    path.write_text("flag_defs: {invalid: yaml: content:\n")
    with pytest.raises(VariantsError) as exc_info:
        read_document(path)
    assert exc_info.value.code == VariantsErrorCodes.PARSE_DOCUMENT


def test_read_non_object_document(tmp_path: Path) -> None:
    """オブジェクト以外は INVALID_DOCUMENT。"""
    path = tmp_path / "list.json"
    path.write_text("[]")
    with pytest.raises(VariantsError) as exc_info:
        read_document(path)
    assert exc_info.value.code == VariantsErrorCodes.INVALID_DOCUMENT


def test_reload_file(tmp_path: Path, testdata_path: Path) -> None:
    """reload_file で一部のフラグだけ更新されること。"""
    r = Registry()
    r.load_file(testdata_path)
    update = tmp_path / "update.json"
    update.write_text('{"flag_defs": [{"flag": "coin_flip", "base_value": "updated"}]}')
    r.reload_file(update)
    assert r.get_flag("coin_flip").base_value == "updated"  # type: ignore[union-attr]
    assert r.flag_value("always_passes") is True
    assert r.flag_value("mod_range", {"user_id": 50}) is False

"""variants ライブラリのテスト共通フィクスチャ"""

from pathlib import Path

import pytest
from k1s0_variants import Registry

TESTDATA = Path(__file__).parent / "testdata.json"


@pytest.fixture
def testdata_path() -> Path:
    """テストデータファイルのパス。"""
    return TESTDATA


@pytest.fixture
def registry() -> Registry:
    """テストデータを読み込んだレジストリ。"""
    r = Registry()
    r.load_file(TESTDATA)
    return r

# -*- coding: utf-8 -*-
import pytest

from tataru.config import LEGACY_NAMES_URL, EngineSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("TATARU_STORE_URL", "TATARU_STORE_KEY", "TATARU_LEGACY_NAMES_URL", "TATARU_SETTINGS"):
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_ini(tmp_path):
    s = EngineSettings.load(tmp_path / "missing.ini")
    assert s.store_url == ""
    assert s.page_size == 1000
    assert s.max_in_list == 1000
    assert s.max_depth == 10
    assert s.legacy_names_url == LEGACY_NAMES_URL
    assert s.tables.items == "tw_items"


def test_ini_values(tmp_path):
    ini = tmp_path / "settings.ini"
    ini.write_text(
        "[STORE]\nURL = https://demo.supabase.co\nKEY = k1\nTIMEOUT = 5\n\n[ENGINE]\nPAGE_SIZE = 500\nMAX_DEPTH = 6\n",
        encoding="utf-8",
    )
    s = EngineSettings.load(ini)
    assert s.store_url == "https://demo.supabase.co"
    assert s.store_key == "k1"
    assert s.timeout == 5.0
    assert s.page_size == 500
    assert s.max_depth == 6
    assert s.max_in_list == 1000


def test_env_overrides_ini(tmp_path, monkeypatch):
    ini = tmp_path / "settings.ini"
    ini.write_text("[STORE]\nURL = https://from-ini.supabase.co\n", encoding="utf-8")
    monkeypatch.setenv("TATARU_STORE_URL", "https://from-env.supabase.co")
    monkeypatch.setenv("TATARU_STORE_KEY", "env-key")
    s = EngineSettings.load(ini)
    assert s.store_url == "https://from-env.supabase.co"
    assert s.store_key == "env-key"


def test_settings_path_from_env(tmp_path, monkeypatch):
    ini = tmp_path / "alt.ini"
    ini.write_text("[ENGINE]\nMAX_IN_LIST = 200\n", encoding="utf-8")
    monkeypatch.setenv("TATARU_SETTINGS", str(ini))
    assert EngineSettings.load().max_in_list == 200


def test_invalid_number(tmp_path):
    ini = tmp_path / "settings.ini"
    ini.write_text("[ENGINE]\nPAGE_SIZE = lots\n", encoding="utf-8")
    with pytest.raises(ValueError):
        EngineSettings.load(ini)

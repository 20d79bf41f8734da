from __future__ import annotations

from pathlib import Path

import pytest

from sqlshell import config


@pytest.fixture
def tmp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def sqlshell_data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data = tmp_path / "sqlshell_data_home"
    data.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("SQLSHELL_DATA_HOME", str(data))
    return data


# ----------------------------------------------------------------
# Locations
# ----------------------------------------------------------------


def test_get_data_root_prefers_sqlshell_data_home(sqlshell_data_home: Path) -> None:
    assert config.get_data_root() == sqlshell_data_home


def test_get_data_root_defaults_to_local_share(
    tmp_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("SQLSHELL_DATA_HOME", raising=False)

    root = config.get_data_root()

    assert root == tmp_home / ".local" / "share"
    assert root.is_dir()


def test_history_file_defaults_to_home(
    tmp_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("SQLSHELL_HISTORY", raising=False)

    assert config.history_file() == tmp_home / ".sqlshell_history"
    assert config.history_file(config.load_system_config()) == (
        tmp_home / ".sqlshell_history"
    )


def test_history_file_env_override(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = tmp_path / "hist"
    monkeypatch.setenv("SQLSHELL_HISTORY", str(target))

    assert config.history_file() == target


def test_cursor_escapes() -> None:
    assert config.cursor_left(3) == "\033[3D"
    assert config.cursor_left(0) == ""
    assert config.cursor_left(-1) == ""


# ----------------------------------------------------------------
# Packaged defaults
# ----------------------------------------------------------------


def test_system_yaml_defaults() -> None:
    cfg = config.load_system_config()

    assert cfg.get_path("system.prompt") == "> "
    assert cfg.get_path("system.history_limit") == 1000
    assert cfg.get_path("session.rows.tab_width") == 8
    assert cfg.get_path("session.nope.deeper", "dflt") == "dflt"
    assert "set format" in cfg.help


def test_load_defaults_yaml_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        config.load_defaults_yaml("nope.yaml")


def test_session_config_from_yaml() -> None:
    settings = config.SessionConfig.from_config(config.load_system_config())

    assert settings == config.SessionConfig()


def test_session_config_from_custom_mapping() -> None:
    cfg = config.YAMLConfig(
        {
            "system": {"history_limit": 50},
            "session": {
                "format": "rows",
                "rows": {"min_width": 4, "tab_width": 2, "padding": 3},
                "index": 1,
                "limit": 9,
                "color": True,
            },
        }
    )

    s = config.SessionConfig.from_config(cfg)

    assert (s.format, s.min_width, s.tab_width, s.padding) == ("rows", 4, 2, 3)
    assert (s.start_index, s.limit, s.color, s.history_limit) == (1, 9, True, 50)


def test_session_config_ignores_unknown_format() -> None:
    cfg = config.YAMLConfig({"session": {"format": "xml"}})

    assert config.SessionConfig.from_config(cfg).format == "pairs"


# ----------------------------------------------------------------
# apply_setting
# ----------------------------------------------------------------


@pytest.mark.parametrize(
    "key, value, attr, expected",
    [
        ("format", "json", "format", "json"),
        ("FORMAT", "Rows", "format", "rows"),
        ("index", "3", "start_index", 3),
        ("limit", "10", "limit", 10),
        ("history", "20", "history_limit", 20),
        ("connect", "sqlite:///tmp/x.db", "uri", "sqlite:///tmp/x.db"),
        ("color", "on", "color", True),
    ],
)
def test_apply_setting(key: str, value: str, attr: str, expected) -> None:
    settings = config.SessionConfig()

    assert settings.apply_setting(key, value) is True
    assert getattr(settings, attr) == expected


@pytest.mark.parametrize(
    "key, value",
    [
        ("format", "xml"),
        ("format", "json:1"),
        ("format", "rows:1:2"),
        ("format", "rows:a:b:c"),
        ("index", "-1"),
        ("limit", "x"),
        ("history", "0"),
        ("pager", "5"),
        ("pager", "a:b"),
        ("color", "maybe"),
        ("connect", ""),
        ("nosuchkey", "1"),
    ],
)
def test_apply_setting_rejects_bad_values(key: str, value: str) -> None:
    settings = config.SessionConfig()

    assert settings.apply_setting(key, value) is False
    assert settings == config.SessionConfig()


def test_apply_pager_sets_window() -> None:
    settings = config.SessionConfig()

    assert settings.apply_setting("pager", "2:4")
    assert [i for i in range(10) if settings.in_window(i)] == [2, 3, 4]


def test_apply_color_toggles() -> None:
    settings = config.SessionConfig()

    settings.apply_setting("color", None)
    assert settings.color is True
    settings.apply_setting("color", None)
    assert settings.color is False


def test_describe_lists_all_settings() -> None:
    names = [name for name, _ in config.SessionConfig().describe()]

    assert names[0] == "format"
    assert "history_limit" in names
    assert "uri" in names

import logging

import pytest

from workitem_sync.config import (
    CONFIG_ENV_VAR,
    DEFAULT_ORGANIZATION_PREFIXES,
    Config,
    ConfigError,
    load_config,
)


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    config = load_config()
    assert config == Config()
    assert config.organization_prefixes == DEFAULT_ORGANIZATION_PREFIXES
    assert config.literal_block_threshold == 200


def test_overrides(tmp_path):
    config = load_config(_write(tmp_path, "organization_prefixes: [Acme]\nliteral_block_threshold: 50\n"))
    assert config.organization_prefixes == ["Acme"]
    assert config.literal_block_threshold == 50
    assert config.system_prefixes == Config().system_prefixes


def test_env_var_used_when_no_path(monkeypatch, tmp_path):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(_write(tmp_path, "table_style: 'width: 100%;'\n")))
    config = load_config()
    assert config.table_styles().table == "width: 100%;"


def test_empty_file_gives_defaults(tmp_path):
    assert load_config(_write(tmp_path, "")) == Config()


def test_unknown_key_warns(tmp_path, caplog):
    with caplog.at_level(logging.WARNING):
        config = load_config(_write(tmp_path, "unknown_key: 1\n"))
    assert config == Config()
    assert "Ignoring unknown config key: unknown_key" in caplog.text


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read config file"):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(_write(tmp_path, "a: [unclosed\n"))


def test_non_mapping(tmp_path):
    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(_write(tmp_path, "- a\n- b\n"))


@pytest.mark.parametrize(
    "text, key",
    [
        ("system_prefixes: System.\n", "system_prefixes"),
        ("literal_block_threshold: true\n", "literal_block_threshold"),
        ("literal_block_threshold: '10'\n", "literal_block_threshold"),
        ("header_cell_style: [a]\n", "header_cell_style"),
    ],
)
def test_wrong_types(tmp_path, text, key):
    with pytest.raises(ConfigError, match=key):
        load_config(_write(tmp_path, text))


def test_table_styles():
    styles = Config(header_cell_style="h;", data_cell_style="d;").table_styles()
    assert (styles.header_cell, styles.data_cell) == ("h;", "d;")

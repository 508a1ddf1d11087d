"""Tests for configuration loading."""

from starspharm.config import (
    DatabaseConfig,
    LoggingConfig,
    PortalConfig,
    StarsConfig,
    load_config,
)


def test_load_config_defaults(monkeypatch):
    """Loading with no path returns all defaults."""
    monkeypatch.delenv("STARSPHARM_DB_PATH", raising=False)
    monkeypatch.delenv("STARSPHARM_LOG_LEVEL", raising=False)

    config = load_config()
    assert isinstance(config, StarsConfig)
    assert config.portal.host == "suf.purs.gov.rs"
    assert config.portal.specifications_url == "https://suf.purs.gov.rs/specifications"
    assert config.portal.timeout == 15.0
    assert config.portal.locale_cookie == "sr-Cyrl-RS"
    assert "Chrome" in config.portal.user_agent
    assert config.database.path.endswith("loyalty.db")
    assert config.logging.level == "INFO"


def test_load_config_nonexistent_file():
    """A missing file falls back to defaults."""
    config = load_config("/nonexistent/config.toml")
    assert config.portal.host == "suf.purs.gov.rs"


def test_load_config_from_toml(tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        """
[portal]
host = "suf.test.local"
timeout = 5
locale_cookie = "sr-Latn-RS"

[database]
path = "/custom/path/loyalty.db"

[logging]
level = "debug"
"""
    )
    config = load_config(config_file)
    assert config.portal.host == "suf.test.local"
    # derived from the host when not given
    assert config.portal.specifications_url == "https://suf.test.local/specifications"
    assert config.portal.origin == "https://suf.test.local"
    assert config.portal.timeout == 5.0
    assert config.portal.locale_cookie == "sr-Latn-RS"
    assert config.database.path == "/custom/path/loyalty.db"
    assert config.logging.level == "DEBUG"


def test_env_overrides_empty_config(monkeypatch):
    monkeypatch.setenv("STARSPHARM_DB_PATH", "/env/loyalty.db")
    monkeypatch.setenv("STARSPHARM_LOG_LEVEL", "warning")

    config = load_config()
    assert config.database.path == "/env/loyalty.db"
    assert config.logging.level == "WARNING"


def test_config_file_takes_precedence(tmp_path, monkeypatch):
    monkeypatch.setenv("STARSPHARM_DB_PATH", "/env/loyalty.db")
    config_file = tmp_path / "config.toml"
    config_file.write_text('[database]\npath = "/file/loyalty.db"\n')

    config = load_config(config_file)
    assert config.database.path == "/file/loyalty.db"


def test_stars_config_sections():
    config = StarsConfig()
    assert isinstance(config.portal, PortalConfig)
    assert isinstance(config.database, DatabaseConfig)
    assert isinstance(config.logging, LoggingConfig)

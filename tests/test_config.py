"""Tests for configuration management."""

from pathlib import Path

import pytest

from entity_store.backends import MemoryBackend, YAMLBackend
from entity_store.config import Config, check_setting, open_mailer, open_store, parse_pairs
from entity_store.errors import ConfigError
from entity_store.modes import RunMode


@pytest.fixture
def config(tmp_path: Path, home: Path) -> Config:
    """Local config in a temporary directory, with an empty global config."""
    return Config(config_dir=tmp_path / "local")


def test_set_get_unset(config: Config) -> None:
    """Test that values persist to the YAML file."""
    config.set("store.backend", "memory")
    assert config.get("store.backend") == "memory"
    assert config.config_file.exists()

    assert Config(config_dir=config.config_dir).get("store.backend") == "memory"

    config.unset("store.backend")
    assert config.get("store.backend") is None
    assert config.get("store.backend", "yaml") == "yaml"


def test_global_fallback(config: Config, home: Path) -> None:
    """Test that local values override global ones."""
    global_config = Config(use_global=True)
    global_config.set("mode", "debug")
    global_config.set("email.host", "global.example.com")
    config.set("email.host", "local.example.com")

    local = Config(config_dir=config.config_dir)
    assert global_config.config_dir == home / ".entity-store"
    assert local.get("mode") == "debug"
    assert local.get("email.host") == "local.example.com"
    assert local.list() == {"mode": "debug", "email.host": "local.example.com"}
    assert Config(use_global=True).list() == {"mode": "debug", "email.host": "global.example.com"}


def test_section(config: Config) -> None:
    """Test reading the keys under a prefix."""
    config.set("email.host", "mail.example.com")
    config.set("email.port", "2525")
    config.set("emailer", "unrelated")

    assert config.section("email") == {"host": "mail.example.com", "port": "2525"}


def test_mode(config: Config) -> None:
    """Test the configured run mode."""
    assert config.mode is RunMode.LIVE
    config.set("mode", "stage")
    assert config.mode is RunMode.STAGE
    config.set("mode", "shouting")
    with pytest.raises(ConfigError):
        config.mode


def test_corrupt_local_config(tmp_path: Path, home: Path) -> None:
    """Test that an unreadable local file raises ConfigError."""
    local = tmp_path / "local"
    local.mkdir()
    (local / "config.yaml").write_text("mode: [unclosed")

    with pytest.raises(ConfigError):
        Config(config_dir=local)


def test_corrupt_global_config_is_ignored(tmp_path: Path, home: Path) -> None:
    """Test that an unreadable global file only produces a warning."""
    global_dir = home / ".entity-store"
    global_dir.mkdir()
    (global_dir / "config.yaml").write_text("mode: [unclosed")

    assert Config(config_dir=tmp_path / "local").list() == {}


def test_parse_pairs() -> None:
    """Test parsing field:target lists."""
    assert parse_pairs("author:author, editor:person") == {"author": "author", "editor": "person"}
    assert parse_pairs("") == {}
    with pytest.raises(ConfigError):
        parse_pairs("author")


def test_open_store_defaults(config: Config) -> None:
    """Test a YAML store under the config directory."""
    store = open_store(config)
    articles = store.create_class("article", destroy=True)

    assert isinstance(articles.backend, YAMLBackend)
    assert articles.backend.root == config.config_dir / "data"
    assert store.mode is RunMode.LIVE


def test_open_store_from_settings(config: Config, tmp_path: Path) -> None:
    """Test backend, mode and relations from configuration."""
    config.set("store.backend", "memory")
    config.set("mode", "silent")
    config.set("relations.article", "author:author")

    store = open_store(config)
    articles = store.get_class("article")

    assert isinstance(articles.backend, MemoryBackend)
    assert store.mode is RunMode.SILENT
    assert articles.relations["author"].target == "author"
    assert open_store(config, mode=RunMode.DEBUG).mode is RunMode.DEBUG


def test_open_store_unknown_backend(config: Config) -> None:
    """Test that an unknown backend is a configuration error."""
    config.set("store.backend", "floppy")
    with pytest.raises(ConfigError):
        open_store(config)


def test_open_mailer(config: Config) -> None:
    """Test building email options from settings."""
    config.set("email.host", "mail.example.com")
    config.set("email.port", "2525")
    config.set("email.bcc", "a@example.com, b@example.com")

    mailer = open_mailer(config)
    assert mailer.options.host == "mail.example.com"
    assert mailer.options.port == 2525
    assert mailer.options.bcc == ["a@example.com", "b@example.com"]


@pytest.mark.parametrize(
    "key, value",
    [("email.port", "twenty-five"), ("email.colour", "blue"), ("email.auth_type", "kerberos")],
)
def test_open_mailer_invalid(config: Config, key: str, value: str) -> None:
    """Test invalid email settings."""
    config.set(key, value)
    with pytest.raises(ConfigError):
        open_mailer(config)


def test_origin(config: Config, home: Path) -> None:
    """Test reporting which file a value comes from."""
    Config(use_global=True).set("mode", "debug")
    config.set("email.host", "local.example.com")

    local = Config(config_dir=config.config_dir)
    assert local.origin("email.host") == "local"
    assert local.origin("mode") == "global"
    assert local.origin("store.root") is None
    assert Config(use_global=True).origin("mode") == "global"


@pytest.mark.parametrize(
    "key, value",
    [
        ("mode", "stage"),
        ("store.backend", "memory"),
        ("relations.article", "author:author, editor:person"),
        ("email.port", "2525"),
        ("email.auth_type", "cram_md5"),
        ("store.root", "/anywhere"),
        ("something.else", "whatever"),
    ],
)
def test_check_setting_accepts(key: str, value: str) -> None:
    """Test values the store and mailer can use."""
    check_setting(key, value)


@pytest.mark.parametrize(
    "key, value",
    [
        ("mode", "shouting"),
        ("store.backend", "floppy"),
        ("relations.article", "author"),
        ("relations.article", "author:"),
        ("relations.node", "parent:node"),
        ("email.port", "twenty-five"),
        ("email.auth_type", "kerberos"),
    ],
)
def test_check_setting_rejects(key: str, value: str) -> None:
    """Test values that would fail once the store or mailer is opened."""
    with pytest.raises(ConfigError):
        check_setting(key, value)

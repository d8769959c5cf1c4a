"""Tests for settings loading and precedence."""

import os
from pathlib import Path

import pytest

from streamclient.compression import CompressionType
from streamclient.config.discovery import (
    CONFIG_FILE_ENV,
    find_git_root,
    find_toml_config_file,
    get_config_dir,
)
from streamclient.config.settings import Settings
from streamclient.core.errors import ConfigurationError
from streamclient.identifiers import IdentifierType


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory, config home and STREAMCLIENT_ environment."""
    for key in list(os.environ):
        if key.upper().startswith("STREAMCLIENT_"):
            monkeypatch.delenv(key)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    return workdir


def write_config(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.unit
class TestDefaults:
    def test_defaults(self) -> None:
        settings = Settings.from_config()

        assert settings.http.http2 is True
        assert settings.http.timeout_connect == 15.0
        assert settings.logging.level == "WARNING"
        assert settings.defaults.max_redirects == 10
        assert settings.defaults.compression is CompressionType.NONE

    def test_default_options(self) -> None:
        settings = Settings(
            defaults={"max_redirects": 4, "identifier_type": "random", "compression": "gzip"}
        )
        options = settings.default_options()

        assert options.max_redirects == 4
        assert options.identifier_type is IdentifierType.RANDOM
        assert options.compression is CompressionType.GZIP

    @pytest.mark.parametrize("value", ["none", "identity", "NONE"])
    def test_compression_aliases(self, value: str) -> None:
        settings = Settings(defaults={"compression": value})
        assert settings.defaults.compression is CompressionType.NONE

    def test_custom_compression_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            Settings.from_config(defaults={"compression": "custom"})


@pytest.mark.unit
class TestTomlLoading:
    def test_explicit_file(self, tmp_path: Path) -> None:
        cfg = write_config(
            tmp_path / "config.toml",
            """
[http]
timeout_read = 5
http2 = false

[defaults]
follow_redirects = false
protocol_scheme = "http"
""",
        )

        settings = Settings.from_config(config_path=cfg)

        assert settings.http.timeout_read == 5
        assert settings.http.http2 is False
        options = settings.default_options()
        assert options.follow_redirects is False
        assert options.protocol_scheme == "http://"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cfg = write_config(
            tmp_path / "config.toml",
            """
[http]
timeout_read = 5
timeout_write = 6
""",
        )
        monkeypatch.setenv("STREAMCLIENT_HTTP__TIMEOUT_READ", "60")

        settings = Settings.from_config(config_path=cfg)

        assert settings.http.timeout_read == 60  # env > toml
        assert settings.http.timeout_write == 6

    def test_overrides_win(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cfg = write_config(tmp_path / "config.toml", '[logging]\nlevel = "INFO"\n')
        monkeypatch.setenv("STREAMCLIENT_LOGGING__FORMAT", "plain")

        settings = Settings.from_config(config_path=cfg, logging={"level": "debug"})

        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "plain"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        cfg = write_config(tmp_path / "broken.toml", "[http\ntimeout_read = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML syntax"):
            Settings.from_config(config_path=cfg)

    def test_invalid_value(self, tmp_path: Path) -> None:
        cfg = write_config(tmp_path / "config.toml", "[defaults]\nmax_redirects = -1\n")
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_config(config_path=cfg)
        assert exc_info.value.details["errors"]

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        cfg = write_config(tmp_path / "config.yaml", "http: {}\n")
        with pytest.raises(ConfigurationError, match="Only TOML"):
            Settings.from_config(config_path=cfg)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            Settings.from_config(config_path=tmp_path / "absent.toml")


@pytest.mark.unit
class TestDiscovery:
    def test_nothing_found(self) -> None:
        assert find_toml_config_file() is None

    def test_env_variable(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cfg = write_config(tmp_path / "elsewhere.toml", "")
        monkeypatch.setenv(CONFIG_FILE_ENV, str(cfg))
        assert find_toml_config_file() == cfg

    def test_current_directory(self, isolated_env: Path) -> None:
        cfg = write_config(isolated_env / ".streamclient.toml", "")
        assert find_toml_config_file() == cfg

    def test_git_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        repo = tmp_path / "repo"
        (repo / ".git").mkdir(parents=True)
        nested = repo / "src" / "pkg"
        nested.mkdir(parents=True)
        cfg = write_config(repo / "streamclient.toml", "")
        monkeypatch.chdir(nested)

        assert find_git_root() == repo.resolve()
        assert find_toml_config_file() == repo.resolve() / "streamclient.toml"
        assert cfg.exists()

    def test_xdg_config(self, tmp_path: Path) -> None:
        assert get_config_dir() == tmp_path / "xdg" / "streamclient"
        cfg = write_config(get_config_dir() / "config.toml", "")
        assert find_toml_config_file() == cfg

    def test_discovered_file_is_loaded(self, isolated_env: Path) -> None:
        write_config(isolated_env / ".streamclient.toml", "[defaults]\nmax_redirects = 2\n")
        assert Settings.from_config().defaults.max_redirects == 2

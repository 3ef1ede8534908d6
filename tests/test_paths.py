"""Tests for path utilities."""

from pathlib import Path

from gcontact_gravatar.utils.paths import (
    CONFIG_DIR_ENV_VAR,
    DEFAULT_CACHE_FILE,
    DEFAULT_CONFIG_DIR,
    default_cache_path,
    resolve_config_dir,
)


class TestDefaultConfigDir:
    """Test DEFAULT_CONFIG_DIR constant."""

    def test_default_config_dir_is_in_home(self):
        """Default config dir should be in user's home directory."""
        assert Path.home() / ".gcontact-gravatar" == DEFAULT_CONFIG_DIR


class TestResolveConfigDir:
    """Test resolve_config_dir function."""

    def test_explicit_path_string(self, tmp_path):
        """Explicit path string should be used."""
        assert resolve_config_dir(str(tmp_path)) == tmp_path.resolve()

    def test_explicit_path_with_tilde(self):
        """Explicit path with ~ should be expanded."""
        assert resolve_config_dir("~/custom-config") == (
            Path.home() / "custom-config"
        ).resolve()

    def test_env_var_override(self, tmp_path, monkeypatch):
        """Environment variable should override default when no explicit path."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path))
        assert resolve_config_dir(None) == tmp_path.resolve()

    def test_explicit_beats_env(self, tmp_path, monkeypatch):
        """Explicit path wins over the environment variable."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path / "env"))
        assert resolve_config_dir(tmp_path / "cli") == (tmp_path / "cli").resolve()

    def test_default_when_no_explicit_and_no_env(self, monkeypatch):
        """Default should be used when no explicit path and no env var."""
        monkeypatch.delenv(CONFIG_DIR_ENV_VAR, raising=False)
        assert resolve_config_dir(None) == DEFAULT_CONFIG_DIR.expanduser().resolve()


class TestDefaultCachePath:
    """Test default_cache_path function."""

    def test_cache_inside_config_dir(self, tmp_path):
        """Cache database lives in the config directory."""
        assert default_cache_path(tmp_path) == tmp_path.resolve() / DEFAULT_CACHE_FILE

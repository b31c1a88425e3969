"""Tests for centralized path resolution."""
from pathlib import Path

from nodewatch.paths import PathResolver


class TestPathResolver:
    """Tests for PathResolver centralized path resolution."""

    def test_config_dir_default(self, monkeypatch):
        """Should fall back to ~/.config/nodewatch."""
        monkeypatch.delenv("NODEWATCH_CONFIG", raising=False)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)

        result = PathResolver.config_dir()
        assert isinstance(result, Path)
        assert result == Path.home() / ".config" / "nodewatch"

    def test_config_dir_respects_env_var(self, monkeypatch, tmp_path):
        """NODEWATCH_CONFIG env var overrides default."""
        monkeypatch.setenv("NODEWATCH_CONFIG", str(tmp_path / "cfg"))

        assert PathResolver.config_dir() == tmp_path / "cfg"

    def test_config_dir_respects_xdg(self, monkeypatch, tmp_path):
        """XDG_CONFIG_HOME is used when NODEWATCH_CONFIG is unset."""
        monkeypatch.delenv("NODEWATCH_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert PathResolver.config_dir() == tmp_path / "nodewatch"

    def test_state_dir_respects_env_var(self, temp_state_dir):
        """NODEWATCH_STATE (set by the conftest fixture) wins."""
        assert PathResolver.state_dir() == temp_state_dir

    def test_state_dir_respects_xdg(self, monkeypatch, tmp_path):
        """XDG_STATE_HOME is used when NODEWATCH_STATE is unset."""
        monkeypatch.delenv("NODEWATCH_STATE", raising=False)
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))

        assert PathResolver.state_dir() == tmp_path / "nodewatch"

    def test_state_dir_default(self, monkeypatch):
        """Should fall back to ~/.local/state/nodewatch."""
        monkeypatch.delenv("NODEWATCH_STATE", raising=False)
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)

        assert PathResolver.state_dir() == Path.home() / ".local" / "state" / "nodewatch"

    def test_log_file_in_state_dir(self, temp_state_dir):
        assert PathResolver.log_file() == temp_state_dir / "nodewatch.log"

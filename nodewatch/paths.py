# SPDX-License-Identifier: MIT
"""Centralized path resolution for nodewatch.

All path resolution should go through this module to ensure consistency.
"""
import os
from pathlib import Path


class PathResolver:
    """Resolves paths for nodewatch components."""

    @staticmethod
    def config_dir() -> Path:
        """Get the directory holding settings.json.

        Resolution order:
        1. NODEWATCH_CONFIG env var
        2. XDG_CONFIG_HOME/nodewatch
        3. ~/.config/nodewatch
        """
        config = os.environ.get("NODEWATCH_CONFIG")
        if config:
            return Path(config)
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config) / "nodewatch"
        return Path.home() / ".config" / "nodewatch"

    @staticmethod
    def state_dir() -> Path:
        """Get the state directory for mutable data (log file).

        Resolution order:
        1. NODEWATCH_STATE env var
        2. XDG_STATE_HOME/nodewatch
        3. ~/.local/state/nodewatch
        """
        state = os.environ.get("NODEWATCH_STATE")
        if state:
            return Path(state)
        xdg_state = os.environ.get("XDG_STATE_HOME")
        if xdg_state:
            return Path(xdg_state) / "nodewatch"
        return Path.home() / ".local" / "state" / "nodewatch"

    @staticmethod
    def log_file() -> Path:
        """Get the path of the optional on-disk log."""
        return PathResolver.state_dir() / "nodewatch.log"

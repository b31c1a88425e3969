# SPDX-License-Identifier: MIT
"""nodewatch - lazy address-space explorer and live table dashboard."""

from nodewatch._version import __version__

__all__ = ["__version__"]

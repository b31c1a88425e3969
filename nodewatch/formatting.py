#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Shared formatting utilities for the dashboard panels.

Fixed-width padding used by the attribute panel and the live tables, plus
the statistics dump written to the Info log.
"""

from typing import List, Sequence, Tuple

from nodewatch.models import SessionStatistics

DEFAULT_NAME_WIDTH = 25
NAME_FILL = "."
NAME_SEPARATOR = ": "
STATISTICS_RULE = "-" * 76


def pad(text: str, width: int, fill: str = " ") -> str:
    """Pad text with fill up to width, truncating anything longer.

    Args:
        text: Text to fit
        width: Target width; zero or negative gives an empty string
        fill: Single padding character

    Returns:
        A string of exactly max(width, 0) characters.
    """
    if width <= 0:
        return ""
    return (text + fill[0] * width)[:width]


def format_attribute_rows(
    rows: Sequence[Tuple[str, str]],
    width: int,
    name_width: int = DEFAULT_NAME_WIDTH,
) -> List[Tuple[str, str]]:
    """Fit (name, value) rows to the attribute panel columns.

    Names are dot-filled to name_width, values space-padded to width.
    """
    return [(pad(name, name_width, NAME_FILL), pad(value, width)) for name, value in rows]


def make_items(
    rows: Sequence[Tuple[str, str]],
    width: int,
    name_width: int = DEFAULT_NAME_WIDTH,
) -> List[str]:
    """Join formatted attribute rows into single display lines."""
    return [
        name + NAME_SEPARATOR + value
        for name, value in format_attribute_rows(rows, width, name_width)
    ]


def value_width(panel_width: int, name_width: int = DEFAULT_NAME_WIDTH) -> int:
    """Space left for the value column once name, separator and border are taken."""
    return max(panel_width - name_width - len(NAME_SEPARATOR) - 1, 0)


def format_statistics(stats: SessionStatistics) -> List[str]:
    """Render the transport counters as Info log markup lines."""
    entries = [
        ("transaction count", stats.transaction_count),
        ("sent bytes", stats.sent_bytes),
        ("received bytes", stats.received_bytes),
        ("token renewal count", stats.token_renewal_count),
        ("reconnection count", stats.reconnection_count),
    ]
    lines = [STATISTICS_RULE]
    for label, value in entries:
        lines.append(f"[green]{label:>22} : [/green][yellow]{value}[/yellow]")
    return lines

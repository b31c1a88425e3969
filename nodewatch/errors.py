#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Exception types for the explorer core.

Stale detail results are not represented here: they are an expected race
outcome and are dropped without raising.
"""

from typing import Optional


class NodewatchError(Exception):
    """Base class for all nodewatch errors."""


class InvalidStateTransition(NodewatchError):
    """A NodeRecord was asked to move between expansion states illegally."""

    def __init__(self, node_id: str, current: str, requested: str) -> None:
        self.node_id = node_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"{node_id}: illegal expansion transition {current} -> {requested}"
        )


class NodeNotFound(NodewatchError, KeyError):
    """Lookup of an unknown node id in the store."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(node_id)

    def __str__(self) -> str:
        return f"unknown node: {self.node_id}"


class ServiceError(NodewatchError):
    """A Session Service call failed.

    Attributes:
        operation: Name of the service call (e.g. "list_children")
        node_id: Node the call was made for, if any
    """

    def __init__(self, operation: str, node_id: Optional[str] = None, message: str = "") -> None:
        self.operation = operation
        self.node_id = node_id
        self.message = message
        target = f" {node_id}" if node_id else ""
        detail = f": {message}" if message else ""
        super().__init__(f"{operation}{target} failed{detail}")


class ExpansionFailed(NodewatchError):
    """Listing a node's children failed; the node stays retryable."""

    def __init__(self, node_id: str, cause: BaseException) -> None:
        self.node_id = node_id
        self.cause = cause
        super().__init__(f"cannot expand {node_id}: {cause}")


class UnknownCommand(NodewatchError):
    """The dashboard controller was asked to run a command it doesn't know."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown command: {name}")

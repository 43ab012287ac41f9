"""Custom exceptions for Blockfill."""

from __future__ import annotations

from typing import Any


class BlockfillError(Exception):
    """Base exception for all Blockfill errors."""


class ConfigError(BlockfillError):
    """Configuration-related errors."""


class SourceError(BlockfillError):
    """The candidate input could not be read."""


class MalformedRecordError(SourceError):
    """A record does not have the expected field shape. Fatal for the run."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line
        # Partial SelectionResult, attached by the runner before re-raising
        self.result: Any = None


class InvalidTransactionError(BlockfillError):
    """A single transaction failed size/fee validation. Never fatal."""


class SelectorStateError(BlockfillError):
    """The selector's ordering or running totals are inconsistent."""

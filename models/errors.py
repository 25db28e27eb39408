"""Errors raised by the recommendation pipeline."""

from __future__ import annotations


class ValidationError(ValueError):
    """The request cannot be executed as given (HTTP 400)."""


class StoreError(RuntimeError):
    """The reading store could not be reached or the query failed (HTTP 500)."""

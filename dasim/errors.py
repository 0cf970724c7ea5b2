"""
dasim errors.

Small typed exception hierarchy with structured metadata, so the CLI can map
failures to exit codes and JSON output.

Usage:

    from dasim.errors import CapacityError

    raise CapacityError("too many samples", data={"requested": n, "cells": cells})

All errors expose:
- .code    : stable machine-readable code (snake_case)
- .data    : optional structured payload (dict-like)
- .to_dict(): JSON-friendly rendering
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class DasimError(Exception):
    """
    Base class for simulator errors.

    Subclasses set `default_code` and `exit_code`.
    """
    default_code = "dasim_error"
    exit_code = 1

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.data: Dict[str, Any] = dict(data) if data else {}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.message:
            return f"{self.code}: {self.message}"
        return self.code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message or None,
            "data": self.data or None,
        }


class ConfigError(DasimError, ValueError):
    """
    A configuration field is missing, malformed or out of range.
    """
    default_code = "invalid_config"
    exit_code = 2


class CapacityError(DasimError, ValueError):
    """
    More unique coordinates were requested than the coded square holds.
    """
    default_code = "sample_capacity_exceeded"
    exit_code = 2


class SearchExhausted(DasimError):
    """
    The sampler-count sweep for a size hit its round or light bound without
    reaching the target probability.
    """
    default_code = "search_exhausted"
    exit_code = 3


__all__ = [
    "DasimError",
    "ConfigError",
    "CapacityError",
    "SearchExhausted",
]

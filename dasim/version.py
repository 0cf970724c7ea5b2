"""
dasim version utilities.

- __version__: base semantic version, or the DASIM_VERSION override.
- version_info: (major, minor, patch) parsed from the base version.
"""

from __future__ import annotations

import os
import re
from typing import Tuple

# Bump this when making a release.
_BASE_SEMVER = "0.1.0"

__version__ = os.environ.get("DASIM_VERSION") or _BASE_SEMVER


def _parse_semver(v: str) -> Tuple[int, int, int]:
    m = re.match(r"^\s*v?(\d+)\.(\d+)\.(\d+)", v)
    if not m:
        return (0, 0, 0)
    return (int(m.group(1)), int(m.group(2)), int(m.group(3)))


version_info: Tuple[int, int, int] = _parse_semver(_BASE_SEMVER)


def get_version() -> str:
    """Return the dasim package version."""
    return __version__

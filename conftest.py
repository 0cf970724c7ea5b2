import os
import random

import pytest


@pytest.fixture()
def rng() -> random.Random:
    """Seeded generator so randomized tests are reproducible."""
    return random.Random(20240611)


@pytest.fixture(autouse=True)
def _dasim_clean_env(monkeypatch):
    """
    Keep DASIM_* settings from the caller's shell out of the tests, and drop
    cached config and logging context between tests.
    """
    for key in list(os.environ):
        if key.startswith("DASIM_"):
            monkeypatch.delenv(key, raising=False)

    from dasim import logging as slog
    from dasim.config import get_config

    get_config.cache_clear()
    slog.clear_context()
    yield
    get_config.cache_clear()
    slog.clear_context()

from __future__ import annotations

import os

import pytest

from heliox.analytics.config import reload_config
from heliox.analytics.models import Sample, Target


@pytest.fixture(autouse=True)
def restore_config():
    saved = {k: v for k, v in os.environ.items() if k.startswith("ANALYTICS_")}
    yield
    for key in [k for k in os.environ if k.startswith("ANALYTICS_")]:
        del os.environ[key]
    os.environ.update(saved)
    reload_config()


@pytest.fixture
def make_target():
    """Build a Target from (ts, rtt_ms, sent, lost) rows."""

    def _make(tag: str, rows) -> Target:
        points = tuple(
            Sample(timestamp=ts, rtt_ms=rtt, sent=sent, lost=lost)
            for ts, rtt, sent, lost in rows
        )
        return Target(tag=tag, points=points)

    return _make

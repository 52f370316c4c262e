import os
import sys
from pathlib import Path as _Path

import pytest

# Ensure tests can import the local package when pytest runs from a
# different working directory.
_ROOT = _Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from strangify.core.definitions import StrangifyMode  # noqa: E402
from strangify.core.loader import load_rule_set  # noqa: E402
from strangify.core.ruleset import RuleSet  # noqa: E402
from strangify.service.config import Settings  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def default_rules() -> RuleSet:
    """The packaged rule set."""
    return load_rule_set()


@pytest.fixture
def mirror_rules() -> RuleSet:
    return RuleSet(mode=StrangifyMode.MIRROR)


@pytest.fixture
def clean_env(monkeypatch, tmp_path) -> None:
    """Isolates tests from the developer's STRANGIFY_* variables and .env file."""
    for name in list(os.environ):
        if name.upper().startswith("STRANGIFY_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings(clean_env) -> Settings:
    return Settings(quiescence_ms=0, max_workers=4, reorder_window=8)

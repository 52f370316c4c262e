import pytest

from strangify.core.exceptions import ConfigurationError
from strangify.service.config import Settings, load_settings


def test_defaults(clean_env):
    s = Settings()

    assert s.quiescence_ms == 200
    assert s.quiescence == pytest.approx(0.2)
    assert s.output_suffix == "_strange"
    assert s.include_globs == ["*"]
    assert s.max_workers >= 1
    assert s.rules_path is None
    assert s.log_format == "json"


def test_environment_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("STRANGIFY_QUIESCENCE_MS", "50")
    monkeypatch.setenv("STRANGIFY_USE_POLLING", "true")
    monkeypatch.setenv("STRANGIFY_INCLUDE_GLOBS", '["*.txt", "*.md"]')
    monkeypatch.setenv("STRANGIFY_LOG_LEVEL", "debug")

    s = load_settings()

    assert s.quiescence == pytest.approx(0.05)
    assert s.use_polling is True
    assert s.include_globs == ["*.txt", "*.md"]
    assert s.log_level == "DEBUG"


def test_each_load_reads_the_environment(clean_env, monkeypatch):
    monkeypatch.setenv("STRANGIFY_MAX_WORKERS", "2")
    first = load_settings()
    monkeypatch.setenv("STRANGIFY_MAX_WORKERS", "3")

    assert load_settings().max_workers == 3
    assert first.max_workers == 2


def test_explicit_overrides_win(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv("STRANGIFY_RULES_PATH", "/from/env.yaml")
    s = load_settings(rules_path=tmp_path / "cli.yaml")
    assert s.rules_path == tmp_path / "cli.yaml"


def test_retry_max_never_below_initial(clean_env):
    s = Settings(retry_initial_ms=2000, retry_max_ms=100)
    assert s.retry_max == pytest.approx(2.0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "LOUD"},
        {"log_format": "xml"},
        {"output_suffix": "  "},
        {"output_suffix": "a/b"},
        {"quiescence_ms": -1},
        {"max_workers": 0},
        {"reorder_window": 0},
    ],
)
def test_invalid_settings(clean_env, overrides):
    with pytest.raises(ConfigurationError):
        load_settings(**overrides)

import pytest

from classdesk.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema bootstrap failed"):
        bootstrap.ensure_runtime_schema()


def test_runtime_schema_bootstrap_seeds_slots_when_enabled(monkeypatch):
    calls = []
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_assert_required_columns", lambda: None)
    monkeypatch.setattr(bootstrap, "_seed_time_slots", lambda: calls.append("seeded"))

    bootstrap.ensure_runtime_schema()

    assert calls == ["seeded"]

import logging

import pytest

from auth_irma import main as entry_point


@pytest.fixture(autouse=True)
def keep_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def served(monkeypatch):
    calls = []
    monkeypatch.setattr(entry_point.uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))
    return calls


def test_bad_port_exits_without_serving(monkeypatch, served):
    monkeypatch.setenv("AUTH_IRMA_PORT", "not-a-port")

    with pytest.raises(SystemExit) as exc_info:
        entry_point.main()

    assert exc_info.value.code == 1
    assert served == []


def test_missing_configuration_exits_without_serving(monkeypatch, served):
    monkeypatch.delenv("CONFIG", raising=False)
    monkeypatch.delenv("AUTH_IRMA_PORT", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        entry_point.main()

    assert exc_info.value.code == 1
    assert served == []

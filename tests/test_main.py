import importlib
import logging

import pytest

import integration_hub.api as api_module
import integration_hub.main as main_module


def test_importing_the_api_leaves_logging_alone():
    root = logging.getLogger()
    sentinel = logging.NullHandler()
    root.addHandler(sentinel)
    try:
        importlib.reload(api_module)
        assert sentinel in root.handlers
    finally:
        root.removeHandler(sentinel)


def test_main_configures_logging_once_then_serves(monkeypatch: pytest.MonkeyPatch):
    calls = []
    monkeypatch.setattr(main_module, "configure_logging", lambda: calls.append("logging"))
    monkeypatch.setattr(main_module.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    monkeypatch.setenv("HUB_HOST", "0.0.0.0")
    monkeypatch.setenv("HUB_PORT", "9100")

    main_module.main()

    assert calls[0] == "logging"
    target, kwargs = calls[1]
    assert target == "integration_hub.api:app"
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9100
    assert kwargs["log_config"] is None
    assert calls.count("logging") == 1

from dataclasses import replace

from fgtsbatch import config_validation
from fgtsbatch.config import RunConfig
from fgtsbatch.config_validation import validate_runtime_config
import pytest


def test_defaults_are_valid() -> None:
    validate_runtime_config(RunConfig(), "tests")


def test_invalid_timeout() -> None:
    with pytest.raises(ValueError):
        validate_runtime_config(replace(RunConfig(), action_timeout_ms=0))


def test_invalid_max_attempts() -> None:
    with pytest.raises(ValueError):
        validate_runtime_config(replace(RunConfig(), max_attempts=0), "check")


def test_blank_keyword() -> None:
    with pytest.raises(ValueError):
        validate_runtime_config(replace(RunConfig(), spreadsheet_keyword="  "))


@pytest.mark.parametrize("url", ["127.0.0.1:9222", "ftp://host:21", "http://"])
def test_invalid_cdp_url(url: str) -> None:
    with pytest.raises(ValueError):
        validate_runtime_config(replace(RunConfig(), cdp_url=url))


def test_websocket_cdp_url_accepted() -> None:
    validate_runtime_config(replace(RunConfig(), cdp_url="ws://127.0.0.1:9222/devtools/browser/abc"))


def test_error_event_names_entrypoint(monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[tuple[str, dict]] = []
    monkeypatch.setattr(
        config_validation, "_batch_event", lambda label, **fields: events.append((label, fields))
    )

    with pytest.raises(ValueError):
        validate_runtime_config(replace(RunConfig(), action_timeout_ms=-1), "check")

    label, fields = events[0]
    assert label == "error"
    assert fields["error"] == "invalid_timeout"
    assert fields["entrypoint"] == "check"

from fgtsbatch import logging_utils


def test_batch_event_label_and_phase(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lambda msg: events.append(msg))

    logging_utils._batch_event("state", phase="retry_decision", attempt=1)

    assert events
    line = events[-1]
    assert line.startswith("[BATCH][STATE]")
    assert "phase='retry_decision'" in line
    assert "attempt=1" in line


def test_batch_event_phase_only(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lambda msg: events.append(msg))

    logging_utils._batch_event(phase="download", path="/tmp/x.pdf")

    assert events[-1] == "[BATCH][DOWNLOAD] path='/tmp/x.pdf'"


def test_batch_event_never_raises(monkeypatch):
    def _broken(msg):
        raise OSError("disk full")

    monkeypatch.setattr(logging_utils, "log_line", _broken)

    logging_utils._batch_event("error", detail="ignored")


def test_batch_event_renders_enums_and_truncates(monkeypatch):
    from fgtsbatch.workflow import WorkflowStep

    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lambda msg: events.append(msg))

    logging_utils._batch_event("step", step=WorkflowStep.PERIOD_SET, detail="x" * 1000)

    line = events[-1]
    assert "step='period_set'" in line
    assert "x..." in line
    assert len(line) < 400

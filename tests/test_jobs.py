import threading

import pytest

from receipt_print_server.backends import PrintResult
from receipt_print_server.errors import ValidationError, BackendUnavailable, PrintFailure
from receipt_print_server.events import PRINT_JOB_UPDATE, NOTIFICATION
from receipt_print_server.jobs import PrintJobManager, fit_to_paper
from receipt_print_server.protocol import CutSender

from tests.fakes import FakeRenderBackend, FakeCutSender
from tests.helpers import wait_for


@pytest.fixture
def manager(services):
    return services.manager


def _record(events, name):
    seen = []
    events.subscribe(name, lambda _event, payload: seen.append(payload))
    return seen


# =============================================================================
# Content adjustment
# =============================================================================

def test_fit_to_paper_constrains_body_and_adds_cut_spacing():
    html = fit_to_paper("<html><body>X</body></html>", 58)
    assert '<body style="width: 58mm; max-width: 58mm; margin: 0 auto;">' in html
    assert '<div class="cut-spacing" style="height: 30mm"></div></body>' in html


def test_fit_to_paper_skips_content_with_marker():
    html = '<html><body>X<div class="cut-spacing"></div></body></html>'
    assert fit_to_paper(html, 58) == html


def test_fit_to_paper_is_idempotent():
    once = fit_to_paper("<html><body>X</body></html>", 80)
    assert fit_to_paper(once, 80) == once


# =============================================================================
# Validation
# =============================================================================

@pytest.mark.parametrize("kwargs", [
    {"printer_name": "Kitchen"},
    {"printer_name": "Kitchen", "content": "", "url": None},
    {"printer_name": "", "content": "<html></html>"},
    {"printer_name": "Kitchen", "content": "<html></html>", "paper_width": -5},
    {"printer_name": "Kitchen", "content": "<html></html>", "paper_width": "wide"},
])
def test_submit_validation_creates_no_job(manager, kwargs):
    with pytest.raises(ValidationError):
        manager.submit(**kwargs)
    assert manager.get_recent_jobs() == []


def test_submit_without_backend_fails_before_creating_job(store):
    manager = PrintJobManager(None, store, cut_sender=FakeCutSender())
    with pytest.raises(BackendUnavailable):
        manager.submit("Kitchen", content="<html></html>")
    assert manager.get_recent_jobs() == []


# =============================================================================
# Paper width
# =============================================================================

def test_paper_width_request_overrides_config(manager, store):
    store.save({"printerPaperWidths": {"Kitchen": 58}})
    job, future = manager.submit("Kitchen", content="<html><body>X</body></html>", paper_width=72)
    future.result(timeout=5)
    assert job.paper_width == 72


def test_paper_width_from_config(manager, store):
    store.save({"printerPaperWidths": {"Kitchen": 58}})
    assert manager.resolve_paper_width("Kitchen") == 58


def test_paper_width_default(manager):
    assert manager.resolve_paper_width("Bar") == 80


def test_kitchen_scenario_uses_configured_width(manager, store, render_backend):
    store.save({"printerPaperWidths": {"Kitchen": 58}})

    job, future = manager.submit("Kitchen", content="<html><body>X</body></html>")
    message = future.result(timeout=5)

    assert job.paper_width == 58
    assert job.status == "completed"
    assert "58mm" in message
    kind, html = render_backend.loaded[0]
    assert kind == "content"
    assert "width: 58mm" in html
    assert render_backend.printed[0].device_name == "Kitchen"
    assert render_backend.printed[0].paper_width == 58
    assert render_backend.printed[0].margins == "none"
    assert render_backend.printed[0].print_background is True


# =============================================================================
# Pipeline
# =============================================================================

def test_url_jobs_are_loaded_untouched(manager, render_backend):
    _, future = manager.submit("Kitchen", url="http://pos.local/receipt/12")
    future.result(timeout=5)
    assert render_backend.loaded == [("url", "http://pos.local/receipt/12")]


def test_success_schedules_cut_to_configured_ip(manager, store, cut_sender):
    store.save({"printerIPs": {"Kitchen": "10.0.0.5"}})

    manager.print_job("Kitchen", content="<html><body>X</body></html>")

    assert cut_sender.sent.wait(5)
    assert cut_sender.calls == [("10.0.0.5", 9100)]


def test_cut_uses_default_ip_when_unconfigured(manager, cut_sender):
    manager.print_job("Bar", content="<html><body>X</body></html>")
    assert cut_sender.sent.wait(5)
    assert cut_sender.calls == [("192.168.68.100", 9100)]


def test_cut_waits_for_cut_delay(store, render_backend):
    cut_sender = FakeCutSender()
    manager = PrintJobManager(render_backend, store, cut_sender=cut_sender,
                              settle_delay=0, cut_delay=0.3)

    manager.print_job("Kitchen", content="<html><body>X</body></html>")
    assert cut_sender.calls == []
    assert cut_sender.sent.wait(5)


def test_settle_delay_runs_between_load_and_print(store, render_backend):
    order = []

    def fake_sleep(seconds):
        order.append(("sleep", seconds, len(render_backend.loaded), len(render_backend.printed)))

    manager = PrintJobManager(render_backend, store, cut_sender=FakeCutSender(),
                              settle_delay=0.5, cut_delay=0, sleep=fake_sleep)
    manager.print_job("Kitchen", content="<html><body>X</body></html>")

    assert order == [("sleep", 0.5, 1, 0)]


def test_backend_failure_marks_job_failed_and_skips_cut(store, events, cut_sender):
    backend = FakeRenderBackend(result=PrintResult.failed("Printer offline"))
    manager = PrintJobManager(backend, store, events=events, cut_sender=cut_sender,
                              settle_delay=0, cut_delay=0)
    notifications = _record(events, NOTIFICATION)

    job, future = manager.submit("Kitchen", content="<html><body>X</body></html>", paper_width=58)
    with pytest.raises(PrintFailure, match="Printer offline"):
        future.result(timeout=5)

    assert job.status == "failed"
    assert job.error == "Printer offline"
    assert backend.closed == 1
    assert cut_sender.calls == []
    assert notifications[0]["urgency"] == "critical"
    assert "Kitchen" in notifications[0]["body"]
    assert "58mm" in notifications[0]["body"]
    assert "Printer offline" in notifications[0]["body"]


def test_load_failure_marks_job_failed(store, cut_sender):
    backend = FakeRenderBackend(load_error=OSError("page not found"))
    manager = PrintJobManager(backend, store, cut_sender=cut_sender, settle_delay=0, cut_delay=0)

    job, future = manager.submit("Kitchen", url="http://pos.local/missing")
    with pytest.raises(PrintFailure, match="page not found"):
        future.result(timeout=5)

    assert job.status == "failed"
    assert backend.printed == []
    assert backend.closed == 1
    assert cut_sender.calls == []


def test_session_closed_after_success(manager, render_backend):
    manager.print_job("Kitchen", content="<html><body>X</body></html>")
    assert render_backend.closed == 1


def test_cut_error_does_not_change_result(store, render_backend, monkeypatch):
    def boom(*args, **kwargs):
        raise OSError("no route to host")

    monkeypatch.setattr("socket.create_connection", boom)
    sender = CutSender()
    calls = []
    original = sender.send_cut

    def tracking_send_cut(*args):
        calls.append(original(*args))

    sender.send_cut = tracking_send_cut
    manager = PrintJobManager(render_backend, store, cut_sender=sender, settle_delay=0, cut_delay=0)

    job, future = manager.submit("Kitchen", content="<html><body>X</body></html>")
    message = future.result(timeout=5)

    wait_for(lambda: calls == [False])
    assert job.status == "completed"
    assert future.result() == message


def test_status_updates_are_published(manager, events):
    updates = _record(events, PRINT_JOB_UPDATE)

    manager.print_job("Kitchen", content="<html><body>X</body></html>")

    assert updates[0][0]["status"] == "pending"
    assert updates[-1][0]["status"] == "completed"


def test_job_ids_unique(manager):
    ids = set()
    for _ in range(10):
        job, future = manager.submit("Kitchen", content="<html><body>X</body></html>")
        future.result(timeout=5)
        ids.add(job.id)
    assert len(ids) == 10


# =============================================================================
# Queue operations
# =============================================================================

def test_remove_job(manager, events):
    job, future = manager.submit("Kitchen", content="<html><body>X</body></html>")
    future.result(timeout=5)
    updates = _record(events, PRINT_JOB_UPDATE)

    assert manager.remove_job(job.id) is True
    assert manager.get_recent_jobs() == []
    assert updates == [[]]


def test_remove_unknown_job(manager):
    manager.print_job("Kitchen", content="<html><body>X</body></html>")
    before = manager.get_recent_jobs()

    assert manager.remove_job(-1) is False
    assert manager.get_recent_jobs() == before


def test_clear_failed_jobs(store, cut_sender):
    backend = FakeRenderBackend()
    manager = PrintJobManager(backend, store, cut_sender=cut_sender, settle_delay=0, cut_delay=0)

    for result in ["ok", "fail", "ok", "fail", "ok"]:
        backend.result = PrintResult.ok() if result == "ok" else PrintResult.failed("jam")
        _, future = manager.submit("Kitchen", content="<html><body>X</body></html>")
        try:
            future.result(timeout=5)
        except PrintFailure:
            pass

    assert manager.clear_failed_jobs() == 2
    assert [j.status for j in manager.get_recent_jobs()] == ["completed"] * 3


def test_removed_in_flight_job_is_not_reinserted(store, cut_sender):
    gate = threading.Event()
    backend = FakeRenderBackend(gate=gate)
    manager = PrintJobManager(backend, store, cut_sender=cut_sender, settle_delay=0, cut_delay=0)

    job, future = manager.submit("Kitchen", content="<html><body>X</body></html>")
    wait_for(lambda: backend.printed)
    assert manager.remove_job(job.id) is True

    gate.set()
    assert "Printed" in future.result(timeout=5)
    assert manager.get_recent_jobs() == []
    assert job.status == "pending"


# =============================================================================
# Concurrency
# =============================================================================

def _track_concurrency(backend):
    state = {"active": 0, "peak": 0}
    lock = threading.Lock()
    release = threading.Event()
    original = backend.open_session

    class Tracking:
        def __init__(self, session):
            self.session = session

        def __enter__(self):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            return self.session.__enter__()

        def __exit__(self, *exc):
            release.wait(0.2)
            with lock:
                state["active"] -= 1
            return self.session.__exit__(*exc)

    backend.open_session = lambda: Tracking(original())
    return state


def test_same_printer_jobs_interleave_by_default(store, cut_sender):
    backend = FakeRenderBackend()
    state = _track_concurrency(backend)
    manager = PrintJobManager(backend, store, cut_sender=cut_sender, settle_delay=0, cut_delay=0)

    futures = [manager.submit("Kitchen", content="<html><body>X</body></html>")[1] for _ in range(3)]
    for future in futures:
        future.result(timeout=5)

    assert state["peak"] > 1


def test_serialize_per_printer_runs_one_job_at_a_time(store, cut_sender):
    backend = FakeRenderBackend()
    state = _track_concurrency(backend)
    manager = PrintJobManager(backend, store, cut_sender=cut_sender, settle_delay=0, cut_delay=0,
                              serialize_per_printer=True)

    futures = [manager.submit("Kitchen", content="<html><body>X</body></html>")[1] for _ in range(3)]
    for future in futures:
        future.result(timeout=5)

    assert state["peak"] == 1

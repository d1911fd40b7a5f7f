import pytest

from receipt_print_server.app import build_services
from receipt_print_server.events import EventBus
from receipt_print_server.store import ConfigStore

from tests.fakes import FakeRenderBackend, FakePrinterBackend, FakeCutSender


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "printer-config.json")


@pytest.fixture
def render_backend():
    return FakeRenderBackend()


@pytest.fixture
def printer_backend():
    return FakePrinterBackend()


@pytest.fixture
def cut_sender():
    return FakeCutSender()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def services(store, render_backend, printer_backend, cut_sender, events):
    return build_services(
        store=store,
        render_backend=render_backend,
        printer_backend=printer_backend,
        cut_sender=cut_sender,
        events=events,
        settle_delay=0,
        cut_delay=0,
    )

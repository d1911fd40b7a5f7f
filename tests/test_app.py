import json

import pytest

from receipt_print_server import __version__
from receipt_print_server.app import create_app, build_services
from receipt_print_server.backends import PrintResult
from receipt_print_server.models import PrinterInfo
from receipt_print_server.protocol import CutSender

from tests.fakes import UnavailablePrinterBackend


@pytest.fixture
def app(services):
    app = create_app(services)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def _post(client, path, payload):
    return client.post(path, data=json.dumps(payload), content_type="application/json")


def test_status_endpoint(client):
    response = client.get("/status")
    assert response.status_code == 200
    data = response.get_json()
    assert data["running"] is True
    assert data["version"] == __version__
    assert data["port"] == 9100
    assert data["printer_ip_default"] == "192.168.68.100"
    assert data["printer_raw_port"] == 9100
    assert "ip" in data


def test_cors_headers(client):
    response = client.get("/status", headers={"Origin": "http://pos.local"})
    assert response.headers.get("Access-Control-Allow-Origin") in ("*", "http://pos.local")


def test_printers_endpoint(client, printer_backend):
    printer_backend.printers = [PrinterInfo("Kitchen", display_name="Kitchen POS-80", is_default=True, status=3)]

    response = client.get("/printers")
    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "printers": [{"name": "Kitchen", "displayName": "Kitchen POS-80", "isDefault": True, "status": 3}],
    }


def test_printers_endpoint_backend_unavailable(store, render_backend, cut_sender):
    services = build_services(store=store, render_backend=render_backend,
                              printer_backend=UnavailablePrinterBackend(), cut_sender=cut_sender)
    client = create_app(services).test_client()

    response = client.get("/printers")
    assert response.status_code == 500
    assert response.get_json()["success"] is False


def test_cut_endpoint_uses_requested_ip(client, cut_sender):
    response = _post(client, "/cut", {"printerIp": "10.0.0.7"})
    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Cut sent to 10.0.0.7:9100"}
    assert cut_sender.calls == [("10.0.0.7", 9100)]


def test_cut_endpoint_defaults_ip(client, cut_sender):
    response = client.post("/cut")
    assert response.status_code == 200
    assert cut_sender.calls == [("192.168.68.100", 9100)]


def test_print_requires_printer_name(client):
    response = _post(client, "/print", {"content": "<html></html>"})
    assert response.status_code == 400
    assert response.get_json() == {"success": False, "error": "printerName is required"}


def test_print_requires_content_or_url(client, services):
    response = _post(client, "/print", {"printerName": "Kitchen"})
    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert services.manager.get_recent_jobs() == []


def test_print_success(client, store, cut_sender):
    store.save({"printerPaperWidths": {"Kitchen": 58}})

    response = _post(client, "/print", {"printerName": "Kitchen", "content": "<html><body>X</body></html>"})
    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert "58mm" in data["message"]
    assert cut_sender.sent.wait(5)


def test_print_failure_returns_500(client, render_backend, cut_sender):
    render_backend.result = PrintResult.failed("Out of paper")

    response = _post(client, "/print", {"printerName": "Kitchen", "content": "<html><body>X</body></html>"})
    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "Out of paper"}
    assert cut_sender.calls == []


def test_print_without_render_backend_returns_500(store, printer_backend, cut_sender):
    services = build_services(store=store, printer_backend=printer_backend, cut_sender=cut_sender)
    services.manager.backend = None
    client = create_app(services).test_client()

    response = _post(client, "/print", {"printerName": "Kitchen", "content": "<html></html>"})
    assert response.status_code == 500
    assert services.manager.get_recent_jobs() == []


def test_jobs_endpoint(client):
    _post(client, "/print", {"printerName": "Kitchen", "content": "<html><body>X</body></html>"})

    response = client.get("/jobs")
    data = response.get_json()
    assert data["count"] == 1
    assert data["jobs"][0]["printerName"] == "Kitchen"
    assert data["jobs"][0]["status"] == "completed"


def test_cut_endpoint_malformed_ip_still_answers(client, services):
    services.cut_sender = CutSender(timeout=1)
    host = "a" * 70 + ".local"

    response = _post(client, "/cut", {"printerIp": host})
    assert response.status_code == 200
    assert response.get_json()["success"] is True


@pytest.mark.parametrize("body", [["x"], "Kitchen", 42])
def test_print_non_object_body_is_rejected(client, services, body):
    response = _post(client, "/print", body)
    assert response.status_code == 400
    assert response.get_json() == {"success": False, "error": "printerName is required"}
    assert services.manager.get_recent_jobs() == []


def test_cut_non_object_body_uses_default_ip(client, cut_sender):
    response = _post(client, "/cut", ["10.0.0.7"])
    assert response.status_code == 200
    assert cut_sender.calls == [("192.168.68.100", 9100)]

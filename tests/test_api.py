import pytest
from fastapi.testclient import TestClient

from catalogsync.api.main import app, get_importer
from catalogsync.logic.importer import ImportOutcome, ImportReport, ImportStatus


class StubImporter:
    def __init__(self):
        self.received = []

    def import_batch(self, records):
        self.received.extend(records)
        report = ImportReport()
        report.add(ImportOutcome(ImportStatus.CREATED, "Mug", product_id=1, handle="mug", variants_count=0))
        report.add(ImportOutcome(ImportStatus.FAILED, "Unknown", error="The 'title' field is required"))
        return report


@pytest.fixture()
def importer():
    stub = StubImporter()
    app.dependency_overrides[get_importer] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


@pytest.fixture()
def client(importer):
    return TestClient(app)


def test_import_endpoint_reports_outcomes(client, importer):
    response = client.post("/api/storefront/import", json={"products": [{"title": "Mug", "price": 3}, {}]})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["imported"], body["skipped"], body["errors"]) == (1, 0, 1)
    assert body["message"] == "1 product(s) imported, 0 skipped (duplicate), 1 error(s)"
    assert body["details"]["created"][0] == {
        "status": "created",
        "title": "Mug",
        "product_id": 1,
        "handle": "mug",
        "variants_count": 0,
        "images_count": 0,
    }
    assert body["details"]["skipped"] == []
    assert body["details"]["failures"][0]["error"] == "The 'title' field is required"
    assert len(importer.received) == 2


def test_import_endpoint_requires_products_list(client, importer):
    response = client.post("/api/storefront/import", json={"items": []})
    assert response.status_code == 422
    assert importer.received == []


def test_health(client):
    body = client.get("/api/storefront/health").json()
    assert body["status"] == "ok"
    assert body["timestamp"]

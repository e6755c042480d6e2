"""
Tests for the budget and attachment endpoints.
"""
import io

import anyio
import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient

from presupuestos.config import settings
from presupuestos.dependencies import get_attachment_manager
from presupuestos.exceptions import BadRequestError
from presupuestos.main import app
from presupuestos.routes.attachments import content_disposition
from presupuestos.routes.uploads import read_uploads
from presupuestos.schemas.budget import BudgetCreate
from presupuestos.services.attachment_manager import AttachmentManager
from tests.fakes import InMemoryObjectStore, InMemoryRecordStore, make_upload

MISSING_ID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
def stores():
    return InMemoryRecordStore(), InMemoryObjectStore()


@pytest.fixture
def client(stores):
    manager = AttachmentManager(*stores)
    app.dependency_overrides[get_attachment_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_budget(client, title="Q1 Marketing", files=None, **data):
    form = {"title": title, "deadline": "2025-03-31", **data}
    return client.post("/api/v1/budgets", data=form, files=files or [])


def test_create_budget_with_file(client):
    response = create_budget(
        client,
        details="Campaign plan",
        files=[("files", ("plan.pdf", b"x" * 2048, "application/pdf"))],
    )

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Q1 Marketing"
    assert body["details"] == "Campaign plan"
    assert body["deadline"] == "2025-03-31"
    assert "is_overdue" in body and "days_remaining" in body
    assert len(body["attachments"]) == 1
    attachment = body["attachments"][0]
    assert attachment["file_name"] == "plan.pdf"
    assert attachment["size_bytes"] == 2048
    assert attachment["size_label"] == "2 KB"
    assert attachment["storage_path"].startswith(f"{body['id']}/")


def test_create_budget_without_files(client):
    response = create_budget(client)

    assert response.status_code == 201
    assert response.json()["attachments"] == []


def test_create_budget_with_blank_title_is_rejected(client, stores):
    response = create_budget(client, title="   ")

    assert response.status_code == 400
    assert stores[0].tables["budgets"] == {}


def test_create_budget_with_invalid_deadline_is_rejected(client):
    response = client.post("/api/v1/budgets", data={"title": "Q1", "deadline": "not-a-date"})

    assert response.status_code == 422


def test_oversized_file_is_rejected_before_storing(client, stores, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 1024)

    response = create_budget(client, files=[("files", ("big.pdf", b"x" * 2048, "application/pdf"))])

    assert response.status_code == 400
    assert stores[0].tables["budgets"] == {}
    assert stores[1].blobs == {}


@pytest.mark.anyio
async def test_known_oversized_upload_is_rejected_before_reading(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 1024)
    body = io.BytesIO(b"small")
    upload = UploadFile(body, filename="big.pdf", size=4096)

    with pytest.raises(BadRequestError):
        await read_uploads([upload])
    assert body.tell() == 0


def test_upload_failure_reports_failing_file(client, stores):
    stores[1].fail("put", "bucket", after=1)

    response = create_budget(client, files=[
        ("files", ("a.pdf", b"a", "application/pdf")),
        ("files", ("b.pdf", b"b", "application/pdf")),
    ])

    assert response.status_code == 500
    body = response.json()
    assert body["detail"] == "Could not save attachment 'b.pdf'"
    assert body["file_index"] == 1
    assert body["file_name"] == "b.pdf"
    assert body["budget_id"] in stores[0].tables["budgets"]


def test_list_budgets_newest_first(client):
    for title in ("A", "B", "C"):
        create_budget(client, title=title)

    response = client.get("/api/v1/budgets")

    assert response.status_code == 200
    assert [b["title"] for b in response.json()] == ["C", "B", "A"]


def test_get_budget_detail(client):
    budget = create_budget(client, files=[("files", ("plan.pdf", b"pdf", "application/pdf"))]).json()

    response = client.get(f"/api/v1/budgets/{budget['id']}")

    assert response.status_code == 200
    assert response.json()["id"] == budget["id"]
    assert [a["file_name"] for a in response.json()["attachments"]] == ["plan.pdf"]


def test_get_missing_budget_returns_404(client):
    response = client.get(f"/api/v1/budgets/{MISSING_ID}")

    assert response.status_code == 404
    assert response.json() == {"detail": "Budget not found"}


def test_malformed_budget_id_returns_422(client):
    assert client.get("/api/v1/budgets/not-a-uuid").status_code == 422


def test_update_budget_and_append_files(client):
    budget = create_budget(client, files=[("files", ("a.pdf", b"a", "application/pdf"))]).json()

    response = client.put(
        f"/api/v1/budgets/{budget['id']}",
        data={"title": "Q1 Marketing v2", "deadline": "2025-04-30", "details": "Revised"},
        files=[("files", ("b.pdf", b"b", "application/pdf"))],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Q1 Marketing v2"
    assert body["deadline"] == "2025-04-30"
    assert [a["file_name"] for a in body["attachments"]] == ["a.pdf", "b.pdf"]


def test_update_missing_budget_returns_404(client):
    response = client.put(f"/api/v1/budgets/{MISSING_ID}", data={"title": "x", "deadline": "2025-01-01"})

    assert response.status_code == 404


def test_add_and_list_attachments(client):
    budget = create_budget(client).json()

    response = client.post(
        f"/api/v1/budgets/{budget['id']}/attachments",
        files=[("files", ("a.txt", b"a", "text/plain")), ("files", ("b.txt", b"bb", "text/plain"))],
    )
    assert response.status_code == 201
    assert [a["file_name"] for a in response.json()] == ["a.txt", "b.txt"]

    listed = client.get(f"/api/v1/budgets/{budget['id']}/attachments").json()
    assert [a["size_bytes"] for a in listed] == [1, 2]


def test_add_attachments_to_missing_budget_returns_404(client, stores):
    response = client.post(
        f"/api/v1/budgets/{MISSING_ID}/attachments",
        files=[("files", ("a.txt", b"a", "text/plain"))],
    )

    assert response.status_code == 404
    assert stores[1].blobs == {}


def test_download_attachment(client):
    budget = create_budget(client, files=[("files", ("plan.pdf", b"%PDF-1.7", "application/pdf"))]).json()
    attachment = budget["attachments"][0]

    response = client.get(f"/api/v1/attachments/{attachment['id']}/download")

    assert response.status_code == 200
    assert response.content == b"%PDF-1.7"
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="plan.pdf"' in response.headers["content-disposition"]


def test_content_disposition_drops_control_characters():
    header = content_disposition("plan\r\n.pdf")

    assert "\r" not in header and "\n" not in header
    assert 'filename="plan.pdf"' in header
    assert "filename*=UTF-8''plan%0D%0A.pdf" in header


def test_download_file_name_with_line_break(client, stores):
    manager = AttachmentManager(*stores)
    budget = anyio.run(
        manager.create_budget_with_attachments,
        BudgetCreate(title="Q1 Marketing", deadline="2025-03-31"),
        [make_upload("plan\r\n.pdf")],
    )
    attachment = anyio.run(manager.list_attachments, budget.id)[0]

    response = client.get(f"/api/v1/attachments/{attachment.id}/download")

    assert response.status_code == 200
    assert 'filename="plan.pdf"' in response.headers["content-disposition"]


def test_delete_attachment_then_download_returns_404(client):
    budget = create_budget(client, files=[("files", ("plan.pdf", b"pdf", "application/pdf"))]).json()
    attachment_id = budget["attachments"][0]["id"]

    assert client.delete(f"/api/v1/attachments/{attachment_id}").status_code == 204
    assert client.get(f"/api/v1/attachments/{attachment_id}/download").status_code == 404
    assert client.delete(f"/api/v1/attachments/{attachment_id}").status_code == 404


def test_delete_budget_removes_files(client, stores):
    budget = create_budget(client, files=[("files", ("plan.pdf", b"pdf", "application/pdf"))]).json()

    response = client.delete(f"/api/v1/budgets/{budget['id']}")

    assert response.status_code == 204
    assert client.get(f"/api/v1/budgets/{budget['id']}").status_code == 404
    assert client.get(f"/api/v1/budgets/{budget['id']}/attachments").json() == []
    assert stores[1].blobs == {}


def test_delete_budget_storage_failure_returns_500(client, stores):
    budget = create_budget(client, files=[("files", ("plan.pdf", b"pdf", "application/pdf"))]).json()
    stores[1].fail("delete_many", "bucket")

    response = client.delete(f"/api/v1/budgets/{budget['id']}")

    assert response.status_code == 500
    assert response.json() == {"detail": "Could not delete the budget files"}
    assert client.get(f"/api/v1/budgets/{budget['id']}").status_code == 200


def test_health_without_database_is_degraded(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "degraded", "database": "disconnected"}

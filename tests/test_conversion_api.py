"""API tests for the /api/convert-document endpoint."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeCloudConvert, job_payload, leftover_workspaces
from mediagate.controllers.conversion import content_disposition
from mediagate.controllers.dependencies import get_conversion_pipeline
from mediagate.main import app
from mediagate.pipelines import ConversionPipeline
from mediagate.services.document_conversion import DocumentConverter

ENDPOINT = "/api/convert-document"
DOCX = b"PK\x03\x04 word document bytes"


@pytest.fixture
def cloudconvert() -> FakeCloudConvert:
    return FakeCloudConvert()


@pytest.fixture
def converter(cloudconvert) -> DocumentConverter:
    return DocumentConverter(cloudconvert, poll_interval=0.01, wait_timeout=1.0)


@pytest.fixture
def client(workspaces, converter):
    pipeline = ConversionPipeline(workspaces=workspaces, converter=converter)
    app.dependency_overrides[get_conversion_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


def _post(client, target_format="pdf", name="report.docx", data=DOCX):
    return client.post(
        ENDPOINT,
        data={"targetFormat": target_format, "inputFileName": name},
        files={"document": ("blob", data, "application/octet-stream")},
    )


def test_document_is_converted_and_returned_as_attachment(client, cloudconvert, workspace_root):
    response = _post(client)

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 converted"
    assert response.headers["content-type"].startswith("application/pdf")
    assert response.headers["content-disposition"] == 'attachment; filename="report.pdf"'
    assert cloudconvert.calls == ["create_job", "upload", "wait_for_job", "download"]

    path, filename, uploaded = cloudconvert.uploaded[0]
    assert filename == "report.docx"
    assert uploaded == DOCX
    assert path.name == "report.docx"
    assert cloudconvert.tasks["convert-file"]["output_format"] == "pdf"
    assert leftover_workspaces(workspace_root) == []


def test_target_format_is_case_insensitive(client, cloudconvert):
    response = _post(client, target_format="PDF")

    assert response.status_code == 200
    assert cloudconvert.tasks["convert-file"]["output_format"] == "pdf"


def test_unsupported_format_is_rejected_before_provider_call(client, cloudconvert, workspace_root):
    response = _post(client, target_format="exe")

    assert response.status_code == 400
    assert response.json() == {"error": "Unsupported target format: exe", "details": None}
    assert cloudconvert.calls == []
    assert leftover_workspaces(workspace_root) == []


def test_missing_document_is_rejected(client, cloudconvert):
    response = client.post(ENDPOINT, data={"targetFormat": "pdf", "inputFileName": "a.docx"})

    assert response.status_code == 400
    assert response.json()["error"] == "No document file provided."
    assert cloudconvert.calls == []


def test_missing_input_file_name_is_rejected(client):
    response = client.post(
        ENDPOINT,
        data={"targetFormat": "pdf"},
        files={"document": ("report.docx", DOCX, "application/octet-stream")},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "No document file provided."


def test_empty_document_is_rejected(client, cloudconvert):
    response = _post(client, data=b"")

    assert response.status_code == 400
    assert response.json()["error"] == "Uploaded document is empty."
    assert cloudconvert.calls == []


def test_failed_job_reports_task_message(workspaces, workspace_root):
    fake = FakeCloudConvert(final=job_payload("error", failed_message="Encrypted file"))
    pipeline = ConversionPipeline(
        workspaces=workspaces,
        converter=DocumentConverter(fake, poll_interval=0.01, wait_timeout=1.0),
    )
    app.dependency_overrides[get_conversion_pipeline] = lambda: pipeline
    try:
        response = _post(TestClient(app), name="secret.pdf", target_format="docx")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    payload = response.json()
    assert payload["error"] == "CloudConvert job failed: Encrypted file"
    assert payload["details"]["message"] == "Encrypted file"
    assert payload["details"]["job_id"] == "job-123"
    assert "download" not in fake.calls
    assert leftover_workspaces(workspace_root) == []


def test_unconfigured_provider_is_server_error(workspaces, workspace_root):
    pipeline = ConversionPipeline(workspaces=workspaces, converter=DocumentConverter(None))
    app.dependency_overrides[get_conversion_pipeline] = lambda: pipeline
    try:
        response = _post(TestClient(app))
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json()["error"] == "Server configuration error for conversion service."
    assert leftover_workspaces(workspace_root) == []


def test_content_disposition_ascii_and_unicode_names():
    assert content_disposition("report.pdf") == 'attachment; filename="report.pdf"'
    assert content_disposition('we"ird\r\n.pdf') == 'attachment; filename="weird.pdf"'
    assert content_disposition("résumé.pdf") == (
        "attachment; filename=\"rsum.pdf\"; filename*=UTF-8''r%C3%A9sum%C3%A9.pdf"
    )

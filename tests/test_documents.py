"""
Document store endpoint tests.
"""
import pytest

from doctext.main import app
from doctext.services.document_store import InMemoryDocumentRepository, get_document_repository

BASE = "/api/v1/documents"


@pytest.fixture(autouse=True)
def repository():
    repo = InMemoryDocumentRepository()
    app.dependency_overrides[get_document_repository] = lambda: repo
    yield repo
    app.dependency_overrides.clear()


def create(client, **overrides):
    body = {"title": "예산 보고서", "content": "2024년 예산 편성 결과입니다."}
    body.update(overrides)
    return client.post(BASE, json=body)


def test_create_and_get(client):
    response = create(client, type="report", metadata={"author": "기획팀", "tags": ["예산"]})

    assert response.status_code == 201
    created = response.json()
    assert created["success"] is True
    assert created["message"] == "문서가 성공적으로 생성되었습니다."
    document = created["data"]
    assert document["id"] == 1
    assert document["type"] == "report"
    assert document["status"] == "draft"
    assert document["metadata"]["author"] == "기획팀"

    fetched = client.get(f"{BASE}/1").json()["data"]
    assert fetched == document


def test_list_documents(client):
    create(client)
    create(client, title="두 번째 문서")

    data = client.get(BASE).json()

    assert data["count"] == 2
    assert [d["id"] for d in data["data"]] == [1, 2]


def test_update_keeps_id_and_unset_fields(client):
    create(client)

    response = client.put(f"{BASE}/1", json={"status": "published", "id": 99})

    assert response.status_code == 200
    document = response.json()["data"]
    assert document["id"] == 1
    assert document["status"] == "published"
    assert document["title"] == "예산 보고서"


def test_delete_document(client):
    create(client)

    response = client.delete(f"{BASE}/1")

    assert response.status_code == 200
    assert response.json()["data"]["id"] == 1
    assert client.get(f"{BASE}/1").status_code == 404


def test_not_found(client):
    for response in (
        client.get(f"{BASE}/42"),
        client.put(f"{BASE}/42", json={"title": "수정"}),
        client.delete(f"{BASE}/42"),
    ):
        assert response.status_code == 404
        assert response.json()["detail"] == "문서를 찾을 수 없습니다."


@pytest.mark.parametrize("overrides", [
    {"title": ""},
    {"title": "   "},
    {"content": ""},
    {"title": "가" * 201},
    {"content": "나" * 10001},
    {"type": "memo"},
    {"status": "pending"},
])
def test_validation_errors(client, overrides):
    response = create(client, **overrides)

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


def test_missing_required_fields(client):
    response = client.post(BASE, json={"title": "제목만 있음"})
    assert response.status_code == 400


def test_boundary_lengths_are_accepted(client):
    response = create(client, title="가" * 200, content="나" * 10000)
    assert response.status_code == 201

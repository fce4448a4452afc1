"""
Tests for /api/tags endpoints.
"""

from fastapi import status


def test_create_and_list_tags(client, speaker_headers):
    created = client.post("/api/tags", json={"name": "python"}, headers=speaker_headers)
    client.post("/api/tags", json={"name": "async"}, headers=speaker_headers)

    response = client.get("/api/tags", headers=speaker_headers)

    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["data"]["tag"]["name"] == "python"
    assert [t["name"] for t in response.json()["data"]["tags"]] == ["async", "python"]


def test_search_tags(client, speaker_headers):
    for name in ("python", "pytest", "rust"):
        client.post("/api/tags", json={"name": name}, headers=speaker_headers)

    response = client.get("/api/tags?search=rus", headers=speaker_headers)

    assert [t["name"] for t in response.json()["data"]["tags"]] == ["rust"]


def test_blank_tag_name(client, speaker_headers):
    response = client.post("/api/tags", json={"name": "  "}, headers=speaker_headers)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert "name" in response.json()["data"]["errors"]


def test_tags_require_authentication(client):
    assert client.get("/api/tags").status_code == status.HTTP_401_UNAUTHORIZED

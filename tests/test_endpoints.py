"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from entity_photos.api.app import create_app


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_migrate_photos_reports_partial_success(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/photos/migrate",
        json={
            "entityId": "E",
            "providerId": "ChIJ123",
            "references": [
                {"referenceId": "r1", "width": 1200, "height": 800},
                {"referenceId": "r2", "width": 640, "height": 480},
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 1
    assert data["total"] == 2
    assert data["storedPhotos"][0]["referenceId"] == "r1"
    assert data["storedPhotos"][0]["storedUrl"] == (
        "https://storage.test/entity-images/E/places/r1.jpeg"
    )


def test_migrate_photos_rejects_missing_entity(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/photos/migrate", json={"references": []})

    assert response.status_code == 422


def test_migration_job_runs_batch(container, entity_repository) -> None:
    entity_repository.add("E", ["r1"])
    client = TestClient(create_app(container))

    response = client.post("/jobs/migrate-photos", json={"batchSize": 5})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "migrated": 1,
        "failed": 0,
        "total": 1,
        "hasMore": False,
    }


def test_migration_job_without_body_uses_default_batch(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/jobs/migrate-photos")

    assert response.status_code == 200
    assert response.json()["total"] == 0


def test_migration_job_reports_fetch_failure(container, entity_repository) -> None:
    entity_repository.fail_listing = True
    client = TestClient(create_app(container))

    response = client.post("/jobs/migrate-photos")

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert "database unreachable" in data["error"]


def test_validate_photos(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/photos/validate",
        json={
            "urls": ["https://img.test/a.webp", "https://img.test/broken.jpg"],
            "maxConcurrency": 2,
        },
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert results["https://img.test/a.webp"]["isValid"] is True
    assert results["https://img.test/a.webp"]["qualityScore"] == 72
    assert results["https://img.test/broken.jpg"]["errorKind"] == "HTTP_404"
    assert results["https://img.test/broken.jpg"]["qualityScore"] == 0


def test_entity_photos_migrates_on_demand(container, entity_repository) -> None:
    entity_repository.add("E", ["r1"])
    client = TestClient(create_app(container))

    response = client.get("/entities/E/photos")

    assert response.status_code == 200
    data = response.json()
    assert data["entityId"] == "E"
    assert [photo["url"] for photo in data["photos"]] == [
        "https://storage.test/entity-images/E/places/r1.jpeg"
    ]


def test_entity_photos_empty_for_unknown_entity(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/entities/missing/photos")

    assert response.status_code == 200
    assert response.json()["photos"] == []


def test_admin_stats_requires_token(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/photo-cache/stats")

    assert response.status_code == 401


def test_admin_stats_and_purge(container, entity_repository) -> None:
    entity_repository.add("E", ["r1"])
    client = TestClient(create_app(container))
    client.post("/jobs/migrate-photos")

    stats = client.get(
        "/admin/photo-cache/stats", headers={"X-Admin-Token": "admin-token"}
    )
    purge = client.post(
        "/admin/photo-cache/purge", headers={"X-Admin-Token": "admin-token"}
    )

    assert stats.status_code == 200
    assert stats.json() == {
        "totalCached": 1,
        "expired": 0,
        "entitiesCached": 1,
        "byQuality": {"medium": 1},
    }
    assert purge.json() == {"deleted": 0}

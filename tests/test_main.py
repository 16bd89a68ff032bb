from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.cache import CacheStore
from app.main import register_routes
from app.services.refresh import RefreshScheduler
from conftest import FakeRemote, build_settings, make_movies, make_video


def _build_app(remote: FakeRemote, **overrides) -> FastAPI:
    settings = build_settings(**overrides)
    service = remote.build_service(settings, CacheStore())
    app = FastAPI()
    register_routes(app)
    app.state.browse_service = service
    app.state.refresh_scheduler = RefreshScheduler(settings, service)
    return app


def test_channels_endpoint_lists_both_channels(remote: FakeRemote) -> None:
    app = _build_app(remote)

    with TestClient(app) as client:
        response = client.get("/channels")

    assert response.status_code == 200
    ids = [channel["id"] for channel in response.json()["channels"]]
    assert ids == ["trailers", "extras"]


def test_extras_items_requires_enabled_channel(remote: FakeRemote) -> None:
    app = _build_app(remote)

    with TestClient(app) as client:
        response = client.get("/channels/extras/items")

    assert response.status_code == 404


def test_extras_items_browse_categories(remote: FakeRemote) -> None:
    remote.pages["upcoming"] = [make_movies(1, 2)]
    app = _build_app(remote, ENABLE_EXTRAS_CHANNEL=True)

    with TestClient(app) as client:
        root = client.get("/channels/extras/items")
        movies = client.get(
            "/channels/extras/items", params={"folderId": "upcoming", "startIndex": "0"}
        )

    assert root.json()["totalRecordCount"] == 4
    payload = movies.json()
    assert [item["id"] for item in payload["items"]] == ["1", "2"]
    assert payload["items"][0]["folderType"] == "Container"
    assert payload["items"][0]["imageUrl"].endswith("/poster-1.jpg")


def test_extras_items_rejects_negative_start_index(remote: FakeRemote) -> None:
    app = _build_app(remote, ENABLE_EXTRAS_CHANNEL=True)

    with TestClient(app) as client:
        response = client.get("/channels/extras/items", params={"startIndex": "-1"})

    assert response.status_code == 400


def test_remote_failures_surface_as_bad_gateway(remote: FakeRemote) -> None:
    remote.failing_lists.add("upcoming")
    app = _build_app(remote)

    with TestClient(app) as client:
        response = client.get("/channels/trailers/items")

    assert response.status_code == 502


def test_trailer_items_and_media_lookup(remote: FakeRemote) -> None:
    remote.pages["upcoming"] = [make_movies(1, 1)]
    remote.videos[1] = [make_video("t1")]
    remote.formats["key-t1"] = [{"bitrate": 128, "url": "https://cdn.example.com/t1.mp4"}]
    app = _build_app(remote, ENABLE_TRAILERS_NOW_PLAYING=False)

    with TestClient(app) as client:
        listing = client.get("/channels/trailers/items")
        media = client.get("/media/t1")
        missing = client.get("/media/unknown")

    item = listing.json()["items"][0]
    assert item["extraType"] == "Trailer"
    assert item["trailerTypes"] == ["ComingSoonToTheaters"]
    assert item["providerIds"] == {"Tmdb": "1"}
    assert item["mediaSources"][0]["isRemote"] is True
    assert media.json()["mediaSources"][0]["path"] == "https://cdn.example.com/t1.mp4"
    assert missing.json() == {"mediaSources": []}


def test_refresh_endpoint_reports_status(remote: FakeRemote) -> None:
    remote.pages["upcoming"] = [make_movies(1, 1)]
    app = _build_app(remote, ENABLE_TRAILERS_NOW_PLAYING=False)

    with TestClient(app) as client:
        response = client.post("/refresh")

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["itemCount"] == 0

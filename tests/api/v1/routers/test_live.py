"""Unit tests for live session router endpoints."""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from httpx import ASGITransport, AsyncClient

from app.api.errors import app_error_handler, app_validation_exception_handler
from app.api.v1.routers.live import router
from app.domain.live.session.session_registry import SessionRegistry
from app.utils.app_errors import AppError


@pytest.fixture
def test_app(registry: SessionRegistry) -> FastAPI:
    """Create FastAPI test app with the registry on app state."""
    app = FastAPI()
    app.state.live_registry = registry
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return app


@pytest_asyncio.fixture
async def client(test_app: FastAPI):
    """Create async HTTP client for testing."""
    transport = ASGITransport(app=test_app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _start(client: AsyncClient, channel_name: str = "c1", **extra):
    payload = {"channel_name": channel_name, "owner_display_name": "Host", **extra}
    return await client.post("/live/start_session", json=payload)


class TestStartSession:
    """Tests for POST /live/start_session endpoint."""

    async def test_start_session_success(self, client: AsyncClient):
        """Should create a live session with defaults applied."""
        # Act
        response = await _start(client, "c1")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        results = data["results"]
        assert results["channel_name"] == "c1"
        assert results["owner_id"] == "anonymous"
        assert results["owner_display_name"] == "Host"
        assert results["title"] == "Live Stream"
        assert results["thumbnail_ref"] == ""
        assert results["viewer_count"] == 0
        assert results["like_count"] == 0
        assert results["comments"] == []
        assert results["is_live"] is True
        assert results["started_at"].endswith("+00:00")

    async def test_start_session_with_details(self, client: AsyncClient):
        """Should store owner, title and thumbnail when given."""
        # Act
        response = await _start(client, "c1", owner_id="u1", title="Cooking", thumbnail_ref="https://x/t.jpg")

        # Assert
        results = response.json()["results"]
        assert results["owner_id"] == "u1"
        assert results["title"] == "Cooking"
        assert results["thumbnail_ref"] == "https://x/t.jpg"

    @pytest.mark.parametrize(
        "payload",
        [
            {"owner_display_name": "Host"},
            {"channel_name": "c1"},
            {"channel_name": "", "owner_display_name": "Host"},
        ],
    )
    async def test_start_session_missing_fields(self, client: AsyncClient, payload: dict):
        """Should return 400 E_INVALID_REQUEST when required fields are missing."""
        # Act
        response = await client.post("/live/start_session", json=payload)

        # Assert
        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_INVALID_REQUEST"


class TestEndSession:
    """Tests for POST /live/end_session endpoint."""

    async def test_end_session_success(self, client: AsyncClient, fake_clock):
        """Should report duration and final viewer count."""
        # Arrange
        await _start(client, "c1")
        await client.post("/live/update_viewers", json={"channel_name": "c1", "increment": True})
        fake_clock.advance(seconds=3)

        # Act
        response = await client.post("/live/end_session", json={"channel_name": "c1"})

        # Assert
        assert response.status_code == 200
        results = response.json()["results"]
        assert results == {"channel_name": "c1", "duration_ms": 3000, "final_viewer_count": 1}

    async def test_end_session_not_found(self, client: AsyncClient):
        """Should return 404 E_SESSION_NOT_FOUND for unknown channels."""
        # Act
        response = await client.post("/live/end_session", json={"channel_name": "nope"})

        # Assert
        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_SESSION_NOT_FOUND"

    async def test_end_session_missing_channel(self, client: AsyncClient):
        """Should return 422 E_INVALID_REQUEST when the body is malformed."""
        # Act
        response = await client.post("/live/end_session", json={})

        # Assert
        assert response.status_code == 422
        assert response.json()["errcode"] == "E_INVALID_REQUEST"


class TestQueries:
    """Tests for GET list_active, get_session and list_comments."""

    async def test_list_active_most_recent_first(self, client: AsyncClient, fake_clock):
        """Should list sessions newest first with a count."""
        # Arrange
        for name in ["a", "b", "c"]:
            fake_clock.advance(seconds=1)
            await _start(client, name)

        # Act
        response = await client.get("/live/list_active")

        # Assert
        assert response.status_code == 200
        results = response.json()["results"]
        assert results["count"] == 3
        assert [s["channel_name"] for s in results["sessions"]] == ["c", "b", "a"]

    async def test_list_active_empty(self, client: AsyncClient):
        """Should return an empty list when nothing is live."""
        # Act
        response = await client.get("/live/list_active")

        # Assert
        assert response.json()["results"] == {"sessions": [], "count": 0}

    async def test_get_session(self, client: AsyncClient):
        """Should return the session with its counters."""
        # Arrange
        await _start(client, "c1")
        await client.post("/live/like", json={"channel_name": "c1"})

        # Act
        response = await client.get("/live/get_session", params={"channel_name": "c1"})

        # Assert
        assert response.status_code == 200
        assert response.json()["results"]["like_count"] == 1

    async def test_get_session_not_found(self, client: AsyncClient):
        """Should return 404 for unknown channels."""
        # Act
        response = await client.get("/live/get_session", params={"channel_name": "nope"})

        # Assert
        assert response.status_code == 404
        assert response.json()["errcode"] == "E_SESSION_NOT_FOUND"

    async def test_list_comments_not_found(self, client: AsyncClient):
        """Should return 404 for unknown channels."""
        # Act
        response = await client.get("/live/list_comments", params={"channel_name": "nope"})

        # Assert
        assert response.status_code == 404


class TestMutations:
    """Tests for POST update_viewers, add_comment and like."""

    async def test_update_viewers_clamps_at_zero(self, client: AsyncClient):
        """Should never report a negative viewer count."""
        # Arrange
        await _start(client, "c1")

        # Act
        up = await client.post("/live/update_viewers", json={"channel_name": "c1", "increment": True})
        down1 = await client.post("/live/update_viewers", json={"channel_name": "c1", "increment": False})
        down2 = await client.post("/live/update_viewers", json={"channel_name": "c1", "increment": False})

        # Assert
        assert up.json()["results"] == {"channel_name": "c1", "viewer_count": 1}
        assert down1.json()["results"]["viewer_count"] == 0
        assert down2.json()["results"]["viewer_count"] == 0

    async def test_update_viewers_not_found(self, client: AsyncClient):
        """Should return 404 for unknown channels."""
        # Act
        response = await client.post("/live/update_viewers", json={"channel_name": "nope", "increment": True})

        # Assert
        assert response.status_code == 404
        assert response.json()["errcode"] == "E_SESSION_NOT_FOUND"

    async def test_update_viewers_requires_direction(self, client: AsyncClient):
        """Should return 422 and leave the count unchanged when increment is missing."""
        # Arrange
        await _start(client, "c1")

        # Act
        response = await client.post("/live/update_viewers", json={"channel_name": "c1"})

        # Assert
        assert response.status_code == 422
        assert response.json()["errcode"] == "E_INVALID_REQUEST"
        session = await client.get("/live/get_session", params={"channel_name": "c1"})
        assert session.json()["results"]["viewer_count"] == 0

    async def test_add_and_list_comments(self, client: AsyncClient):
        """Should append comments and list them oldest first."""
        # Arrange
        await _start(client, "c1")

        # Act
        first = await client.post(
            "/live/add_comment", json={"channel_name": "c1", "author_name": "alice", "text": "hi"}
        )
        await client.post("/live/add_comment", json={"channel_name": "c1", "author_name": "bob", "text": "yo"})
        response = await client.get("/live/list_comments", params={"channel_name": "c1"})

        # Assert
        assert first.status_code == 200
        comment = first.json()["results"]
        assert comment["author_name"] == "alice"
        assert comment["text"] == "hi"
        assert comment["id"]
        results = response.json()["results"]
        assert results["channel_name"] == "c1"
        assert [c["text"] for c in results["comments"]] == ["hi", "yo"]

    async def test_add_comment_empty_text(self, client: AsyncClient):
        """Should return 400 E_INVALID_REQUEST for empty text."""
        # Arrange
        await _start(client, "c1")

        # Act
        response = await client.post(
            "/live/add_comment", json={"channel_name": "c1", "author_name": "alice", "text": ""}
        )

        # Assert
        assert response.status_code == 400
        assert response.json()["errcode"] == "E_INVALID_REQUEST"

    async def test_add_comment_not_found(self, client: AsyncClient):
        """Should return 404 for unknown channels."""
        # Act
        response = await client.post(
            "/live/add_comment", json={"channel_name": "nope", "author_name": "alice", "text": "hi"}
        )

        # Assert
        assert response.status_code == 404

    async def test_like(self, client: AsyncClient):
        """Should increment and return the like count."""
        # Arrange
        await _start(client, "c1")

        # Act
        await client.post("/live/like", json={"channel_name": "c1"})
        response = await client.post("/live/like", json={"channel_name": "c1"})

        # Assert
        assert response.json()["results"] == {"channel_name": "c1", "like_count": 2}

    async def test_like_not_found(self, client: AsyncClient):
        """Should return 404 for unknown channels."""
        # Act
        response = await client.post("/live/like", json={"channel_name": "nope"})

        # Assert
        assert response.status_code == 404
        assert response.json()["errcode"] == "E_SESSION_NOT_FOUND"

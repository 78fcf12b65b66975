"""Async HTTP client for the dogleg API."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from models import (
    CommentView,
    Follow,
    Notification,
    ProfileSummary,
    ProfileWithStats,
    ReactionToggle,
    ReactionType,
    Round,
    RoundView,
    ScoreSubmission,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A non-2xx response from the API."""

    def __init__(self, status_code: int, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


class DoglegClient:
    """Thin typed wrapper over the REST routes, one instance per signed-in session.

    The caller owns the AsyncClient when one is passed in; otherwise `aclose()`
    closes the one created here.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        user_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.user_id = user_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "DoglegClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        return {"X-User-Id": self.user_id} if self.user_id else {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        if response.is_error:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            logger.warning("%s %s failed: %s %s", method, path, response.status_code, detail)
            raise ApiError(response.status_code, detail)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ================================================================
    # Feed and rounds
    # ================================================================

    async def get_feed(self, offset: int = 0, limit: Optional[int] = None) -> List[RoundView]:
        params: Dict[str, Any] = {"offset": offset}
        if limit is not None:
            params["limit"] = limit
        payload = await self._request("GET", "/api/feed", params=params)
        return [RoundView.model_validate(r) for r in payload["rounds"]]

    async def get_user_rounds(self, user_id: str, offset: int = 0, limit: int = 10) -> List[RoundView]:
        payload = await self._request(
            "GET", f"/api/rounds/user/{user_id}", params={"offset": offset, "limit": limit}
        )
        return [RoundView.model_validate(r) for r in payload]

    async def get_round(self, round_id: str) -> RoundView:
        return RoundView.model_validate(await self._request("GET", f"/api/rounds/{round_id}"))

    async def post_round(
        self,
        submission: ScoreSubmission,
        photo: Optional[bytes] = None,
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
    ) -> Round:
        files = {"photo": (filename, photo, content_type)} if photo else None
        payload = await self._request(
            "POST",
            "/api/rounds",
            data={"submission": submission.model_dump_json(by_alias=True)},
            files=files,
        )
        return Round.model_validate(payload)

    async def delete_round(self, round_id: str) -> None:
        await self._request("DELETE", f"/api/rounds/{round_id}")

    # ================================================================
    # Reactions and comments
    # ================================================================

    async def toggle_reaction(self, round_id: str, reaction: ReactionType) -> ReactionToggle:
        payload = await self._request(
            "POST", f"/api/rounds/{round_id}/reactions",
            json={"reaction_type": ReactionType(reaction).value},
        )
        return ReactionToggle.model_validate(payload)

    async def add_comment(self, round_id: str, text: str) -> CommentView:
        payload = await self._request("POST", f"/api/rounds/{round_id}/comments", json={"text": text})
        return CommentView.model_validate(payload)

    async def delete_comment(self, comment_id: str) -> None:
        await self._request("DELETE", f"/api/comments/{comment_id}")

    # ================================================================
    # People
    # ================================================================

    async def follow(self, user_id: str) -> Follow:
        return Follow.model_validate(await self._request("POST", f"/api/follows/{user_id}"))

    async def unfollow(self, user_id: str) -> None:
        await self._request("DELETE", f"/api/follows/{user_id}")

    async def get_profile(self, username: str) -> ProfileWithStats:
        return ProfileWithStats.model_validate(await self._request("GET", f"/api/users/{username}"))

    async def search_users(self, query: str) -> List[ProfileSummary]:
        payload = await self._request("GET", "/api/users/search", params={"q": query})
        return [ProfileSummary.model_validate(p) for p in payload]

    async def get_notifications(self) -> List[Notification]:
        payload = await self._request("GET", "/api/notifications")
        return [Notification.model_validate(n) for n in payload]

    async def mark_notifications_checked(self) -> None:
        await self._request("POST", "/api/notifications/mark-checked")

    async def track_event(self, event_type: str, event_data: Optional[Dict[str, Any]] = None) -> None:
        """Fire-and-forget analytics; failures are logged, never raised."""
        try:
            await self._request(
                "POST", "/api/analytics/events",
                json={"event_type": event_type, "event_data": event_data or {}},
            )
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Tracking %s failed: %s", event_type, e)

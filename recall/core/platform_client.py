"""
Learning Platform Client

HTTP implementation of the review-state store against the learning
platform API.

Usage:
    async with PlatformClient.from_settings(get_settings()) as client:
        cards = await client.fetch_due_flashcards(course_id, now)
        await client.update_flashcard_schedule(course_id, card.id, next_show)
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import httpx
from loguru import logger

from recall.config import Settings
from recall.core.store import QuestionStatusUpdate, ReviewStoreError
from recall.review.flashcards import Flashcard, filter_due, format_timestamp


class PlatformClient:
    """
    HTTP client for the platform's course review endpoints.

    Supports:
    - API key and bearer token authentication
    - Retry with exponential backoff on timeouts, transport errors and 5xx
    - Flashcard schedules and question review statuses
    """

    def __init__(
        self,
        base_url: str,
        user_id: str | None = None,
        api_key: str | None = None,
        auth_token: str | None = None,
        timeout_seconds: float = 30.0,
        retry_attempts: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the platform client.

        Args:
            base_url: Platform API base URL
            user_id: Learner id sent with every request
            api_key: Sent as X-API-Key when set
            auth_token: Sent as a bearer token when set
            timeout_seconds: Request timeout
            retry_attempts: Attempts per request before giving up
            transport: Custom httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.retry_attempts = max(1, retry_attempts)
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> PlatformClient:
        return cls(
            base_url=settings.api_base_url,
            user_id=settings.user_id,
            api_key=settings.api_key,
            auth_token=settings.auth_token,
            timeout_seconds=settings.request_timeout_seconds,
            retry_attempts=settings.retry_attempts,
            **kwargs,
        )

    async def __aenter__(self) -> PlatformClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request with retry logic.

        Raises:
            ReviewStoreError: on 4xx responses or once retries are exhausted
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.request(method, url, **kwargs)
                response.raise_for_status()
                return response

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    f"Platform timeout on {method} {url}, attempt "
                    f"{attempt + 1}/{self.retry_attempts}"
                )

            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    logger.error(f"Platform client error {e.response.status_code} on {method} {url}")
                    raise ReviewStoreError(
                        f"{method} {url} failed with {e.response.status_code}"
                    ) from e
                last_error = e
                logger.warning(
                    f"Platform server error {e.response.status_code} on {method} {url}, "
                    f"attempt {attempt + 1}/{self.retry_attempts}"
                )

            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    f"Platform request error on {method} {url}, attempt "
                    f"{attempt + 1}/{self.retry_attempts}: {e}"
                )

            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(self._backoff(attempt))

        error_msg = f"{method} {url} failed after {self.retry_attempts} attempts"
        logger.error(f"{error_msg}: {last_error}")
        raise ReviewStoreError(error_msg) from last_error

    def _backoff(self, attempt: int) -> float:
        return float(2**attempt)

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ReviewStoreError(f"Invalid JSON from {response.request.url}") from e
        if not isinstance(data, dict):
            raise ReviewStoreError(f"Unexpected payload from {response.request.url}")
        return data

    # =========================================================================
    # Courses
    # =========================================================================

    async def get_seconds_to_complete(self, course_id: str) -> int | None:
        """Seconds until the course's target completion, if the platform has it."""
        params = {"userId": self.user_id} if self.user_id else None
        data = self._json(await self._request("GET", "/api/courses", params=params))
        for course in data.get("courses") or []:
            if str(course.get("id")) != course_id:
                continue
            for key in ("seconds_to_complete", "secondsToComplete"):
                value = course.get(key)
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    return int(value)
            return None
        logger.debug(f"Course {course_id} not found in course list")
        return None

    # =========================================================================
    # Flashcards
    # =========================================================================

    async def fetch_due_flashcards(
        self,
        course_id: str,
        now: datetime,
        lessons: list[str] | None = None,
        include_uploaded: bool = False,
        uploaded_only: bool = False,
    ) -> list[Flashcard]:
        """
        Fetch flashcards due at `now`.

        The platform filters by timestamp as well; cards are re-filtered
        locally so timezone handling does not depend on the server.
        """
        params: dict[str, str] = {"current_timestamp": format_timestamp(now)}
        if self.user_id:
            params["userId"] = self.user_id
        if uploaded_only:
            params["uploaded_only"] = "true"
            params["include_uploaded"] = "true"
        else:
            if lessons:
                params["lessons"] = ",".join(lessons)
            if include_uploaded:
                params["include_uploaded"] = "true"

        data = self._json(
            await self._request("GET", f"/api/courses/{course_id}/flashcards", params=params)
        )
        cards = [Flashcard.from_dict(item) for item in data.get("flashcards") or []]
        due = filter_due(cards, now)
        logger.debug(f"Fetched {len(cards)} flashcards ({len(due)} due) for course {course_id}")
        return due

    async def update_flashcard_schedule(
        self, course_id: str, card_id: str, next_show_timestamp: datetime
    ) -> None:
        await self._request(
            "PATCH",
            f"/api/courses/{course_id}/flashcards",
            json={
                "userId": self.user_id,
                "updates": [
                    {"id": card_id, "next_show_timestamp": format_timestamp(next_show_timestamp)}
                ],
            },
        )

    # =========================================================================
    # Questions
    # =========================================================================

    async def fetch_review_questions(self, course_id: str) -> list[dict[str, Any]]:
        """Question payloads the learner still needs to review."""
        params = {"correctness": "needs_review"}
        if self.user_id:
            params["userId"] = self.user_id
        data = self._json(
            await self._request("GET", f"/api/courses/{course_id}/questions", params=params)
        )
        return list(data.get("questions") or [])

    async def update_question_status(
        self, course_id: str, updates: list[QuestionStatusUpdate]
    ) -> None:
        if not updates:
            return
        await self._request(
            "PATCH",
            f"/api/courses/{course_id}/questions",
            json={"userId": self.user_id, "updates": [u.to_dict() for u in updates]},
        )

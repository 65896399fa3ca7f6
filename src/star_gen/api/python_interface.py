"""Python-first client for the star_gen HTTP API."""

from __future__ import annotations

from pathlib import Path

import httpx

from star_gen.api.contracts import (
    GenerateStoriesRequest,
    GenerateStoriesResponse,
    ParseCsvResponse,
)
from star_gen.domain.models import StarStory


class StarApiError(RuntimeError):
    """API answered with a ``{success: false}`` body."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class StarStoryApiClient:
    """Tiny typed API client for Python users."""

    def __init__(
        self,
        api_base_url: str = "http://127.0.0.1:8000",
        *,
        access_token: str | None = None,
    ) -> None:
        """Initialize client with an API base URL and optional bearer token."""
        self._api_base_url = api_base_url.rstrip("/")
        self._access_token = access_token

    @property
    def api_base_url(self) -> str:
        """Return normalized API base URL."""
        return self._api_base_url

    def _headers(self) -> dict[str, str]:
        if self._access_token:
            return {"Authorization": f"Bearer {self._access_token}"}
        return {}

    @staticmethod
    def _payload(response: httpx.Response) -> dict[str, object]:
        try:
            payload = response.json()
        except ValueError:
            response.raise_for_status()
            raise StarApiError(response.status_code, "Response body was not JSON.") from None
        if not isinstance(payload, dict):
            raise StarApiError(response.status_code, "Response body was not a JSON object.")
        if response.is_error or payload.get("success") is False:
            raise StarApiError(response.status_code, str(payload.get("error", "request failed")))
        return payload

    def parse_csv(self, csv_text: str) -> list[dict[str, str]]:
        """Split a feedback CSV export into rows on the server."""
        response = httpx.post(
            f"{self._api_base_url}/api/v1/csv/parse",
            json={"csvData": csv_text},
            headers=self._headers(),
            timeout=30.0,
        )
        return ParseCsvResponse.model_validate(self._payload(response)).data

    def parse_csv_file(self, path: Path) -> list[dict[str, str]]:
        return self.parse_csv(path.read_text(encoding="utf-8"))

    def generate_stories(
        self,
        *,
        records: list[dict[str, str]],
        category: str = "top5",
        instructions: str = "",
    ) -> list[StarStory]:
        """Generate STAR stories for already-parsed feedback rows."""
        request = GenerateStoriesRequest.model_validate(
            {
                "parsedData": records,
                "interactionType": category,
                "customPrompt": instructions,
            }
        )
        response = httpx.post(
            f"{self._api_base_url}/api/v1/stories/generate",
            json=request.model_dump(mode="json", by_alias=True),
            headers=self._headers(),
            timeout=300.0,
        )
        payload = GenerateStoriesResponse.model_validate(self._payload(response))
        return [story.to_story() for story in payload.stories]

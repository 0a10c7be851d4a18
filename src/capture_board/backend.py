"""Leads API collaborator: fetch records, update a stage, fetch calendar events."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from capture_board.errors import BackendError
from capture_board.models.event import CalendarEvent
from capture_board.models.opportunity import Opportunity

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Record attribute -> JSON body key understood by the API
_WIRE_FIELDS = {
    "stage": "stage",
    "forecast_stage": "forecastStage",
}


class PipelineBackend(ABC):
    """
    Interface the boards depend on. Every read is a full snapshot; every write is a request
    that either succeeds or raises BackendError.
    """

    @abstractmethod
    def fetch_records(self) -> list[Opportunity]:
        """Full current list of opportunity records."""
        pass

    @abstractmethod
    def update_stage(self, record_id: str, field: str, value: str) -> None:
        """Set `stage` or `forecast_stage` of one record. Raises BackendError on failure."""
        pass

    def fetch_events(self) -> list[CalendarEvent]:
        """Standalone calendar events. Backends without an events feed return none."""
        return []


class HttpPipelineBackend(PipelineBackend):
    """httpx client for the leads REST API."""

    DEFAULT_HEADERS = {
        "User-Agent": "capture-board/0.1",
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        *,
        token: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        headers = dict(self.DEFAULT_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            follow_redirects=True,
            headers=headers,
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"{method} {path}: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise BackendError(f"{method} {path}: {e}") from e
        except ValueError as e:
            raise BackendError(f"{method} {path}: response is not JSON") from e

    def fetch_records(self) -> list[Opportunity]:
        payload = self._request("GET", "/api/leads")
        return _validate_each(payload, Opportunity, "GET /api/leads")

    def update_stage(self, record_id: str, field: str, value: str) -> None:
        wire_field = _WIRE_FIELDS.get(field)
        if wire_field is None:
            raise ValueError(f"Not a stage field: {field}")
        # The primary stage has a dedicated endpoint; other fields go through the generic update
        if field == "stage":
            path = f"/api/leads/{record_id}/stage"
        else:
            path = f"/api/leads/{record_id}"
        self._request("PUT", path, json={wire_field: value})
        logger.debug("PUT %s %s=%s", path, wire_field, value)

    def fetch_events(self) -> list[CalendarEvent]:
        payload = self._request("GET", "/api/events")
        return _validate_each(payload, CalendarEvent, "GET /api/events")

    def close(self) -> None:
        self._client.close()


def _validate_each(payload: Any, model: type[M], what: str) -> list[M]:
    """Validate a JSON list item by item. Bad items are logged and skipped."""
    if not isinstance(payload, list):
        raise BackendError(f"{what}: unexpected payload (expected a list, got {type(payload).__name__})")
    items: list[M] = []
    for i, item in enumerate(payload):
        try:
            validated = model.model_validate(item)
        except ValidationError as e:
            item_id = item.get("_id", item.get("id")) if isinstance(item, dict) else None
            logger.warning(
                "%s: skipping invalid %s at index %d (id=%s): %s",
                what,
                model.__name__,
                i,
                item_id,
                e.errors()[0]["msg"],
            )
            continue
        items.append(validated)
    return items

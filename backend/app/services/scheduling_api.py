"""HTTP client for the scheduling API that owns attendees and schedules.

This service never persists anything itself: exports read schedules from
here, and accepted import rows are forwarded here one record at a time.
"""
import logging
from typing import Any, Callable

import httpx

from app.core.config import settings
from app.core.exceptions import SchedulingApiError
from app.schemas.export import ExportRequest
from app.schemas.imports import (
    AcceptedRow,
    ImportKind,
    SubmissionOutcome,
    SubmissionSummary,
)

logger = logging.getLogger(__name__)

CREATE_PATHS = {
    ImportKind.ATTENDEES: "/client-attendees",
    ImportKind.MEETINGS: "/schedules",
}


# ─── Payload mapping ───

def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.replace(";", ",").split(",") if part.strip()]


def attendee_payload(record: dict[str, str]) -> dict[str, Any]:
    return {
        "username": record["username"],
        "email": record["email"],
        "phoneNumber": record["phone"],
        "firstName": record["firstName"],
        "lastName": record["lastName"],
        "company": record.get("company", ""),
        "department": record.get("department", ""),
        "role": record.get("role", ""),
    }


def schedule_payload(record: dict[str, str]) -> dict[str, Any]:
    return {
        "title": record["title"],
        "description": record["description"],
        "startDate": record["startDate"],
        "endDate": record["endDate"],
        "startTime": record["startTime"],
        "endTime": record["endTime"],
        "location": record["location"],
        "clientId": record["clientId"],
        "organizer": record.get("organizer", ""),
        "attendeeIds": _split_list(record.get("otherAttendees", "")),
        "status": record.get("status") or "scheduled",
    }


def schedule_to_export_row(schedule: dict[str, Any]) -> dict[str, Any]:
    """Flatten an API schedule into the meetings column names."""
    row = dict(schedule)
    attendees = schedule.get("attendees") or []
    if attendees and "otherAttendees" not in row:
        row["otherAttendees"] = [a.get("username") or a.get("email") or a.get("_id", "") for a in attendees]
    return row


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a JSON object body; None when the body is empty, not JSON, or not an object."""
    if not response.content:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body)
    return str(body)


# ─── Client ───

class SchedulingApiClient:
    """Async wrapper around the scheduling REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        token = settings.SCHEDULING_API_TOKEN if token is None else token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.page_size = page_size or settings.SCHEDULING_API_PAGE_SIZE
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.SCHEDULING_API_URL,
            headers=headers,
            timeout=timeout or settings.SCHEDULING_API_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "SchedulingApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_schedules(self, request: ExportRequest) -> list[dict[str, Any]]:
        """Return every schedule between the request's dates, following pagination."""
        schedules: list[dict[str, Any]] = []
        offset = 0
        while True:
            params = {
                "startDate": request.start_date.isoformat(),
                "endDate": request.end_date.isoformat(),
                "limit": self.page_size,
                "offset": offset,
            }
            try:
                response = await self._client.get("/schedules", params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise SchedulingApiError(
                    f"Scheduling API returned {exc.response.status_code}: {_error_message(exc.response)}",
                    {"status_code": exc.response.status_code},
                )
            except httpx.HTTPError as exc:
                raise SchedulingApiError(f"Scheduling API unreachable: {exc}")

            body = _json_object(response)
            page = body.get("schedules") if body is not None else None
            if not isinstance(page, list) or not all(isinstance(s, dict) for s in page):
                raise SchedulingApiError(
                    "Scheduling API returned an invalid body",
                    {"status_code": response.status_code, "content_type": response.headers.get("content-type")},
                )
            schedules.extend(schedule_to_export_row(s) for s in page)
            total = body.get("total")
            if not isinstance(total, int):
                total = len(schedules)
            offset += len(page)
            if not page or offset >= total:
                break

        logger.debug("Fetched %d schedules from scheduling API", len(schedules))
        return schedules

    async def bulk_create(self, kind: ImportKind | str, rows: list[AcceptedRow]) -> SubmissionSummary:
        """Create each accepted record; failures are recorded per row, not raised."""
        kind = ImportKind(kind)
        path = CREATE_PATHS[kind]
        to_payload = attendee_payload if kind == ImportKind.ATTENDEES else schedule_payload
        summary = SubmissionSummary()

        for row in rows:
            try:
                response = await self._client.post(path, json=to_payload(row.record))
            except httpx.HTTPError as exc:
                logger.warning("Submitting %s row %d failed: %s", kind.value, row.row, exc)
                summary.failed += 1
                summary.outcomes.append(SubmissionOutcome(row=row.row, success=False, message=str(exc)))
                continue

            if response.is_success:
                body = _json_object(response) or {}
                entity = body.get("attendee") or body.get("schedule")
                if not isinstance(entity, dict):
                    entity = {}
                summary.created += 1
                summary.outcomes.append(
                    SubmissionOutcome(
                        row=row.row,
                        success=True,
                        message=str(body.get("message") or ""),
                        remote_id=str(entity["_id"]) if entity.get("_id") else None,
                    )
                )
            else:
                summary.failed += 1
                summary.outcomes.append(
                    SubmissionOutcome(row=row.row, success=False, message=_error_message(response))
                )

        logger.info(
            "Submitted %s import: created=%d failed=%d",
            kind.value,
            summary.created,
            summary.failed,
        )
        return summary


async def get_scheduling_client():
    """FastAPI dependency yielding a client that is closed after the request."""
    async with SchedulingApiClient() as client:
        yield client


def get_scheduling_client_factory() -> Callable[[], SchedulingApiClient]:
    """FastAPI dependency for routes that only sometimes call the API; the caller owns the client."""
    return SchedulingApiClient

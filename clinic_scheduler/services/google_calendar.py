import asyncio
import json
import logging
import os
from datetime import date, datetime
from typing import Any
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from clinic_scheduler.core.clock import day_bounds, to_clinic_time
from clinic_scheduler.core.config import settings
from clinic_scheduler.core.errors import NotFound, UpstreamFailure
from clinic_scheduler.models.calendar_event import CalendarEvent, NewCalendarEvent

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"


def load_service_account_info() -> dict:
    """Service account JSON from GOOGLE_APPLICATION_CREDENTIALS, else the inline setting."""
    path = settings.google_application_credentials or os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")
    if path and os.path.exists(path):
        with open(path, encoding="utf-8") as fh:
            info = json.load(fh)
        logger.info("Loaded Google credentials from file %s", path)
    elif settings.google_credentials_json:
        info = json.loads(settings.google_credentials_json)
        logger.info("Loaded Google credentials from GOOGLE_CREDENTIALS_JSON")
    else:
        raise UpstreamFailure(
            "Google credentials not found. Set GOOGLE_CREDENTIALS_JSON or GOOGLE_APPLICATION_CREDENTIALS."
        )
    # Keys pasted into env vars often carry escaped newlines
    private_key = info.get("private_key")
    if private_key and "\\n" in private_key:
        info["private_key"] = private_key.replace("\\n", "\n")
    return info


def parse_google_event(item: dict[str, Any]) -> CalendarEvent:
    start = item.get("start") or {}
    end = item.get("end") or {}
    start_dt = end_dt = None
    all_day = None
    if start.get("dateTime"):
        start_dt = to_clinic_time(datetime.fromisoformat(start["dateTime"]))
        if end.get("dateTime"):
            end_dt = to_clinic_time(datetime.fromisoformat(end["dateTime"]))
    elif start.get("date"):
        all_day = date.fromisoformat(start["date"])
    return CalendarEvent(
        id=item["id"],
        summary=item.get("summary") or "",
        description=item.get("description") or "",
        start=start_dt,
        end=end_dt,
        all_day_date=all_day,
    )


class GoogleCalendarEventStore:
    """Event store over the Google Calendar v3 REST API."""

    def __init__(
        self,
        calendar_id: str | None = None,
        credentials: Any = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.calendar_id = calendar_id or settings.calendar_id
        self._credentials = credentials
        self._client = client
        self._timeout = timeout
        self._init_lock = asyncio.Lock()

    async def _ensure_credentials(self) -> Any:
        if self._credentials is not None:
            return self._credentials
        # One initialisation even when the first requests arrive together
        async with self._init_lock:
            if self._credentials is None:
                info = load_service_account_info()
                self._credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=[GOOGLE_CALENDAR_SCOPE]
                )
                logger.info("Google Calendar credentials initialised for %s", self.calendar_id)
        return self._credentials

    async def _access_token(self) -> str:
        credentials = await self._ensure_credentials()
        if not credentials.valid:
            try:
                await asyncio.to_thread(credentials.refresh, GoogleAuthRequest())
            except Exception as e:
                logger.exception("Google token refresh failed: %s", e)
                raise UpstreamFailure("Calendar authentication failed, try again later") from e
        return credentials.token

    def _events_url(self, event_id: str | None = None) -> str:
        url = f"{GOOGLE_CALENDAR_API}/calendars/{quote(self.calendar_id, safe='')}/events"
        if event_id:
            url += f"/{quote(event_id, safe='')}"
        return url

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        token = await self._access_token()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            if self._client is not None:
                return await self._client.request(method, url, headers=headers, **kwargs)
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Calendar request %s %s failed: %s", method, url, e)
            raise UpstreamFailure("Calendar is unreachable, try again later") from e

    @staticmethod
    def _raise_for_status(resp: httpx.Response, action: str) -> None:
        if resp.status_code >= 400:
            logger.warning(
                "Calendar %s failed: status=%s body=%s", action, resp.status_code, resp.text[:500]
            )
            raise UpstreamFailure(f"Calendar {action} failed, try again later")

    @staticmethod
    def _payload(resp: httpx.Response, action: str) -> dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError as e:
            logger.warning("Calendar %s returned a non-JSON body: %s", action, resp.text[:500])
            raise UpstreamFailure(f"Calendar {action} failed, try again later") from e
        if not isinstance(payload, dict):
            raise UpstreamFailure(f"Calendar {action} failed, try again later")
        return payload

    @staticmethod
    def _parse(item: dict[str, Any], action: str) -> CalendarEvent:
        try:
            return parse_google_event(item)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Calendar %s returned a malformed event: %r", action, item)
            raise UpstreamFailure(f"Calendar {action} failed, try again later") from e

    async def list_events(self, start: date, end: date) -> list[CalendarEvent]:
        time_min, _ = day_bounds(start)
        _, time_max = day_bounds(end)
        params: dict[str, Any] = {
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": 2500,
        }
        events: list[CalendarEvent] = []
        while True:
            resp = await self._request("GET", self._events_url(), params=params)
            self._raise_for_status(resp, "list")
            payload = self._payload(resp, "list")
            for item in payload.get("items", []):
                if item.get("status") == "cancelled":
                    continue
                events.append(self._parse(item, "list"))
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token
        logger.debug("Retrieved %d events from %s to %s", len(events), start, end)
        return events

    async def create_event(self, data: NewCalendarEvent) -> CalendarEvent:
        body: dict[str, Any] = {
            "summary": data.summary,
            "description": data.description,
            "start": {"dateTime": to_clinic_time(data.start).isoformat(), "timeZone": settings.timezone},
            "end": {"dateTime": to_clinic_time(data.end).isoformat(), "timeZone": settings.timezone},
        }
        if data.color_id:
            body["colorId"] = data.color_id
        resp = await self._request("POST", self._events_url(), json=body)
        self._raise_for_status(resp, "create")
        event = self._parse(self._payload(resp, "create"), "create")
        logger.info("Calendar event created: %s", event.id)
        return event

    async def delete_event(self, event_id: str) -> None:
        resp = await self._request("DELETE", self._events_url(event_id))
        if resp.status_code in (404, 410):
            raise NotFound(f"Calendar event {event_id} no longer exists")
        self._raise_for_status(resp, "delete")
        logger.info("Calendar event deleted: %s", event_id)

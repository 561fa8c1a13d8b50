from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.logging_setup import get_logger
from core.settings import CALENDAR
from services.calendar_bridge import CalendarAccessError, CalendarError, CalendarRef, ExternalEvent
from services.google_auth import GoogleAuth
from utils.datetime_utils import to_local_aware, to_local_naive

GONE_STATUSES = {404, 410}
ACCESS_STATUSES = {401, 403}


# ---------- RFC3339 ----------
def _to_rfc3339(dt: datetime) -> str:
    return to_local_aware(dt).replace(microsecond=0).isoformat()


def _parse_event_time(payload: Optional[Dict[str, Any]]) -> tuple[Optional[datetime], bool]:
    """Return (local naive datetime, all_day) for a Google start/end payload."""
    if not payload:
        return None, False
    value = payload.get("dateTime")
    if value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None, False
        return to_local_naive(parsed), False
    day = payload.get("date")
    if day:
        try:
            return datetime.strptime(day, "%Y-%m-%d"), True
        except ValueError:
            return None, True
    return None, False


def _http_status(exc: HttpError) -> int:
    status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        return int(status or 0)
    except (TypeError, ValueError):
        return 0


def event_from_payload(payload: Dict[str, Any], calendar_id: Optional[str] = None) -> ExternalEvent:
    start, all_day = _parse_event_time(payload.get("start"))
    end, _ = _parse_event_time(payload.get("end"))
    return ExternalEvent(
        id=payload.get("id", ""),
        title=payload.get("summary") or "",
        notes=payload.get("description") or "",
        start=start,
        end=end,
        calendar_id=calendar_id,
        all_day=all_day,
    )


def build_event_body(title: str, notes: str, start: datetime, end: datetime) -> Dict[str, Any]:
    return {
        "summary": title,
        "description": notes or "",
        "start": {"dateTime": _to_rfc3339(start)},
        "end": {"dateTime": _to_rfc3339(end)},
    }


class GoogleCalendar:
    """Google Calendar v3 backend for :class:`CalendarBridge`.

    Events are written to ``calendar_id`` (the user's primary calendar by
    default). Deleted or cancelled events count as unresolvable.
    """

    def __init__(self, auth: Optional[GoogleAuth] = None, calendar_id: str = CALENDAR.calendar_id, service=None):
        self.auth = auth or GoogleAuth()
        self.calendar_id = calendar_id
        self.service = service
        self._preconfigured = service is not None
        self.logger = get_logger("google_calendar")

    def request_access(self) -> bool:
        if self._preconfigured:
            return True
        try:
            if not self.auth.ensure_credentials():
                return False
        except GoogleAuthError as exc:
            self.logger.warning("Google authorization failed: %s", exc)
            return False
        if self.service is None:
            self.service = build("calendar", "v3", credentials=self.auth.get_credentials(), cache_discovery=False)
        return True

    def _events(self):
        if self.service is None:
            raise CalendarAccessError("Google Calendar service is not connected")
        return self.service.events()

    def _execute(self, request):
        try:
            return request.execute()
        except HttpError as exc:
            status = _http_status(exc)
            if status in ACCESS_STATUSES:
                raise CalendarAccessError(str(exc)) from exc
            raise CalendarError(f"Google Calendar returned {status}: {exc}") from exc
        except GoogleAuthError as exc:
            raise CalendarAccessError(str(exc)) from exc

    # ----- operations -----
    def fetch_events(self, start: datetime, end: datetime) -> List[ExternalEvent]:
        params = dict(
            calendarId=self.calendar_id,
            timeMin=_to_rfc3339(start),
            timeMax=_to_rfc3339(end),
            singleEvents=True,
            orderBy="startTime",
            maxResults=CALENDAR.max_results,
        )
        events: List[ExternalEvent] = []
        while True:
            response = self._execute(self._events().list(**params))
            for payload in response.get("items", []):
                if payload.get("status") == "cancelled":
                    continue
                events.append(event_from_payload(payload, self.calendar_id))
            token = response.get("nextPageToken")
            if not token:
                break
            params["pageToken"] = token
        return events

    def get_event(self, event_id: str) -> Optional[ExternalEvent]:
        try:
            payload = self._execute(self._events().get(calendarId=self.calendar_id, eventId=event_id))
        except CalendarError as exc:
            cause = exc.__cause__
            if isinstance(cause, HttpError) and _http_status(cause) in GONE_STATUSES:
                return None
            raise
        if not payload or payload.get("status") == "cancelled":
            return None
        return event_from_payload(payload, self.calendar_id)

    def create_event(self, title: str, notes: str, start: datetime, end: datetime) -> Optional[str]:
        body = build_event_body(title, notes, start, end)
        response = self._execute(self._events().insert(calendarId=self.calendar_id, body=body))
        return response.get("id") or None

    def update_event(self, event_id: str, title: str, notes: str, start: datetime, end: datetime) -> bool:
        body = build_event_body(title, notes, start, end)
        try:
            self._execute(self._events().patch(calendarId=self.calendar_id, eventId=event_id, body=body))
        except CalendarError as exc:
            cause = exc.__cause__
            if isinstance(cause, HttpError) and _http_status(cause) in GONE_STATUSES:
                return False
            raise
        return True

    def delete_event(self, event_id: str) -> bool:
        try:
            self._execute(self._events().delete(calendarId=self.calendar_id, eventId=event_id))
        except CalendarError as exc:
            cause = exc.__cause__
            if isinstance(cause, HttpError) and _http_status(cause) in GONE_STATUSES:
                return False
            raise
        return True

    def list_calendars(self) -> List[CalendarRef]:
        if self.service is None:
            raise CalendarAccessError("Google Calendar service is not connected")
        refs: List[CalendarRef] = []
        params: Dict[str, Any] = {}
        while True:
            response = self._execute(self.service.calendarList().list(**params))
            for entry in response.get("items", []):
                refs.append(
                    CalendarRef(
                        id=entry.get("id", ""),
                        title=entry.get("summaryOverride") or entry.get("summary") or "",
                        is_primary=bool(entry.get("primary")),
                        color=entry.get("backgroundColor"),
                    )
                )
            token = response.get("nextPageToken")
            if not token:
                break
            params["pageToken"] = token
        return refs


__all__ = ["GoogleCalendar", "build_event_body", "event_from_payload"]

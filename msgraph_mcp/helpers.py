"""Formatting helpers and error translation for tool output."""

from datetime import datetime

import httpx


def format_graph_datetime(dt_obj: dict) -> str:
    """Render a Graph ``dateTimeTimeZone`` object."""
    raw = dt_obj.get("dateTime", "")
    tz = dt_obj.get("timeZone", "UTC")
    if not raw:
        return "Unknown"
    try:
        # Graph emits 7 fractional digits, fromisoformat wants at most 6
        stamp = datetime.fromisoformat(raw.split(".")[0])
    except ValueError:
        return f"{raw} ({tz})"
    return f"{stamp:%Y-%m-%d %H:%M} ({tz})"


def format_event_summary(event: dict) -> str:
    """One event as a short markdown block."""
    lines = [
        f"**{event.get('subject') or '(no subject)'}**",
        f"When: {format_graph_datetime(event.get('start', {}))} -> "
        f"{format_graph_datetime(event.get('end', {}))}",
    ]
    location = (event.get("location") or {}).get("displayName")
    if location:
        lines.append(f"Location: {location}")
    organizer = (event.get("organizer") or {}).get("emailAddress", {})
    if organizer:
        lines.append(f"Organizer: {organizer.get('name', '')} <{organizer.get('address', '')}>")
    lines.append(f"ID: `{event.get('id', '')}`")
    return "\n".join(lines)


def format_message_line(msg: dict) -> str:
    sender = (msg.get("from") or {}).get("emailAddress", {})
    read_mark = " " if msg.get("isRead") else "*"
    return (
        f"{read_mark} **{msg.get('subject') or '(no subject)'}** "
        f"from {sender.get('address', 'unknown')} "
        f"({msg.get('receivedDateTime', '')[:16].replace('T', ' ')})\n"
        f"  ID: `{msg.get('id', '')}`"
    )


def format_contact_line(contact: dict) -> str:
    emails = ", ".join(e.get("address", "") for e in contact.get("emailAddresses", []))
    return f"- **{contact.get('displayName') or '(unnamed)'}** {emails} | ID: `{contact.get('id', '')}`"


def handle_graph_error(e: Exception) -> str:
    """Turn a failure from the Graph call chain into an actionable message."""
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        try:
            detail = e.response.json().get("error", {}).get("message", str(e))
        except ValueError:
            detail = e.response.text or str(e)

        if status == 401:
            return f"Error 401: Authentication failed, the token may be expired.\nDetail: {detail}"
        if status == 403:
            return f"Error 403: Insufficient permissions. Check the app registration scopes.\nDetail: {detail}"
        if status == 404:
            return f"Error 404: Resource not found. Verify the IDs (event, calendar, folder).\nDetail: {detail}"
        if status == 429:
            retry_after = e.response.headers.get("Retry-After", "60")
            return f"Error 429: Rate limited. Retry after {retry_after} seconds."
        return f"Error {status}: {detail}"
    if isinstance(e, httpx.TimeoutException):
        return "Error: Request timed out. The Graph API may be slow. Please retry."
    if isinstance(e, RuntimeError):
        return f"Error: Authentication unavailable. {e}"
    if isinstance(e, KeyError):
        return f"Error: {e.args[0] if e.args else e}"
    if isinstance(e, ValueError):
        return f"Error: Invalid request. {e}"
    return f"Error: {type(e).__name__}: {e}"

"""
MS Graph MCP Server - Tool definitions and server lifecycle.

Exposes calendar, mail and contact tools over Microsoft Graph. Tools that
accept a container ID (calendar, mail folder, contact folder) resolve their
request path through the operation table, so the ID only changes the
addressed collection when it is actually given.
"""

import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.server import Context

from .auth import AuthManager, GraphClient
from .config import Settings
from .models import (
    ListCalendarsInput, ListEventsInput, CalendarViewInput, EventRefInput,
    CreateEventInput, UpdateEventInput, ListMessagesInput, GetMessageInput,
    ListContactsInput,
)
from .helpers import (
    format_event_summary, format_graph_datetime, format_message_line,
    format_contact_line, handle_graph_error,
)

logger = logging.getLogger("msgraph_mcp")

EVENT_SELECT = "id,subject,start,end,location,organizer,isCancelled"

WELL_KNOWN_FOLDERS = {
    "inbox": "inbox",
    "sentitems": "sentitems",
    "sent": "sentitems",
    "drafts": "drafts",
    "deleteditems": "deleteditems",
    "trash": "deleteditems",
    "junkemail": "junkemail",
    "junk": "junkemail",
    "archive": "archive",
}


# =============================================================================
# MCP Server Setup
# =============================================================================

@asynccontextmanager
async def app_lifespan(app):
    """Initialize Graph client on startup, clean up on shutdown."""
    settings = Settings.from_env()
    if not settings.has_credentials:
        logger.warning(
            "MSGRAPH_CLIENT_ID and MSGRAPH_CLIENT_SECRET must be set. "
            "The server will start but all tools will fail until configured."
        )

    graph = GraphClient(AuthManager.from_settings(settings), base_url=settings.base_url)
    try:
        yield {"graph": graph}
    finally:
        await graph.close()


mcp = FastMCP("MS_Graph_MCP", lifespan=app_lifespan)


def _get_graph(ctx: Context) -> GraphClient:
    """Extract GraphClient from context."""
    return ctx.request_context.lifespan_context["graph"]


def _calendar(calendar_id) -> Dict[str, Any]:
    return {"calendarId": calendar_id}


def _event_lines(events) -> str:
    return "\n\n---\n\n".join(
        format_event_summary(e) for e in events if not e.get("isCancelled")
    )


# =============================================================================
# CALENDAR TOOLS
# =============================================================================

@mcp.tool(
    name="graph_list_calendars",
    annotations={"title": "List Calendars", "readOnlyHint": True, "openWorldHint": False},
)
async def graph_list_calendars(params: ListCalendarsInput, ctx: Context = None) -> str:
    """List the user's calendars with their IDs.

    The IDs returned here are what the event tools accept as `calendar_id`.
    """
    try:
        data = await _get_graph(ctx).invoke(
            "list-calendars",
            params={"$top": params.top, "$select": "id,name,isDefaultCalendar,canEdit"},
        )
        calendars = data.get("value", [])
        if not calendars:
            return "No calendars found."

        result = "**Your Calendars**\n\n"
        for cal in calendars:
            default_badge = " (default)" if cal.get("isDefaultCalendar") else ""
            result += f"- **{cal.get('name', '')}**{default_badge} | ID: `{cal.get('id', '')}`\n"
        return result
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_list_events",
    annotations={"title": "List Calendar Events", "readOnlyHint": True, "openWorldHint": True},
)
async def graph_list_events(params: ListEventsInput, ctx: Context = None) -> str:
    """List events of the default calendar, or of `calendar_id` when given.

    Recurring events are returned as series masters; use graph_calendar_view
    for expanded occurrences in a date range.
    """
    try:
        query = {"$top": params.top, "$select": EVENT_SELECT}
        if params.filter:
            query["$filter"] = params.filter
        data = await _get_graph(ctx).invoke(
            "list-calendar-events", id_params=_calendar(params.calendar_id), params=query,
        )
        events = data.get("value", [])
        if not events:
            return "No events found."
        return f"**Calendar Events** ({len(events)})\n\n" + _event_lines(events)
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_calendar_view",
    annotations={"title": "Calendar View", "readOnlyHint": True, "openWorldHint": True},
)
async def graph_calendar_view(params: CalendarViewInput, ctx: Context = None) -> str:
    """List event occurrences in a date range (defaults to the next 7 days)."""
    try:
        now = datetime.now(timezone.utc)
        start = params.start_date or now.strftime("%Y-%m-%d")
        end = params.end_date or (now + timedelta(days=7)).strftime("%Y-%m-%d")
        if "T" not in start:
            start += "T00:00:00"
        if "T" not in end:
            end += "T23:59:59"

        data = await _get_graph(ctx).invoke(
            "list-calendar-view",
            id_params=_calendar(params.calendar_id),
            params={
                "startDateTime": start,
                "endDateTime": end,
                "$top": params.top,
                "$orderby": "start/dateTime",
                "$select": EVENT_SELECT,
            },
        )
        events = data.get("value", [])
        if not events:
            return f"No events found between {start[:10]} and {end[:10]}"
        return f"**Calendar Events** ({start[:10]} -> {end[:10]})\n\n" + _event_lines(events)
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_get_event",
    annotations={"title": "Get Event Details", "readOnlyHint": True, "openWorldHint": True},
)
async def graph_get_event(params: EventRefInput, ctx: Context = None) -> str:
    """Get full details of one event."""
    try:
        data = await _get_graph(ctx).invoke(
            "get-calendar-event",
            path_params={"event-id": params.event_id},
            id_params=_calendar(params.calendar_id),
        )
        result = f"# {data.get('subject') or '(no subject)'}\n\n"
        result += f"**Start:** {format_graph_datetime(data.get('start', {}))}\n"
        result += f"**End:** {format_graph_datetime(data.get('end', {}))}\n"
        result += f"**Location:** {(data.get('location') or {}).get('displayName') or 'None'}\n"
        result += f"**All Day:** {'Yes' if data.get('isAllDay') else 'No'}\n"

        attendees = data.get("attendees", [])
        if attendees:
            result += "\n**Attendees:**\n"
            for a in attendees:
                email = a.get("emailAddress", {})
                status = a.get("status", {}).get("response", "none")
                result += f"- {email.get('name', '')} <{email.get('address', '')}> ({status})\n"

        body = data.get("body") or {}
        if body.get("content"):
            result += f"\n---\n\n{body['content']}"
        return result
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_create_event",
    annotations={"title": "Create Calendar Event", "readOnlyHint": False, "idempotentHint": False},
)
async def graph_create_event(params: CreateEventInput, ctx: Context = None) -> str:
    """Create an event in the default calendar, or in `calendar_id` when given."""
    try:
        event: Dict[str, Any] = {
            "subject": params.subject,
            "start": {"dateTime": params.start, "timeZone": params.timezone},
            "end": {"dateTime": params.end, "timeZone": params.timezone},
            "isOnlineMeeting": params.is_online_meeting,
        }
        if params.body:
            event["body"] = {"contentType": "HTML", "content": params.body}
        if params.location:
            event["location"] = {"displayName": params.location}
        if params.attendees:
            event["attendees"] = [
                {"emailAddress": {"address": addr}, "type": "required"}
                for addr in params.attendees
            ]
        if params.is_online_meeting:
            event["onlineMeetingProvider"] = "teamsForBusiness"

        data = await _get_graph(ctx).invoke(
            "create-calendar-event", id_params=_calendar(params.calendar_id), json_data=event,
        )
        target = f"calendar `{params.calendar_id}`" if params.calendar_id else "default calendar"
        return (
            f"Event created in {target}.\n"
            f"**Subject:** {params.subject}\n"
            f"**When:** {params.start} -> {params.end} ({params.timezone})\n"
            f"**Event ID:** `{data.get('id', 'N/A')}`"
        )
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_update_event",
    annotations={"title": "Update Calendar Event", "readOnlyHint": False, "idempotentHint": True},
)
async def graph_update_event(params: UpdateEventInput, ctx: Context = None) -> str:
    """Update properties of an existing event."""
    try:
        updates: Dict[str, Any] = {}
        tz = params.timezone or "UTC"
        if params.subject:
            updates["subject"] = params.subject
        if params.start:
            updates["start"] = {"dateTime": params.start, "timeZone": tz}
        if params.end:
            updates["end"] = {"dateTime": params.end, "timeZone": tz}
        if params.location:
            updates["location"] = {"displayName": params.location}
        if params.body:
            updates["body"] = {"contentType": "HTML", "content": params.body}
        if not updates:
            return "No updates specified."

        await _get_graph(ctx).invoke(
            "update-calendar-event",
            path_params={"event-id": params.event_id},
            id_params=_calendar(params.calendar_id),
            json_data=updates,
        )
        return f"Event updated ({', '.join(updates)}). ID: `{params.event_id}`"
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_delete_event",
    annotations={"title": "Delete Calendar Event", "readOnlyHint": False, "destructiveHint": True},
)
async def graph_delete_event(params: EventRefInput, ctx: Context = None) -> str:
    """Permanently delete an event."""
    try:
        await _get_graph(ctx).invoke(
            "delete-calendar-event",
            path_params={"event-id": params.event_id},
            id_params=_calendar(params.calendar_id),
        )
        return f"Event `{params.event_id}` has been deleted."
    except Exception as e:
        return handle_graph_error(e)


# =============================================================================
# MAIL & CONTACT TOOLS
# =============================================================================

@mcp.tool(
    name="graph_list_messages",
    annotations={"title": "List Mail Messages", "readOnlyHint": True, "openWorldHint": True},
)
async def graph_list_messages(params: ListMessagesInput, ctx: Context = None) -> str:
    """List recent messages from one folder, or across the mailbox."""
    try:
        folder_id = None
        if params.folder:
            folder_id = WELL_KNOWN_FOLDERS.get(params.folder.lower(), params.folder)
        query = {
            "$top": params.top,
            "$orderby": "receivedDateTime desc",
            "$select": "id,subject,from,receivedDateTime,isRead",
        }
        if params.filter:
            query["$filter"] = params.filter
        data = await _get_graph(ctx).invoke(
            "list-mail-messages", id_params={"mailFolderId": folder_id}, params=query,
        )
        messages = data.get("value", [])
        label = params.folder or "all folders"
        if not messages:
            return f"No messages found in '{label}'"
        return f"**Messages** ({label})\n\n" + "\n".join(format_message_line(m) for m in messages)
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_get_message",
    annotations={"title": "Get Email Details", "readOnlyHint": True, "openWorldHint": True},
)
async def graph_get_message(params: GetMessageInput, ctx: Context = None) -> str:
    """Get one email by ID, optionally addressed through its folder."""
    try:
        folder_id = None
        if params.folder:
            folder_id = WELL_KNOWN_FOLDERS.get(params.folder.lower(), params.folder)
        select = "id,subject,from,toRecipients,receivedDateTime,isRead"
        if params.include_body:
            select += ",body"
        data = await _get_graph(ctx).invoke(
            "get-mail-message",
            path_params={"message-id": params.message_id},
            id_params={"mailFolderId": folder_id},
            params={"$select": select},
        )
        sender = (data.get("from") or {}).get("emailAddress", {})
        to_list = ", ".join(
            r.get("emailAddress", {}).get("address", "") for r in data.get("toRecipients", [])
        )
        result = f"# {data.get('subject') or '(no subject)'}\n\n"
        result += f"**From:** {sender.get('name', '')} <{sender.get('address', '')}>\n"
        result += f"**To:** {to_list}\n"
        result += f"**Date:** {data.get('receivedDateTime', '')}\n"
        result += f"**Read:** {'Yes' if data.get('isRead') else 'No'}\n"

        body = data.get("body") or {}
        if params.include_body and body.get("content"):
            result += f"\n---\n\n{body['content']}"
        return result
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_list_contacts",
    annotations={"title": "List Contacts", "readOnlyHint": True, "openWorldHint": False},
)
async def graph_list_contacts(params: ListContactsInput, ctx: Context = None) -> str:
    """List contacts from the default folder, or from `contact_folder_id`."""
    try:
        data = await _get_graph(ctx).invoke(
            "list-contacts",
            id_params={"contactFolderId": params.contact_folder_id},
            params={"$top": params.top, "$select": "id,displayName,emailAddresses"},
        )
        contacts = data.get("value", [])
        if not contacts:
            return "No contacts found."
        return "**Contacts**\n\n" + "\n".join(format_contact_line(c) for c in contacts)
    except Exception as e:
        return handle_graph_error(e)


@mcp.tool(
    name="graph_get_profile",
    annotations={"title": "Get User Profile", "readOnlyHint": True, "openWorldHint": True},
)
async def graph_get_profile(ctx: Context = None) -> str:
    """Get the authenticated user's profile."""
    try:
        data = await _get_graph(ctx).invoke(
            "get-current-user",
            params={"$select": "displayName,mail,userPrincipalName,jobTitle"},
        )
        result = "**User Profile**\n\n"
        result += f"**Name:** {data.get('displayName', 'N/A')}\n"
        result += f"**Email:** {data.get('mail') or data.get('userPrincipalName', 'N/A')}\n"
        result += f"**Job Title:** {data.get('jobTitle') or 'N/A'}\n"
        return result
    except Exception as e:
        return handle_graph_error(e)


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Run the MCP server (stdio or HTTP transport)."""
    settings = Settings.from_env()
    # stdout carries the stdio transport
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    if "--http" in sys.argv:
        port = 8000
        for i, arg in enumerate(sys.argv):
            if arg == "--port" and i + 1 < len(sys.argv):
                port = int(sys.argv[i + 1])
        logger.info("Starting MS Graph MCP server on http://localhost:%d", port)
        mcp.settings.port = port
        mcp.run(transport="streamable-http")
    else:
        mcp.run()


if __name__ == "__main__":
    main()

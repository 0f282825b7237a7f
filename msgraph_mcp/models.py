"""Pydantic input models for the MCP tools."""

from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict


class ToolInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class CalendarScopedInput(ToolInput):
    """Base for event tools that may target a non-default calendar."""

    calendar_id: Optional[str] = Field(
        default=None,
        description="Calendar ID. Omit (or leave empty) for the default calendar."
    )


class ListCalendarsInput(ToolInput):
    """Input for listing calendars."""

    top: int = Field(default=10, description="Max calendars to return", ge=1, le=50)


class ListEventsInput(CalendarScopedInput):
    """Input for listing calendar events (no recurrence expansion)."""

    top: int = Field(default=20, description="Max events to return", ge=1, le=50)
    filter: Optional[str] = Field(
        default=None,
        description="OData filter, e.g. \"contains(subject, 'review')\""
    )


class CalendarViewInput(CalendarScopedInput):
    """Input for listing event occurrences within a date range."""

    start_date: Optional[str] = Field(
        default=None,
        description="Start date in ISO format (YYYY-MM-DD). Defaults to today."
    )
    end_date: Optional[str] = Field(
        default=None,
        description="End date in ISO format (YYYY-MM-DD). Defaults to 7 days from start."
    )
    top: int = Field(default=20, description="Max events to return", ge=1, le=50)


class EventRefInput(CalendarScopedInput):
    """Input addressing a single event."""

    event_id: str = Field(..., description="The event ID", min_length=1)


class CreateEventInput(CalendarScopedInput):
    """Input for creating a calendar event."""

    subject: str = Field(..., description="Event title/subject", min_length=1)
    start: str = Field(..., description="Start datetime in ISO format, e.g. '2025-06-15T10:00:00'")
    end: str = Field(..., description="End datetime in ISO format, e.g. '2025-06-15T11:00:00'")
    timezone: str = Field(default="UTC", description="Timezone for start/end, e.g. 'Europe/Rome'")
    body: Optional[str] = Field(default=None, description="Event description (HTML supported)")
    location: Optional[str] = Field(default=None, description="Event location name")
    attendees: Optional[List[str]] = Field(default=None, description="Attendee email addresses")
    is_online_meeting: bool = Field(default=False, description="Create as Teams meeting")


class UpdateEventInput(EventRefInput):
    """Input for updating a calendar event."""

    subject: Optional[str] = Field(default=None, description="New subject")
    start: Optional[str] = Field(default=None, description="New start datetime (ISO format)")
    end: Optional[str] = Field(default=None, description="New end datetime (ISO format)")
    timezone: Optional[str] = Field(default=None, description="Timezone for start/end")
    location: Optional[str] = Field(default=None, description="New location")
    body: Optional[str] = Field(default=None, description="New body content")


class ListMessagesInput(ToolInput):
    """Input for listing mail messages."""

    folder: Optional[str] = Field(
        default=None,
        description="Mail folder: 'inbox', 'sentitems', 'drafts', 'deleteditems', 'junkemail', "
                    "or folder ID. Omit to search all folders."
    )
    top: int = Field(default=10, description="Number of messages to return", ge=1, le=50)
    filter: Optional[str] = Field(default=None, description="OData filter, e.g. 'isRead eq false'")


class GetMessageInput(ToolInput):
    """Input for getting a specific email."""

    message_id: str = Field(..., description="The message ID to retrieve", min_length=1)
    folder: Optional[str] = Field(
        default=None,
        description="Mail folder holding the message (name or ID). Usually not needed."
    )
    include_body: bool = Field(default=True, description="Whether to include the full email body")


class ListContactsInput(ToolInput):
    """Input for listing contacts."""

    contact_folder_id: Optional[str] = Field(
        default=None,
        description="Contact folder ID. Omit for the default contacts folder."
    )
    top: int = Field(default=20, description="Max contacts to return", ge=1, le=100)

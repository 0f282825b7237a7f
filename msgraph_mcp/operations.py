"""Named Graph operations and request path resolution."""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .paths import encode_path_segment, is_supplied, rewrite

PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class GraphOperation:
    """A Graph endpoint exposed as a tool: alias, HTTP method, default path."""

    alias: str
    method: str
    path: str


OPERATIONS = MappingProxyType({
    op.alias: op
    for op in (
        GraphOperation("list-calendars", "GET", "/me/calendars"),
        GraphOperation("list-calendar-events", "GET", "/me/events"),
        GraphOperation("list-calendar-view", "GET", "/me/calendarView"),
        GraphOperation("get-calendar-event", "GET", "/me/events/{event-id}"),
        GraphOperation("create-calendar-event", "POST", "/me/events"),
        GraphOperation("update-calendar-event", "PATCH", "/me/events/{event-id}"),
        GraphOperation("delete-calendar-event", "DELETE", "/me/events/{event-id}"),
        GraphOperation("list-mail-messages", "GET", "/me/messages"),
        GraphOperation("get-mail-message", "GET", "/me/messages/{message-id}"),
        GraphOperation("list-contacts", "GET", "/me/contacts"),
        GraphOperation("get-current-user", "GET", "/me"),
    )
})


def get_operation(alias: str) -> GraphOperation:
    try:
        return OPERATIONS[alias]
    except KeyError:
        raise KeyError(f"Unknown Graph operation '{alias}'") from None


def substitute_placeholders(template: str, path_params: Mapping[str, Any]) -> str:
    """Fill ``{name}`` segments of ``template`` with encoded values.

    Raises:
        ValueError: if a placeholder has no (or an empty) value.
    """
    def _fill(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = path_params.get(name)
        if not is_supplied(value):
            raise ValueError(f"Missing value for path parameter '{name}' in {template}")
        return encode_path_segment(value)

    return PLACEHOLDER_RE.sub(_fill, template)


def build_request_path(
    operation: GraphOperation,
    path_params: Optional[Mapping[str, Any]] = None,
    id_params: Optional[Mapping[str, Any]] = None,
) -> str:
    """Resolve the final request path for ``operation``.

    Placeholders are substituted first; identifier qualification
    (``calendarId`` etc.) is applied to the result.
    """
    path = substitute_placeholders(operation.path, path_params or {})
    return rewrite(path, id_params or {})

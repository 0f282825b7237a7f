"""Identifier-qualified path rewriting for Graph request paths.

Graph exposes the same collection at two addresses: the default one
(``/me/events``) and one scoped to a parent container
(``/me/calendars/{id}/events``). Tools declare the default path; when the
caller supplies the container identifier, ``rewrite`` moves the request to
the qualified address.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Tuple
from urllib.parse import quote


def encode_path_segment(raw: str) -> str:
    """Percent-encode a value for use as a single URL path segment.

    Letters, digits and ``-_.~`` are kept; everything else, ``/`` included,
    becomes its UTF-8 ``%XX`` escape.
    """
    return quote(str(raw), safe="")


def is_supplied(value: Any) -> bool:
    """``None`` and the empty string count as not supplied."""
    return value is not None and value != ""


@dataclass(frozen=True)
class QualifiedCollectionRule:
    """Moves ``{scope}/{collection}`` under ``{scope}/{parent}/{id}``.

    ``collections`` lists the child segments this rule qualifies, e.g.
    ``("events", "calendarView")`` for calendars.
    """

    param: str
    scope: str
    parent: str
    collections: Tuple[str, ...]

    def unqualified_paths(self) -> Tuple[str, ...]:
        return tuple(f"{self.scope}/{c}" for c in self.collections)

    def __call__(self, path: str, encoded_id: str) -> str:
        for collection in self.collections:
            unqualified = f"{self.scope}/{collection}"
            qualified = f"{self.scope}/{self.parent}/{encoded_id}/{collection}"
            if path == unqualified:
                return qualified
            if path.startswith(unqualified + "/"):
                return qualified + path[len(unqualified):]
        return path


def _covers(prefix: str, path: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def build_rule_table(
    rules: Iterable[QualifiedCollectionRule],
) -> Mapping[str, QualifiedCollectionRule]:
    """Build a read-only parameter -> rule table.

    Raises:
        ValueError: if a parameter is registered twice, if one rule's
            collection path equals or contains another's, or if a rule's
            qualified output falls under another rule's collection path
            (at most one rule may fire per path).
    """
    table = {}
    for rule in rules:
        if rule.param in table:
            raise ValueError(f"Duplicate rewrite rule for parameter '{rule.param}'")
        for other in table.values():
            for first, second in ((other, rule), (rule, other)):
                for outer in first.unqualified_paths():
                    for inner in second.unqualified_paths():
                        if _covers(outer, inner):
                            raise ValueError(
                                f"Rewrite rules '{first.param}' and '{second.param}' both match {inner}"
                            )
                qualified = f"{first.scope}/{first.parent}"
                for inner in second.unqualified_paths():
                    if _covers(qualified, inner):
                        raise ValueError(
                            f"Rewrite rule '{second.param}' matches {inner}, "
                            f"which rule '{first.param}' produces"
                        )
        table[rule.param] = rule
    return MappingProxyType(table)


REWRITE_RULES = build_rule_table([
    QualifiedCollectionRule("calendarId", "/me", "calendars", ("events", "calendarView")),
    QualifiedCollectionRule("mailFolderId", "/me", "mailFolders", ("messages",)),
    QualifiedCollectionRule("contactFolderId", "/me", "contactFolders", ("contacts",)),
])


def rewrite(
    base_path: str,
    params: Mapping[str, Any],
    rules: Mapping[str, QualifiedCollectionRule] = REWRITE_RULES,
) -> str:
    """Return ``base_path`` qualified by every supplied identifier parameter.

    Rules run in table order and each one only fires on its own collection
    paths, so any other endpoint comes back unchanged. ``base_path`` must
    already have its ``{placeholder}`` segments substituted.

    Applying ``rewrite`` to a path it already qualified is not supported.
    """
    path = base_path
    for name, rule in rules.items():
        value = params.get(name)
        if is_supplied(value):
            path = rule(path, encode_path_segment(value))
    return path

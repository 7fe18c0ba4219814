from __future__ import annotations

import datetime as dt
import logging
import os
import re
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from vibetickets.document import Document, Field, find_section
from vibetickets.util import (
    ConflictError,
    FormatError,
    TicketIOError,
    describe_os_error,
    iso8601,
    now_utc,
    write_text,
)

logger = logging.getLogger(__name__)

TITLE_QUOTE_RE = re.compile(r"[:\[\]{}|>#]")
DEFAULT_TICKET_ID = "TKT-000"


@dataclass
class FieldUpdateResult:
    document: Document
    rename_required: bool = False
    new_path: str | None = None


@dataclass
class UpdateResult:
    success: bool
    new_path: str
    renamed: bool = False
    updated_sections: list[str] = field(default_factory=list)
    message: str | None = None


def format_title(title: str) -> str:
    clean = title.strip()
    if TITLE_QUOTE_RE.search(clean):
        return '"' + clean.replace('"', '\\"') + '"'
    return clean


def slug_with_id(ticket_id: str, slug: str) -> str:
    clean = slug.strip()
    if clean.upper().startswith(ticket_id.upper() + "-"):
        clean = clean[len(ticket_id) + 1 :]
    if not clean:
        raise FormatError("Slug cannot be empty")
    return f"{ticket_id}-{clean}"


def format_value(key: str, value: Any, ticket_id: str) -> str:
    text = str(value).strip()
    if "\n" in text or "\r" in text:
        raise FormatError(f"Value for {key} must be a single line")
    if key == "title":
        return format_title(text)
    if key == "slug":
        return slug_with_id(ticket_id, text)
    return text


def set_field(header: list, key: str, value: str) -> None:
    line = Field(key=key, value=value, raw=f"{key}: {value}")
    for index, existing in enumerate(header):
        if isinstance(existing, Field) and existing.key == key:
            header[index] = line
            return
    header.append(line)


def apply_field_updates(
    document: Document,
    updates: Mapping[str, Any],
    now: dt.datetime | None = None,
) -> FieldUpdateResult:
    header = list(document.header)
    ticket_id = str(updates.get("id") or document.value("id") or DEFAULT_TICKET_ID).strip()

    for key, value in updates.items():
        if key == "updated_at" or value is None:
            continue
        set_field(header, key, format_value(key, value, ticket_id))
    set_field(header, "updated_at", iso8601(now or now_utc()))

    updated = replace(document, header=header, body=list(document.body), warnings=list(document.warnings))
    result = FieldUpdateResult(document=updated)
    if "slug" in updates and updates["slug"] is not None and document.path:
        new_name = updated.get("slug") + ".md"
        if new_name != document.filename:
            result.rename_required = True
            result.new_path = os.path.join(os.path.dirname(document.path), new_name)
    return result


def replace_section_body(lines: list[str], name: str, new_body: str) -> list[str]:
    section = find_section(lines, name)
    if section is None:
        return lines
    body = new_body.strip()
    framed = ["", *body.split("\n"), ""] if body else ["", ""]
    return [*lines[: section.start], *framed, *lines[section.end :]]


def update_ticket(
    path: str | os.PathLike,
    document: Document,
    updates: Mapping[str, Any] | None = None,
    sections: Mapping[str, str] | None = None,
    now: dt.datetime | None = None,
) -> UpdateResult:
    path = os.fspath(path)
    if not os.path.isfile(path):
        raise TicketIOError(f"Original ticket file not found: {path}")

    document = replace(document, path=path)
    outcome = apply_field_updates(document, updates or {}, now=now)
    updated = outcome.document

    updated_sections: list[str] = []
    body = updated.body
    for name, content in (sections or {}).items():
        if find_section(body, name) is None:
            continue
        body = replace_section_body(body, name, content)
        updated_sections.append(name)
    updated.body = body

    new_path = path
    if outcome.rename_required and outcome.new_path:
        new_path = outcome.new_path
        if os.path.exists(new_path):
            raise ConflictError(f"Target file already exists: {os.path.basename(new_path)}")

    write_text(new_path, updated.render())

    result = UpdateResult(success=True, new_path=new_path, renamed=new_path != path, updated_sections=updated_sections)
    if result.renamed:
        try:
            os.remove(path)
        except OSError as exc:
            logger.warning("Could not remove old file %s: %s", os.path.basename(path), describe_os_error(exc, path))
        result.message = f"Renamed ticket file to: {os.path.basename(new_path)}"
    return result

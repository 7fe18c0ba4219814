from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vibetickets.util import FormatError, TicketIOError, describe_os_error

PREFIX = "TKT-"


@dataclass(frozen=True)
class TicketIdentity:
    id: str
    filename: str
    path: Path


def normalize_ticket_id(value: Any) -> str | None:
    if value is None:
        return None
    clean = str(value).strip().upper()
    if not clean:
        return None
    digits = clean[len(PREFIX):] if clean.startswith(PREFIX) else clean
    if not digits.isascii() or not digits.isdigit():
        raise FormatError(f"Invalid ticket ID format: {value}. Expected numeric ID or TKT-XXX format.")
    return PREFIX + digits.zfill(3)


def list_ticket_files(tickets_dir: Path) -> list[str]:
    try:
        names = os.listdir(tickets_dir)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise TicketIOError(describe_os_error(exc, tickets_dir)) from exc
    # sorted so resolution does not depend on directory listing order
    return sorted(name for name in names if name.endswith(".md"))


def resolve_ticket(tickets_dir: str | os.PathLike, value: Any) -> TicketIdentity | None:
    ticket_id = normalize_ticket_id(value)
    if ticket_id is None:
        return None
    tickets_dir = Path(tickets_dir)
    if not tickets_dir.is_dir():
        return None
    for name in list_ticket_files(tickets_dir):
        if name.startswith(ticket_id):
            return TicketIdentity(id=ticket_id, filename=name, path=tickets_dir / name)
    return None

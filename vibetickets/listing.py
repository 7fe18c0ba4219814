from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Any, Dict, List

from vibetickets import util
from vibetickets.document import load_document
from vibetickets.validation import collect_ticket_paths

logger = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"^TKT-(\d+)", re.IGNORECASE)


def _ticket_number(value: str) -> int:
    match = NUMBER_RE.match(value or "")
    return int(match.group(1)) if match else 0


def list_tickets(tickets_dir: Path, status: str | None = None) -> List[Dict[str, Any]]:
    rows = []
    for ticket_path in collect_ticket_paths(tickets_dir):
        try:
            doc = load_document(ticket_path)
        except (util.FormatError, util.TicketIOError) as exc:
            logger.warning("Could not parse ticket %s: %s", ticket_path.name, exc)
            continue
        row = {
            "id": doc.value("id") or "Unknown",
            "title": doc.value("title") or "Untitled",
            "status": doc.value("status") or "unknown",
            "priority": doc.value("priority") or "medium",
            "file": ticket_path.name,
        }
        if status and row["status"] != status:
            continue
        rows.append(row)
    rows.sort(key=lambda r: _ticket_number(r["id"]))
    return rows


def next_ticket_id(tickets_dir: Path) -> str:
    numbers = [0]
    if tickets_dir.is_dir():
        numbers.extend(_ticket_number(p.name) for p in tickets_dir.iterdir())
    return f"TKT-{max(numbers) + 1:03d}"

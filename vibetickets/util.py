from __future__ import annotations
import datetime as dt
import errno
import os
import re
from pathlib import Path

# Errors


class TicketError(Exception):
    pass


class FormatError(TicketError):
    pass


class ConflictError(TicketError):
    pass


class TicketIOError(TicketError):
    pass


class ConfigError(TicketError):
    pass


# Paths


def repo_root() -> Path:
    return Path.cwd()


def vibe_dir() -> Path:
    return repo_root() / ".vibe"


def config_path() -> Path:
    return vibe_dir() / "config.yml"


# Time helpers

def now_utc() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def iso8601(ts: dt.datetime) -> str:
    return ts.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def parse_date(s: str) -> dt.datetime | None:
    value = s.strip()
    if not value:
        return None
    try:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


# Slugs and names

TICKET_ID_RE = re.compile(r"^TKT-\d{3}$")
FILENAME_ID_RE = re.compile(r"^(TKT-\d+)", re.IGNORECASE)


def create_slug(title: str, max_length: int = 30, word_limit: int = 5) -> str:
    if not title:
        return ""
    words = title.split()[:word_limit]
    slug = re.sub(r"[^a-z0-9]+", "-", " ".join(words).lower()).strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug


def id_from_filename(filename: str) -> str | None:
    match = FILENAME_ID_RE.match(filename)
    if not match:
        return None
    return match.group(1).upper()


def humanize_filename(filename: str) -> str:
    stem = filename[:-3] if filename.endswith(".md") else filename
    ticket_id = id_from_filename(stem)
    if ticket_id:
        stem = stem[len(ticket_id):]
    words = re.sub(r"[-_]+", " ", stem).strip()
    return words[:1].upper() + words[1:]


# File IO

def describe_os_error(exc: OSError, path: str | os.PathLike) -> str:
    name = os.fspath(path)
    if exc.errno == errno.ENOENT:
        return f"File not found: {name}"
    if exc.errno in (errno.EACCES, errno.EPERM):
        return f"Permission denied: {name}"
    if exc.errno == errno.ENOSPC:
        return f"Not enough disk space to write: {name}"
    if exc.errno == errno.EISDIR:
        return f"Expected file but found directory: {name}"
    return f"{exc.strerror or exc}: {name}"


def read_text(path: str | os.PathLike) -> str:
    try:
        with open(path, "r", encoding="utf-8", newline="") as handle:
            return handle.read()
    except OSError as exc:
        raise TicketIOError(describe_os_error(exc, path)) from exc


def write_text(path: str | os.PathLike, content: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise TicketIOError(describe_os_error(exc, path)) from exc


def ensure_dir(p: Path):
    p.mkdir(parents=True, exist_ok=True)

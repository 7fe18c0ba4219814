from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from vibetickets import util

DEFAULT_STATUS_OPTIONS = ["open", "in_progress", "review", "done"]
DEFAULT_PRIORITY_OPTIONS = ["low", "medium", "high", "urgent"]
SEVERITIES = ("error", "warning")


@dataclass
class TicketConfig:
    tickets_path: str = ".vibe/tickets"
    default_template: str = ".vibe/.templates/default.md"
    status_options: list[str] = field(default_factory=lambda: list(DEFAULT_STATUS_OPTIONS))
    priority_options: list[str] = field(default_factory=lambda: list(DEFAULT_PRIORITY_OPTIONS))
    slug_max_length: int = 30
    slug_word_limit: int = 5
    short_section_severity: str = "error"

    def tickets_dir(self, root: Path | None = None) -> Path:
        return (root or util.repo_root()) / self.tickets_path

    def template_path(self, root: Path | None = None) -> Path:
        return (root or util.repo_root()) / self.default_template


def _string_list(value: Any, name: str, default: list[str]) -> list[str]:
    if value is None:
        return list(default)
    if not isinstance(value, list) or not all(isinstance(v, (str, int)) for v in value):
        raise util.ConfigError(f"{name} must be a list of strings")
    return [str(v) for v in value]


def _positive_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise util.ConfigError(f"{name} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise util.ConfigError(f"{name} must be a positive integer") from exc
    if number < 1:
        raise util.ConfigError(f"{name} must be a positive integer")
    return number


def config_from_dict(data: Dict[str, Any]) -> TicketConfig:
    tickets = data.get("tickets") or {}
    lint = data.get("lint") or {}
    if not isinstance(tickets, dict) or not isinstance(lint, dict):
        raise util.ConfigError("tickets and lint must be mappings")
    slug = tickets.get("slug") or {}
    if not isinstance(slug, dict):
        raise util.ConfigError("tickets.slug must be a mapping")
    cfg = TicketConfig()
    cfg.tickets_path = str(tickets.get("path") or cfg.tickets_path)
    cfg.default_template = str(tickets.get("default_template") or cfg.default_template)
    cfg.status_options = _string_list(tickets.get("status_options"), "tickets.status_options", DEFAULT_STATUS_OPTIONS)
    cfg.priority_options = _string_list(tickets.get("priority_options"), "tickets.priority_options", DEFAULT_PRIORITY_OPTIONS)
    cfg.slug_max_length = _positive_int(slug.get("max_length"), "tickets.slug.max_length", cfg.slug_max_length)
    cfg.slug_word_limit = _positive_int(slug.get("word_limit"), "tickets.slug.word_limit", cfg.slug_word_limit)
    severity = lint.get("short_section_severity", cfg.short_section_severity)
    if severity not in SEVERITIES:
        raise util.ConfigError(f"lint.short_section_severity must be one of: {', '.join(SEVERITIES)}")
    cfg.short_section_severity = severity
    return cfg


def load_config(path: Path | None = None) -> TicketConfig:
    path = path or util.config_path()
    if not path.exists():
        return TicketConfig()
    try:
        data = yaml.safe_load(util.read_text(path)) or {}
    except yaml.YAMLError as exc:
        raise util.ConfigError(f"Failed to parse configuration {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise util.ConfigError(f"Configuration {path} must be a mapping")
    return config_from_dict(data)

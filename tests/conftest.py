import datetime as dt
from pathlib import Path

import pytest

from vibetickets import templates
from vibetickets.config import TicketConfig
from vibetickets.validation import ValidationRules

VALID_TICKET = """---
id: TKT-007
title: Fix login bug
slug: TKT-007-fix-login-bug
status: open
priority: medium
created_at: 2024-01-01T10:00:00.000Z
updated_at: 2024-01-02T10:00:00.000Z
---

## Description

Users cannot log in with SSO.

## Acceptance Criteria

- [ ] SSO login succeeds

## Code Quality

- Follow existing code patterns

## Implementation Notes

Touch the auth middleware only.

## Testing & Test Cases

Add an integration test for SSO.
"""

FIXED_NOW = dt.datetime(2026, 1, 1, tzinfo=dt.timezone.utc)


@pytest.fixture
def valid_text() -> str:
    return VALID_TICKET


@pytest.fixture
def now() -> dt.datetime:
    return FIXED_NOW


@pytest.fixture
def rules() -> ValidationRules:
    return ValidationRules.from_template(templates.DEFAULT_TEMPLATE, TicketConfig())


@pytest.fixture
def tickets_dir(tmp_path: Path) -> Path:
    path = tmp_path / "tickets"
    path.mkdir()
    return path


@pytest.fixture
def write_ticket(tickets_dir: Path):
    def _write(name: str, content: str = VALID_TICKET) -> Path:
        path = tickets_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write

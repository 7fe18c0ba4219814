DEFAULT_TEMPLATE = """---
id: TKT-{id}
title: {title}
slug: {slug}
status: open
priority: medium
created_at: {date}
updated_at: {date}
---

## Description

Brief description of the task or issue.

## Acceptance Criteria

- [ ] Define what needs to be done
- [ ] Add specific requirements
- [ ] Include testing criteria

## Code Quality

- Follow existing code patterns
- Write clear, readable code
- Include appropriate error handling
- Add docstrings where needed

## Implementation Notes

Add any technical details, considerations, or constraints.

## Testing & Test Cases

Outline the testing approach and specific test cases.
"""

DEFAULT_CONFIG = """project:
  name: My Project

tickets:
  path: .vibe/tickets
  default_template: .vibe/.templates/default.md
  priority_options:
    - low
    - medium
    - high
    - urgent
  status_options:
    - open
    - in_progress
    - review
    - done
  slug:
    max_length: 30
    word_limit: 5

lint:
  short_section_severity: error
"""

from __future__ import annotations
import datetime as dt
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

from vibetickets import util
from vibetickets.document import Document, decode_scalar, load_document
from vibetickets.mutate import apply_field_updates
from vibetickets.validation import ValidationResult, ValidationRules, validate_document

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")
SECTION_PLACEHOLDER = "TODO: fill in this section."
DEFAULT_PRIORITY = "medium"


@dataclass
class FixOutcome:
    document: Document
    fields: List[str] = field(default_factory=list)
    sections: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.fields or self.sections)


def _render_placeholders(template: str, context: Dict[str, str]) -> str | None:
    names = PLACEHOLDER_RE.findall(template)
    if any(not context.get(name) for name in names):
        return None
    return PLACEHOLDER_RE.sub(lambda m: context[m.group(1)], template)


def _template_value(rules: ValidationRules, key: str) -> str | None:
    raw = rules.template_fields.get(key)
    if not raw or PLACEHOLDER_RE.search(raw):
        return None
    value = decode_scalar(raw)
    if key == "status" and rules.status_options and value not in rules.status_options:
        return None
    if key == "priority" and rules.priority_options and value not in rules.priority_options:
        return None
    return value


def build_field_defaults(
    document: Document,
    missing: Iterable[str],
    rules: ValidationRules,
    now: dt.datetime,
) -> Dict[str, str]:
    filename = document.filename
    ticket_id = document.value("id") or util.id_from_filename(filename) or ""
    title = document.value("title") or util.humanize_filename(filename)
    slug = util.create_slug(title, rules.slug_max_length, rules.slug_word_limit)
    stamp = util.iso8601(now)

    priority = DEFAULT_PRIORITY
    if rules.priority_options and priority not in rules.priority_options:
        priority = rules.priority_options[0]
    generic = {
        "id": ticket_id,
        "title": title,
        # the mutator prefixes the id, so a slug is only derivable with one
        "slug": slug if ticket_id else "",
        "created_at": stamp,
        "updated_at": stamp,
        "status": rules.status_options[0] if rules.status_options else "",
        "priority": priority,
    }
    context = {
        "id": ticket_id[len("TKT-"):] if ticket_id.startswith("TKT-") else ticket_id,
        "title": title,
        "slug": slug,
        "date": stamp,
    }

    defaults: Dict[str, str] = {}
    for key in missing:
        value = _template_value(rules, key) or generic.get(key)
        if not value and rules.template_fields.get(key):
            value = _render_placeholders(decode_scalar(rules.template_fields[key]), context)
        if value:
            defaults[key] = value
        else:
            logger.debug("No default available for field %s in %s", key, filename)
    return defaults


def append_section(body: List[str], name: str, content: str) -> List[str]:
    lines = list(body)
    while lines and not lines[-1].strip():
        lines.pop()
    if lines:
        lines.append("")
    lines.extend([f"## {name}", "", *content.strip().split("\n"), ""])
    return lines


def fix_document(
    document: Document,
    result: ValidationResult,
    rules: ValidationRules,
    now: dt.datetime | None = None,
) -> FixOutcome:
    now = now or util.now_utc()
    body = list(document.body)
    sections: List[str] = []
    for name in result.missing_sections:
        content = rules.section_defaults.get(name) or SECTION_PLACEHOLDER
        body = append_section(body, name, content)
        sections.append(name)

    updates = build_field_defaults(document, result.missing_fields, rules, now)
    outcome = FixOutcome(document=document, fields=list(updates), sections=sections)
    if not outcome.changed:
        return outcome

    patched = Document(
        path=document.path,
        header=list(document.header),
        body=body,
        text=document.text,
        warnings=list(document.warnings),
    )
    outcome.document = apply_field_updates(patched, updates, now=now).document
    return outcome


def fix_ticket(
    path: str | os.PathLike,
    document: Document,
    rules: ValidationRules,
    result: ValidationResult | None = None,
    now: dt.datetime | None = None,
) -> ValidationResult:
    if result is None:
        result = validate_document(document, rules)
    outcome = fix_document(document, result, rules, now=now)
    if not outcome.changed:
        return result

    util.write_text(path, outcome.document.render())

    resolved = {f"missing required field: {key}" for key in outcome.fields}
    resolved |= {f"missing required section: {name}" for name in outcome.sections}
    result.errors = [error for error in result.errors if error not in resolved]
    result.missing_fields = [key for key in result.missing_fields if key not in outcome.fields]
    result.missing_sections = [name for name in result.missing_sections if name not in outcome.sections]
    result.fixed = True
    logger.info(
        "Fixed %s: fields=%s sections=%s",
        os.path.basename(os.fspath(path)),
        ", ".join(outcome.fields) or "-",
        ", ".join(outcome.sections) or "-",
    )
    return result


def lint_paths(paths: Iterable[Path], rules: ValidationRules, fix: bool = False) -> List[ValidationResult]:
    """
    Validate every path, optionally fixing missing fields/sections.
    Parse and write failures are recorded on that file's result; the batch always completes.
    """
    results: List[ValidationResult] = []
    for path in paths:
        try:
            document = load_document(path)
        except (util.FormatError, util.TicketIOError) as exc:
            logger.warning("Skipping %s: %s", path, exc)
            results.append(ValidationResult(path=os.fspath(path), errors=[str(exc)]))
            continue
        result = validate_document(document, rules)
        if fix and (result.missing_fields or result.missing_sections):
            try:
                result = fix_ticket(path, document, rules, result)
            except util.TicketIOError as exc:
                logger.warning("Could not write fixes to %s: %s", path, exc)
                result.errors.append(f"failed to write fixes: {exc}")
        results.append(result)
    return results

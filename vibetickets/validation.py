from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from vibetickets import util
from vibetickets.config import TicketConfig
from vibetickets.document import Document, find_sections, load_document, parse_text

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_FIELDS = ["id", "title", "slug", "status", "priority", "created_at", "updated_at"]
DATE_FIELDS = ["created_at", "updated_at"]
MIN_SECTION_LENGTH = 10
MAX_TITLE_LENGTH = 80


@dataclass
class ValidationRules:
    required_fields: list[str] = field(default_factory=lambda: list(DEFAULT_REQUIRED_FIELDS))
    required_sections: list[str] = field(default_factory=list)
    status_options: list[str] = field(default_factory=list)
    priority_options: list[str] = field(default_factory=list)
    # "error" keeps short sections blocking alongside structural problems;
    # "warning" moves them to the advisory list.
    short_section_severity: str = "error"
    template_fields: dict[str, str] = field(default_factory=dict)
    section_defaults: dict[str, str] = field(default_factory=dict)
    slug_max_length: int = 30
    slug_word_limit: int = 5

    @classmethod
    def from_template(cls, template_text: str, config: TicketConfig | None = None) -> "ValidationRules":
        config = config or TicketConfig()
        rules = cls(
            status_options=list(config.status_options),
            priority_options=list(config.priority_options),
            short_section_severity=config.short_section_severity,
            slug_max_length=config.slug_max_length,
            slug_word_limit=config.slug_word_limit,
        )
        try:
            template = parse_text(template_text, path="template")
        except util.FormatError:
            logger.debug("Template has no header block, using default required fields")
            sections = find_sections(template_text.split("\n"))
        else:
            fields = template.fields()
            if fields:
                rules.required_fields = list(fields)
                rules.template_fields = fields
            sections = template.sections()
        for section in sections:
            if section.name not in rules.section_defaults:
                rules.required_sections.append(section.name)
                rules.section_defaults[section.name] = section.text
        return rules


@dataclass
class ValidationResult:
    path: str
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    fixed: bool = False
    missing_sections: List[str] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)

    @property
    def ok(self) -> bool:
        return not self.errors


def collect_ticket_paths(tickets_dir: Path, target: str | None = None) -> List[Path]:
    if target:
        p = Path(target)
        if not p.is_absolute() and not p.exists():
            p = tickets_dir / target
        return [p]
    if not tickets_dir.is_dir():
        return []
    return sorted(p for p in tickets_dir.iterdir() if p.suffix == ".md" and p.is_file())


def _check_enum(result: ValidationResult, name: str, value: str | None, options: list[str]) -> None:
    if value and options and value not in options:
        result.errors.append(f'invalid {name} "{value}"; must be one of: {", ".join(options)}')


def validate_document(document: Document, rules: ValidationRules) -> ValidationResult:
    result = ValidationResult(path=document.path or "")
    result.warnings.extend(document.warnings)

    for key in rules.required_fields:
        if not document.value(key):
            result.errors.append(f"missing required field: {key}")
            result.missing_fields.append(key)

    _check_enum(result, "status", document.value("status"), rules.status_options)
    _check_enum(result, "priority", document.value("priority"), rules.priority_options)

    ticket_id = document.value("id")
    if ticket_id:
        if not util.TICKET_ID_RE.match(ticket_id):
            result.errors.append(f'invalid id format "{ticket_id}"; expected TKT-NNN (e.g. TKT-001)')
        if document.path and not document.filename.startswith(ticket_id):
            result.errors.append(f'filename should start with ticket id "{ticket_id}"')

    for key in DATE_FIELDS:
        value = document.value(key)
        if value and util.parse_date(value) is None:
            result.errors.append(f"invalid {key} date: {value}")

    sections = document.sections()
    present = {section.name for section in sections}
    for name in rules.required_sections:
        if name not in present:
            result.errors.append(f"missing required section: {name}")
            result.missing_sections.append(name)

    short = result.warnings if rules.short_section_severity == "warning" else result.errors
    for section in sections:
        if len(section.text) < MIN_SECTION_LENGTH:
            short.append(f'section "## {section.name}" appears to be empty or too short')

    body = "\n".join(document.body)
    if "TODO" in body or "FIXME" in body:
        result.warnings.append("contains TODO or FIXME comments")
    title = document.value("title")
    if title and len(title) > MAX_TITLE_LENGTH:
        result.warnings.append(f"title is longer than {MAX_TITLE_LENGTH} characters")
    return result


def validate_file(path: str | os.PathLike, rules: ValidationRules) -> ValidationResult:
    try:
        document = load_document(path)
    except (util.FormatError, util.TicketIOError) as exc:
        return ValidationResult(path=os.fspath(path), errors=[str(exc)])
    return validate_document(document, rules)

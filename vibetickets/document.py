"""Line-preserving model of a ticket file.

A ticket is a ``---`` delimited header block of ``key: value`` lines followed by
a markdown body split into ``## Name`` sections. Header lines are kept as an
ordered list of :class:`Field` / :class:`UnparsedLine` entries rather than a
mapping, so unknown lines, key order and quoting survive every
read-modify-write cycle.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Union

import yaml

from vibetickets.util import FormatError, read_text

logger = logging.getLogger(__name__)

DELIMITER = "---"
SECTION_RE = re.compile(r"^##\s+(.*)$")


@dataclass
class Field:
    key: str
    value: str
    raw: str


@dataclass
class UnparsedLine:
    raw: str


HeaderLine = Union[Field, UnparsedLine]


@dataclass
class Section:
    name: str
    header_index: int
    start: int
    end: int
    lines: list[str]

    @property
    def text(self) -> str:
        return "\n".join(self.lines).strip()


def decode_scalar(raw: str) -> str:
    # Only quoted values are decoded; bare values stay text so "yes" or "007"
    # are never coerced into other types.
    if len(raw) < 2 or raw[0] not in "\"'" or raw[-1] != raw[0]:
        return raw
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    return value if isinstance(value, str) else raw


@dataclass
class Document:
    path: str | None
    header: list[HeaderLine]
    body: list[str]
    text: str = ""
    warnings: list[str] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return os.path.basename(self.path) if self.path else ""

    def fields(self) -> dict[str, str]:
        result: dict[str, str] = {}
        for line in self.header:
            if isinstance(line, Field) and line.key not in result:
                result[line.key] = line.value
        return result

    def find_field(self, key: str) -> int | None:
        for index, line in enumerate(self.header):
            if isinstance(line, Field) and line.key == key:
                return index
        return None

    def get(self, key: str) -> str | None:
        index = self.find_field(key)
        if index is None:
            return None
        return self.header[index].value

    def value(self, key: str) -> str | None:
        raw = self.get(key)
        if raw is None:
            return None
        return decode_scalar(raw)

    def sections(self) -> list[Section]:
        return find_sections(self.body)

    def section(self, name: str) -> Section | None:
        return find_section(self.body, name)

    def render(self) -> str:
        header = [line.raw for line in self.header]
        return "\n".join([DELIMITER, *header, DELIMITER, *self.body])


def parse_header_line(raw: str) -> HeaderLine:
    if raw.strip() == "":
        return UnparsedLine(raw=raw)
    key, sep, value = raw.partition(":")
    key = key.strip()
    if not sep or not key:
        return UnparsedLine(raw=raw)
    return Field(key=key, value=value.strip(), raw=raw)


def parse_text(text: str, path: str | os.PathLike | None = None) -> Document:
    lines = text.split("\n")
    if len(lines) < 3:
        raise FormatError("Invalid ticket format: file too short to contain a header block")
    if lines[0] != DELIMITER:
        raise FormatError("Invalid ticket format: missing opening delimiter (---)")
    try:
        end = lines.index(DELIMITER, 1)
    except ValueError as exc:
        raise FormatError("Invalid ticket format: missing closing delimiter (---)") from exc

    header = [parse_header_line(raw) for raw in lines[1:end]]
    name = os.path.basename(os.fspath(path)) if path is not None else "<text>"
    warnings: list[str] = []

    # 1-based file line numbers; the opening delimiter is line 1.
    invalid = [
        str(index + 2)
        for index, line in enumerate(header)
        if isinstance(line, UnparsedLine) and line.raw.strip()
    ]
    if invalid:
        warnings.append(f"Invalid header line(s) {', '.join(invalid)} in {name}")

    document = Document(
        path=os.fspath(path) if path is not None else None,
        header=header,
        body=lines[end + 1 :],
        text=text,
        warnings=warnings,
    )
    for key in ("id", "title"):
        if not document.get(key):
            warnings.append(f"Missing '{key}' field in {name}")
    for message in warnings:
        logger.debug(message)
    return document


def load_document(path: str | os.PathLike) -> Document:
    return parse_text(read_text(path), path=path)


def find_sections(lines: list[str]) -> list[Section]:
    headers: list[tuple[int, str]] = []
    for index, line in enumerate(lines):
        match = SECTION_RE.match(line)
        if match:
            headers.append((index, match.group(1).strip()))
    sections: list[Section] = []
    for position, (index, name) in enumerate(headers):
        end = headers[position + 1][0] if position + 1 < len(headers) else len(lines)
        sections.append(
            Section(name=name, header_index=index, start=index + 1, end=end, lines=lines[index + 1 : end])
        )
    return sections


def find_section(lines: list[str], name: str) -> Section | None:
    wanted = name.strip()
    for section in find_sections(lines):
        if section.name == wanted:
            return section
    return None

import pytest

from vibetickets.resolver import TicketIdentity, normalize_ticket_id, resolve_ticket
from vibetickets.util import FormatError


@pytest.fixture
def populated(tickets_dir, write_ticket):
    for number in range(1, 6):
        write_ticket(f"TKT-{number:03d}-ticket-{number}.md")
    return tickets_dir


@pytest.mark.parametrize("value", ["7", "007", "TKT-007", "tkt-007", "  tkt-7 ", 7])
def test_loose_identifiers_resolve_to_same_ticket(tickets_dir, write_ticket, value):
    path = write_ticket("TKT-007-foo.md")
    assert resolve_ticket(tickets_dir, value) == TicketIdentity(
        id="TKT-007", filename="TKT-007-foo.md", path=path
    )


def test_unknown_numeric_id_returns_none(populated):
    assert resolve_ticket(populated, "999") is None
    assert resolve_ticket(populated, "3").filename == "TKT-003-ticket-3.md"


@pytest.mark.parametrize("value", ["abc", "TKT-", "TKT-12a", "12-3", "TKT 7"])
def test_malformed_identifier_raises(populated, value):
    with pytest.raises(FormatError, match="Invalid ticket ID format"):
        resolve_ticket(populated, value)


@pytest.mark.parametrize("value", [None, "", "   "])
def test_empty_input_returns_none(populated, value):
    assert resolve_ticket(populated, value) is None


def test_missing_directory_returns_none(tmp_path):
    assert resolve_ticket(tmp_path / "nope", "1") is None


def test_only_markdown_files_match(tickets_dir):
    (tickets_dir / "TKT-001-notes.txt").write_text("x", encoding="utf-8")
    assert resolve_ticket(tickets_dir, "1") is None


def test_first_match_in_sorted_order(tickets_dir, write_ticket):
    write_ticket("TKT-008-zeta.md")
    write_ticket("TKT-008-alpha.md")
    assert resolve_ticket(tickets_dir, "8").filename == "TKT-008-alpha.md"


def test_normalize_ticket_id():
    assert normalize_ticket_id("12") == "TKT-012"
    assert normalize_ticket_id("1234") == "TKT-1234"
    assert normalize_ticket_id("Tkt-001") == "TKT-001"

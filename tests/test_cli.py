import os
import subprocess
import sys
from pathlib import Path

from vibetickets.cli import main
from vibetickets.document import load_document


def run_cli(tmpdir: Path, argv):
    cwd = os.getcwd()
    os.chdir(tmpdir)
    try:
        return main(argv)
    finally:
        os.chdir(cwd)


def tickets(tmp_path: Path):
    return sorted((tmp_path / ".vibe" / "tickets").glob("*.md"))


def test_init_creates_structure(tmp_path: Path):
    rc = run_cli(tmp_path, ["init"])
    assert rc == 0
    assert (tmp_path / ".vibe" / "config.yml").exists()
    assert (tmp_path / ".vibe" / ".templates" / "default.md").exists()
    assert (tmp_path / ".vibe" / "tickets").is_dir()


def test_new_produces_valid_ticket(tmp_path: Path):
    run_cli(tmp_path, ["init"])
    rc = run_cli(tmp_path, ["new", "Fix:", "login", "bug", "--priority", "high"])
    assert rc == 0
    (path,) = tickets(tmp_path)
    assert path.name == "TKT-001-fix-login-bug.md"
    doc = load_document(path)
    assert doc.value("title") == "Fix: login bug"
    assert doc.get("slug") == "TKT-001-fix-login-bug"
    assert doc.get("priority") == "high"
    assert doc.get("status") == "open"
    assert run_cli(tmp_path, ["lint"]) == 0

    run_cli(tmp_path, ["new", "Second", "ticket"])
    assert [p.name for p in tickets(tmp_path)] == ["TKT-001-fix-login-bug.md", "TKT-002-second-ticket.md"]


def test_lint_reports_errors(tmp_path: Path, capsys):
    run_cli(tmp_path, ["init"])
    run_cli(tmp_path, ["new", "Bad", "status"])
    (path,) = tickets(tmp_path)
    path.write_text(path.read_text(encoding="utf-8").replace("status: open", "status: in-review"), encoding="utf-8")
    capsys.readouterr()
    assert run_cli(tmp_path, ["lint", path.name]) == 1
    out = capsys.readouterr().out
    assert 'invalid status "in-review"' in out
    assert "Total errors: 1" in out


def test_lint_fix_adds_missing_section(tmp_path: Path):
    run_cli(tmp_path, ["init"])
    run_cli(tmp_path, ["new", "Repair", "me"])
    (path,) = tickets(tmp_path)
    content = path.read_text(encoding="utf-8")
    path.write_text(content.replace("## Code Quality", "## Quality"), encoding="utf-8")

    assert run_cli(tmp_path, ["lint", "--fix"]) == 0
    repaired = path.read_text(encoding="utf-8")
    assert "## Code Quality" in repaired
    assert "## Quality" in repaired


def test_close_marks_done(tmp_path: Path):
    run_cli(tmp_path, ["init"])
    run_cli(tmp_path, ["new", "Close", "me"])
    assert run_cli(tmp_path, ["close", "1"]) == 0
    (path,) = tickets(tmp_path)
    assert load_document(path).get("status") == "done"


def test_close_unknown_and_malformed(tmp_path: Path, capsys):
    run_cli(tmp_path, ["init"])
    assert run_cli(tmp_path, ["close", "42"]) == 1
    assert "No ticket matching '42' found." in capsys.readouterr().out
    assert run_cli(tmp_path, ["close", "abc"]) == 1
    assert "Invalid ticket ID format" in capsys.readouterr().err


def test_update_slug_renames(tmp_path: Path):
    run_cli(tmp_path, ["init"])
    run_cli(tmp_path, ["new", "Old", "name"])
    rc = run_cli(tmp_path, ["update", "TKT-001", "--slug", "new-name", "--section", "Description", "--body", "Now described."])
    assert rc == 0
    (path,) = tickets(tmp_path)
    assert path.name == "TKT-001-new-name.md"
    assert load_document(path).section("Description").text == "Now described."


def test_list_filters_by_status(tmp_path: Path, capsys):
    run_cli(tmp_path, ["init"])
    run_cli(tmp_path, ["new", "One"])
    run_cli(tmp_path, ["new", "Two", "--status", "review"])
    capsys.readouterr()
    assert run_cli(tmp_path, ["list", "--status", "review"]) == 0
    out = capsys.readouterr().out
    assert "TKT-002" in out
    assert "TKT-001" not in out


def test_module_entry_point(tmp_path: Path):
    env = os.environ.copy()
    env["PYTHONPATH"] = str(Path(__file__).resolve().parents[1])
    cmd = [sys.executable, "-m", "vibetickets.cli", "init"]
    result = subprocess.run(cmd, cwd=tmp_path, check=False, capture_output=True, text=True, env=env)
    assert result.returncode == 0
    assert (tmp_path / ".vibe" / "tickets").is_dir()


def test_new_with_template_lacking_id(tmp_path: Path):
    run_cli(tmp_path, ["init"])
    template = tmp_path / ".vibe" / ".templates" / "default.md"
    text = template.read_text(encoding="utf-8")
    template.write_text(text.replace("id: TKT-{id}\n", ""), encoding="utf-8")
    assert run_cli(tmp_path, ["new", "Custom", "template"]) == 0
    (path,) = tickets(tmp_path)
    assert path.name == "TKT-001-custom-template.md"
    doc = load_document(path)
    assert doc.get("id") == "TKT-001"
    assert doc.get("slug") == "TKT-001-custom-template"


def test_update_rejects_multiline_title(tmp_path: Path, capsys):
    run_cli(tmp_path, ["init"])
    run_cli(tmp_path, ["new", "Plain", "title"])
    (path,) = tickets(tmp_path)
    before = path.read_text(encoding="utf-8")
    assert run_cli(tmp_path, ["update", "TKT-001", "--title", "x\nstatus: done"]) == 1
    assert "single line" in capsys.readouterr().err
    assert path.read_text(encoding="utf-8") == before


def test_debug_flag_is_accepted(tmp_path: Path):
    assert run_cli(tmp_path, ["--debug", "init"]) == 0
    assert (tmp_path / ".vibe" / "config.yml").exists()

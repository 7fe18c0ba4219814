import argparse
import logging
import sys
from pathlib import Path
from typing import List

from . import config as config_mod
from . import listing, repair, templates, util
from .document import load_document, parse_text
from .mutate import apply_field_updates, update_ticket
from .resolver import resolve_ticket
from .validation import ValidationResult, ValidationRules, collect_ticket_paths

logger = logging.getLogger(__name__)


def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except util.TicketError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def build_parser():
    p = argparse.ArgumentParser(prog="vibe", description="Markdown ticket management")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    # init
    sp = sub.add_parser("init", help="Initialize .vibe structure")
    sp.set_defaults(func=cmd_init)

    # new
    sp = sub.add_parser("new", help="Create new ticket")
    sp.add_argument("title", nargs="+")
    sp.add_argument("--priority", default="medium")
    sp.add_argument("--status", default="open")
    sp.set_defaults(func=cmd_new)

    # list
    sp = sub.add_parser("list", help="List tickets")
    sp.add_argument("--status")
    sp.set_defaults(func=cmd_list)

    # lint
    sp = sub.add_parser("lint", help="Validate ticket formatting")
    sp.add_argument("file", nargs="?", help="Ticket file to lint (default: all tickets)")
    sp.add_argument("--fix", action="store_true", help="Add missing fields and sections")
    sp.add_argument("--verbose", "-v", action="store_true", help="Show warnings and passing files")
    sp.set_defaults(func=cmd_lint)

    # close
    sp = sub.add_parser("close", help="Mark a ticket as done")
    sp.add_argument("ticket")
    sp.set_defaults(func=cmd_close)

    # update
    sp = sub.add_parser("update", help="Update ticket fields or a section")
    sp.add_argument("ticket")
    sp.add_argument("--title")
    sp.add_argument("--slug")
    sp.add_argument("--status")
    sp.add_argument("--priority")
    sp.add_argument("--section", help="Section name to replace")
    sp.add_argument("--body", help="New section body")
    sp.set_defaults(func=cmd_update)

    return p


def load_rules(cfg: config_mod.TicketConfig) -> ValidationRules:
    template_path = cfg.template_path()
    if template_path.exists():
        template_text = util.read_text(template_path)
    else:
        logger.debug("Template %s not found, using built-in template", template_path)
        template_text = templates.DEFAULT_TEMPLATE
    return ValidationRules.from_template(template_text, cfg)


def resolve_or_report(cfg: config_mod.TicketConfig, ticket: str):
    identity = resolve_ticket(cfg.tickets_dir(), ticket)
    if identity is None:
        print(f"No ticket matching '{ticket}' found.")
    return identity


# Commands


def cmd_init(args):
    root = util.vibe_dir()
    util.ensure_dir(root / "tickets")
    util.ensure_dir(root / ".templates")
    cfg_path = util.config_path()
    if not cfg_path.exists():
        util.write_text(cfg_path, templates.DEFAULT_CONFIG)
    template_path = root / ".templates" / "default.md"
    if not template_path.exists():
        util.write_text(template_path, templates.DEFAULT_TEMPLATE)
    print("Initialized .vibe with config.yml, tickets/ and .templates/default.md")
    return 0


def cmd_new(args):
    cfg = config_mod.load_config()
    tickets_dir = cfg.tickets_dir()
    util.ensure_dir(tickets_dir)
    title = " ".join(args.title).strip()

    priority, status = args.priority, args.status
    if priority not in cfg.priority_options:
        print(f"Priority '{priority}' not in config options. Using default.")
        priority = "medium"
    if status not in cfg.status_options:
        print(f"Status '{status}' not in config options. Using default.")
        status = cfg.status_options[0]

    template_path = cfg.template_path()
    template = util.read_text(template_path) if template_path.exists() else templates.DEFAULT_TEMPLATE
    ticket_id = listing.next_ticket_id(tickets_dir)
    slug = util.create_slug(title, cfg.slug_max_length, cfg.slug_word_limit) or "ticket"
    now = util.now_utc()
    content = (
        template.replace("{id}", ticket_id[len("TKT-"):])
        .replace("{title}", title)
        .replace("{slug}", slug)
        .replace("{date}", util.iso8601(now))
    )
    document = parse_text(content)
    updates = {"id": ticket_id, "title": title, "slug": slug, "status": status, "priority": priority}
    document = apply_field_updates(document, updates, now=now).document

    filename = f"{ticket_id}-{slug}.md"
    util.write_text(tickets_dir / filename, document.render())
    print(f"Created ticket: {filename} (priority: {priority}, status: {status})")
    return 0


def cmd_list(args):
    cfg = config_mod.load_config()
    tickets_dir = cfg.tickets_dir()
    if not tickets_dir.is_dir():
        print(f"Tickets directory not found: {tickets_dir}", file=sys.stderr)
        return 1
    rows = listing.list_tickets(tickets_dir, status=args.status)
    if not rows:
        print(f"No tickets found with status: {args.status}" if args.status else "No tickets found.")
        return 0
    headers = ["id", "status", "priority", "title"]
    print(" | ".join(headers))
    for r in rows:
        print(" | ".join(str(r.get(h, "")) for h in headers))
    return 0


def cmd_lint(args):
    cfg = config_mod.load_config()
    tickets_dir = cfg.tickets_dir()
    if not tickets_dir.is_dir():
        print(f"Tickets directory not found: {tickets_dir}", file=sys.stderr)
        return 1
    paths = collect_ticket_paths(tickets_dir, args.file)
    if args.file and not paths[0].exists():
        print(f"File not found: {args.file}", file=sys.stderr)
        return 1
    if not paths:
        print("No ticket files found to lint.")
        return 0
    rules = load_rules(cfg)
    results = repair.lint_paths(paths, rules, fix=args.fix)
    display_results(results, verbose=args.verbose)
    return 1 if any(r.errors for r in results) else 0


def display_results(results: List[ValidationResult], verbose: bool = False) -> None:
    total_errors = 0
    total_warnings = 0
    with_issues = 0
    for result in results:
        if result.fixed:
            print(f"FIXED {result.filename}")
        if result.errors or result.warnings:
            with_issues += 1
            print(f"{'ERROR' if result.errors else 'WARN'} {result.filename}")
            for error in result.errors:
                print(f"   Error: {error}")
            if verbose:
                for warning in result.warnings:
                    print(f"   Warning: {warning}")
            total_errors += len(result.errors)
            total_warnings += len(result.warnings)
        elif verbose:
            print(f"OK {result.filename}")
    print("\nSummary:")
    print(f"   Files checked: {len(results)}")
    print(f"   Files with issues: {with_issues}")
    print(f"   Total errors: {total_errors}")
    print(f"   Total warnings: {total_warnings}")


def cmd_close(args):
    cfg = config_mod.load_config()
    identity = resolve_or_report(cfg, args.ticket)
    if identity is None:
        return 1
    update_ticket(identity.path, load_document(identity.path), {"status": "done"})
    print(f"Ticket {identity.id} marked as done.")
    return 0


def cmd_update(args):
    cfg = config_mod.load_config()
    identity = resolve_or_report(cfg, args.ticket)
    if identity is None:
        return 1
    updates = {k: getattr(args, k) for k in ["title", "slug", "status", "priority"] if getattr(args, k)}
    sections = {args.section: args.body or ""} if args.section else {}
    result = update_ticket(identity.path, load_document(identity.path), updates, sections)
    if args.section and args.section not in result.updated_sections:
        print(f"Section '{args.section}' not found in {identity.filename}")
    print(result.message or f"Updated {Path(result.new_path).name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

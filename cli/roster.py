import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx

# Add the repo root to Python path for imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from models.entry import Entry, Experience, is_resolved  # noqa: E402
from utils.config_manager import ClientSettings, get_config  # noqa: E402
from utils.exceptions import RosterError  # noqa: E402
from utils.formatting import mask_email, mask_secret, truncate  # noqa: E402
from utils.reference_resolver import ReferenceResolver  # noqa: E402
from utils.remote_store import ExperienceStore, UserStore  # noqa: E402
from utils.roster_manager import RosterController, RosterRow  # noqa: E402

logger = logging.getLogger("roster")


def notify(message: str) -> None:
    print(f"✗ {message}", file=sys.stderr)


def prompt_confirm(message: str) -> bool:
    try:
        answer = input(f"{message} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def render_row(index: int, row: RosterRow, settings: ClientSettings) -> List[str]:
    entry, state = row.entry, row.state
    mail = entry.mail if state.password_visible else mask_email(entry.mail)
    secret = entry.password if state.password_visible else mask_secret(entry.password)
    bio = entry.comment if state.biography_expanded else truncate(
        entry.comment, settings.bio_preview_chars
    )
    lines = [f"[{index}] {entry.name} <{mail}>  password: {secret}"]
    if bio:
        lines.append(f"    {bio}")
    if state.expanded:
        lines.extend(_experience_lines(entry, state.experiences))
    return lines


def _experience_lines(entry: Entry, fetched: List[Experience]) -> List[str]:
    lines = []
    items = fetched or entry.experiences
    if not items:
        return ["    (no experiences)"]
    for ref in items:
        if is_resolved(ref):
            when = f" ({ref.date})" if ref.date else ""
            lines.append(f"    - {ref.description}{when} [{ref.id}]")
        else:
            lines.append(f"    - {ref} (unresolved)")
    return lines


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser("roster", description="Manage users and their experiences")
    ap.add_argument("--api", dest="api_base_url", help="API base URL (default from config)")
    ap.add_argument("--mode", choices=["eager", "lazy"], help="experience resolution mode")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="list users")
    ls.add_argument("--expand", type=int, action="append", default=[], help="row to expand")
    ls.add_argument("--full-bio", action="store_true")
    ls.add_argument("--show-passwords", action="store_true")

    for name in ("add", "edit"):
        p = sub.add_parser(name, help=f"{name} a user")
        if name == "edit":
            p.add_argument("index", type=int)
        p.add_argument("--name", required=name == "add")
        p.add_argument("--mail", required=name == "add")
        p.add_argument("--password", required=name == "add")
        p.add_argument("--confirm-password", required=name == "add")
        p.add_argument("--comment")
        p.add_argument("--experience", action="append", dest="experiences",
                       help="experience id (repeatable)")

    rm = sub.add_parser("delete", help="delete a user")
    rm.add_argument("index", type=int)
    rm.add_argument("-y", "--yes", action="store_true", help="do not ask for confirmation")

    ex = sub.add_parser("experiences", help="show the experiences of one user")
    ex.add_argument("index", type=int)

    ae = sub.add_parser("add-experience", help="add an experience")
    ae.add_argument("--description", required=True)
    ae.add_argument("--date")
    ae.add_argument("--owner", help="owner user id")
    ae.add_argument("--participant", action="append", default=[], dest="participants")

    de = sub.add_parser("delete-experience", help="delete an experience")
    de.add_argument("id")
    return ap


def _apply_edits(draft: Entry, args: argparse.Namespace) -> None:
    for attr in ("name", "mail", "password", "comment"):
        value = getattr(args, attr, None)
        if value is not None:
            setattr(draft, attr, value)
    if args.experiences is not None:
        draft.experiences = list(args.experiences)


async def run(args: argparse.Namespace, settings: ClientSettings,
              client: Optional[httpx.AsyncClient] = None) -> int:
    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=settings.request_timeout)
    users = UserStore(settings.api_base_url, settings.request_timeout, client=client)
    experiences = ExperienceStore(settings.api_base_url, settings.request_timeout, client=client)
    confirm = (lambda _msg: True) if getattr(args, "yes", False) else prompt_confirm
    controller = RosterController(
        users,
        ReferenceResolver(experiences),
        mode=settings.resolver_mode,
        confirm=confirm,
        notify=notify,
    )
    try:
        return await _dispatch(args, settings, controller, experiences)
    finally:
        if own_client:
            await client.aclose()


async def _dispatch(args, settings, controller: RosterController, experiences) -> int:
    if args.command == "add-experience":
        exp = Experience(description=args.description, date=args.date,
                         owner=args.owner, participants=args.participants)
        created = await experiences.create(exp)
        print(f"✓ Added experience {created.id}")
        return 0
    if args.command == "delete-experience":
        await experiences.delete(args.id)
        print(f"✓ Deleted experience {args.id}")
        return 0

    loaded = await controller.load()
    if not loaded:
        return 1
    report = controller.last_resolution
    if report is not None and report.failures:
        for failure in report.failures:
            logger.warning("Unresolved experience %s on user %s", failure.reference, failure.entry_id)

    if args.command == "list":
        for index in args.expand:
            await controller.toggle_experiences(index)
        for index, row in enumerate(controller.roster):
            if args.full_bio:
                controller.toggle_biography(index)
            if args.show_passwords:
                controller.toggle_password(index)
            print("\n".join(render_row(index, row, settings)))
        return 0

    if args.command == "add":
        _apply_edits(controller.form.draft, args)
        result = await controller.submit(confirm_secret=args.confirm_password)
    elif args.command == "edit":
        controller.begin_edit(args.index)
        _apply_edits(controller.form.draft, args)
        confirm_secret = args.confirm_password
        if confirm_secret is None and args.password is None:
            # Password untouched, so there is nothing to confirm
            confirm_secret = controller.form.draft.password
        result = await controller.submit(confirm_secret=confirm_secret or "")
    elif args.command == "delete":
        result = await controller.remove(args.index)
    elif args.command == "experiences":
        result = await controller.toggle_experiences(args.index)
        if result:
            row = controller.roster.row(args.index)
            print("\n".join(render_row(args.index, row, settings)))
        return 0 if result else 1
    else:  # pragma: no cover - argparse rejects unknown commands
        return 2

    if result:
        print(f"✓ {result.message}")
    return 0 if result else 1


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    settings = config.settings
    if args.api_base_url:
        settings.api_base_url = args.api_base_url
    if args.mode:
        settings.resolver_mode = args.mode
    try:
        settings.validate()
    except RosterError as e:
        notify(str(e))
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args, settings))
    except (IndexError, RosterError) as e:
        notify(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())

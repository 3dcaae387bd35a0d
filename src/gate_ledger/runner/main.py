"""
CLI main entry point.
"""

import argparse
import logging
import sys
from pathlib import Path

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..delivery import build_delivery
from ..schemas.access_record import Operator, OperatorRole, RecordType
from ..schemas.report import encode_photo
from ..services import ExportPipeline, Ledger, SessionController
from ..state_store import RecordStore

logger = logging.getLogger(__name__)

YES_ANSWERS = ("y", "yes", "s", "sim")

PHOTO_MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def prompt_confirm(message: str) -> bool:
    """Ask a yes/no question on stdin. EOF counts as no."""
    try:
        answer = input(f"{message} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in YES_ANSWERS


def always_confirm(message: str) -> bool:
    return True


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="gate-ledger",
        description="Log gate entries and exits and export them as a CSV report with photos",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("init-config", help="Write a default config file")

    # register command
    register_parser = subparsers.add_parser("register", help="Register an entry or exit")
    register_parser.add_argument(
        "--type",
        dest="record_type",
        choices=["entry", "exit"],
        required=True,
        help="Direction of the passage",
    )
    register_parser.add_argument("--fleet", default="", help="Fleet number")
    register_parser.add_argument("--name", default="", help="Collaborator name")
    register_parser.add_argument("--code", default="", help="Collaborator code")
    register_parser.add_argument("--destination", default="", help="Destination")
    register_parser.add_argument("--observation", default="", help="Free-text observation")
    register_parser.add_argument(
        "--material-exit",
        action="store_true",
        help="Material is leaving the facility",
    )
    register_parser.add_argument(
        "--photo",
        type=Path,
        help="Image file to attach to the record",
    )

    subparsers.add_parser("list", help="List unexported records")
    subparsers.add_parser("status", help="Show ledger counters")

    # export command
    export_parser = subparsers.add_parser(
        "export", help="Export the CSV report and photos, then clear local storage"
    )
    export_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )

    # clear command
    clear_parser = subparsers.add_parser(
        "clear", help="Discard all unexported records without exporting"
    )
    clear_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )

    return parser


def build_session(config: Config, confirm=prompt_confirm) -> SessionController:
    """Wire store, ledger, delivery and pipeline for one session."""
    store = RecordStore(config.storage.db_path, ledger_key=config.storage.ledger_key)
    ledger = Ledger.open(store)
    pipeline = ExportPipeline(ledger, build_delivery(config.delivery), config.export)
    session = SessionController(ledger, pipeline, confirm)

    if config.operator.id:
        session.login(
            Operator(
                id=config.operator.id,
                name=config.operator.name or config.operator.id,
                role=OperatorRole(config.operator.role),
            )
        )
    return session


def read_photo(path: Path) -> str:
    """Load an image file as the data URL stored on a record."""
    media_type = PHOTO_MEDIA_TYPES.get(path.suffix.lower(), "image/png")
    return encode_photo(path.read_bytes(), media_type)


def cmd_register(session: SessionController, args: argparse.Namespace) -> int:
    """Register an entry or exit."""
    if not session.is_logged_in:
        print("❌ No operator configured (set operator.id in the config)")
        return 1

    photo = None
    if args.photo:
        try:
            photo = read_photo(args.photo)
        except OSError as e:
            print(f"❌ Cannot read photo {args.photo}: {e}")
            return 1

    record = session.register(
        record_type=RecordType.ENTRY if args.record_type == "entry" else RecordType.EXIT,
        fleet_number=args.fleet,
        collaborator_name=args.name,
        collaborator_code=args.code,
        destination=args.destination,
        observation=args.observation,
        material_exit=args.material_exit,
        photo=photo,
    )

    print(f"✓ Registered {record.type.value} [{record.id}]")
    notice = session.pending_notice()
    if notice:
        print(f"⚠️  {notice}")
    return 0


def cmd_list(session: SessionController) -> int:
    """List unexported records."""
    records = session.ledger.snapshot()
    if not records:
        print("No unexported records")
        return 0

    for record in records:
        local = record.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        flags = []
        if record.material_exit:
            flags.append("material")
        if record.has_photo:
            flags.append("photo")
        suffix = f" ({', '.join(flags)})" if flags else ""
        print(
            f"  {local}  {record.type.value:<8} "
            f"{record.fleet_number or '-':<8} {record.collaborator_name or '-'}{suffix}"
        )

    print(f"\n{len(records)} record(s)")
    return 0


def cmd_status(session: SessionController) -> int:
    """Show ledger counters."""
    summary = session.ledger.summary()

    print("\n📊 Ledger Status")
    print("=" * 40)
    print(f"  Unexported records:     {summary.total}")
    print(f"  Entries:                {summary.entries}")
    print(f"  Exits:                  {summary.exits}")
    print(f"  Material exits:         {summary.material_exits}")
    print(f"  Records with photo:     {summary.with_photo}")
    print()

    return 0


def cmd_export(session: SessionController) -> int:
    """Export the ledger."""
    result = session.export()
    if result is None:
        print("Export cancelled")
        return 0

    if result.success:
        print(f"✓ {result.message}")
        if not result.persisted:
            print("⚠️  Local storage could not be updated; records may reappear on restart")
        return 0

    if result.error is None:
        print(result.message)
        return 0

    print(f"❌ {result.message}")
    return 1


def cmd_clear(session: SessionController) -> int:
    """Discard unexported records."""
    if session.clear():
        print("✓ Ledger cleared")
    else:
        print("Nothing cleared")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        if parsed.config.exists():
            print(f"❌ {parsed.config} already exists")
            return 1
        create_default_config(parsed.config)
        print(f"✓ Wrote {parsed.config}")
        return 0

    # Load config
    try:
        config = load_config(parsed.config)
        errors = config.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    confirm = always_confirm if getattr(parsed, "yes", False) else prompt_confirm
    session = build_session(config, confirm)

    # Route to command
    if parsed.command == "register":
        return cmd_register(session, parsed)
    elif parsed.command == "list":
        return cmd_list(session)
    elif parsed.command == "status":
        return cmd_status(session)
    elif parsed.command == "export":
        return cmd_export(session)
    elif parsed.command == "clear":
        return cmd_clear(session)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

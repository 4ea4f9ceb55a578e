"""Command-line entry point for fabsync.

All subcommands operate on the *loaded* profile given by
``--data-path`` / ``FABSYNC_DATA_PATH`` / ``paths.data_path``.  Results go
to stdout (``--json`` for machine-readable output); diagnostics go to
stderr through logging.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from . import __version__
from .catalog.files import FileCatalogStore
from .config import Config, load_config
from .config_loader import (
    discover_config_files,
    ensure_config,
    load_hierarchical_config,
)
from .config_schema import UnifiedConfig, build_config
from .content.items import FileContentLibrary, ReferenceKind
from .errors import FabSyncError
from .logger import setup_logging
from .profiles.cleanup import CleanupJournal, run_pending_cleanups
from .profiles.locator import ProfileLocator, StaticContext
from .profiles.manifest import ManifestBuilder, load_manifest
from .reporter import (
    document_to_json,
    format_duplicates,
    format_item_results,
    format_manifest,
    format_pending_cleanup,
    format_profiles,
    profiles_to_json,
    results_to_json,
)
from .transfer.exporter import PackageExporter, configuration_name
from .transfer.importer import PackageImporter, load_package

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def parse_override(text: str) -> tuple[int, str, str]:
    """Parse ``INDEX:KEY=NAME`` into ``(index, key, name)``.

    ``NAME`` may be empty, which leaves that reference unresolved.
    """
    try:
        head, name = text.split("=", 1)
        index_text, key = head.split(":", 1)
        index = int(index_text)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid override '{text}': expected INDEX:KEY=NAME"
        ) from None

    kinds = {k.value.lower(): k for k in ReferenceKind if k.reassignable}
    kind = kinds.get(key.strip().lower())
    if kind is None:
        raise argparse.ArgumentTypeError(
            f"Invalid override key '{key}': expected one of "
            + ", ".join(k.value for k in kinds.values())
        )
    return index, kind.value, name.strip()


def parse_indices(text: str) -> list[int]:
    """Parse ``0,2,5`` into ``[0, 2, 5]``."""
    try:
        return [int(part) for part in text.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid item list '{text}': expected comma-separated indices"
        ) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fabsync",
        description="Synchronize catalog data and content items between "
        "fabrication database profiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Write a starter .fabsync/config.yml
  fabsync init

  # List profiles next to the loaded one
  fabsync --data-path /shared/Fab/DATABASE profiles

  # Snapshot the loaded profile's catalog
  fabsync manifest generate

  # Run the cleanup journals left by a selective copy
  fabsync cleanup run

  # Export two items, then import them elsewhere with a substitution
  fabsync export Items/Duct/a.itm Items/Duct/b.itm --output /tmp/pkg
  fabsync --data-path /other/DATABASE import /tmp/pkg --target Items/Duct \\
      --override 1:Specification=Standard
        """,
    )
    parser.add_argument("--data-path", help="Data folder of the loaded profile")
    parser.add_argument("--profile", help="Name of the loaded profile")
    parser.add_argument(
        "--backup-dir", help="Backup directory (legacy cleanup journal)"
    )
    parser.add_argument("--items-root", help="Root of the item library")
    parser.add_argument(
        "--json", action="store_true", help="Print machine-readable output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also log to this file")
    parser.add_argument(
        "--version", action="version", version=f"fabsync {__version__}"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser(
        "init", help="Create a starter config.yml if none exists"
    )
    sub.add_parser("profiles", help="List discovered profiles")

    manifest = sub.add_parser("manifest", help="Generate or show manifests")
    manifest_sub = manifest.add_subparsers(dest="action", required=True)
    manifest_sub.add_parser(
        "generate", help="Snapshot the loaded profile's catalog"
    )
    show = manifest_sub.add_parser("show", help="Show a profile's manifest")
    show.add_argument(
        "name", nargs="?", help="Profile name (default: loaded profile)"
    )
    show.add_argument(
        "-v", "--verbose", action="store_true", help="List entry names"
    )

    cleanup = sub.add_parser("cleanup", help="Inspect or run cleanup journals")
    cleanup_sub = cleanup.add_subparsers(dest="action", required=True)
    cleanup_sub.add_parser("show", help="Show pending cleanup journals")
    cleanup_sub.add_parser("run", help="Execute pending cleanup journals")

    export = sub.add_parser("export", help="Export items into a package")
    export.add_argument("items", nargs="+", type=Path, help="Item files")
    export.add_argument(
        "-o", "--output", required=True, type=Path, help="Package folder"
    )

    validate = sub.add_parser(
        "validate", help="Check a package against the loaded profile"
    )
    validate.add_argument("package", type=Path, help="Package folder")

    duplicates = sub.add_parser(
        "duplicates", help="Find database id collisions with a target folder"
    )
    duplicates.add_argument("package", type=Path, help="Package folder")
    duplicates.add_argument(
        "-t", "--target", required=True, type=Path, help="Target item folder"
    )

    imp = sub.add_parser("import", help="Import a package")
    imp.add_argument("package", type=Path, help="Package folder")
    imp.add_argument(
        "-t", "--target", required=True, type=Path, help="Target item folder"
    )
    imp.add_argument(
        "--items",
        type=parse_indices,
        help="Comma-separated package item indices (default: all)",
    )
    imp.add_argument(
        "--override",
        action="append",
        type=parse_override,
        default=[],
        metavar="INDEX:KEY=NAME",
        help="Replacement reference name for one item; repeatable",
    )
    imp.add_argument(
        "--allow-duplicates",
        action="store_true",
        help="Import even if database ids already exist in the target",
    )
    return parser


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def load_runtime_config(args: argparse.Namespace) -> tuple[Config, UnifiedConfig]:
    """Resolve configuration: CLI > env (.env) > YAML > defaults.

    Raises:
        ValueError: If the configuration is incomplete or invalid.
    """
    # .env first so ${VAR} interpolation in YAML can see its values
    load_dotenv()

    unified = UnifiedConfig()
    yaml_fallbacks: dict[str, Any] | None = None
    if discover_config_files():
        unified = build_config(load_hierarchical_config())
        yaml_fallbacks = {
            k: v for k, v in unified.paths.model_dump().items() if v is not None
        }

    config = load_config(
        data_path=args.data_path,
        profile=args.profile,
        backup_dir=args.backup_dir,
        items_root=args.items_root,
        debug=args.debug,
        yaml_fallbacks=yaml_fallbacks,
    )
    return config, unified


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _emit(args: argparse.Namespace, data: Any, text: str) -> None:
    if args.json:
        print(json.dumps(data, indent=2, default=str))
    else:
        print(text)


def _locator(config: Config) -> ProfileLocator:
    # Without --profile the data path decides which profile is current.
    profile = config.active_profile or configuration_name(config.data_path)
    return ProfileLocator(StaticContext(profile, config.data_path))


def cmd_profiles(args: argparse.Namespace, config: Config) -> int:
    profiles = _locator(config).discover_profiles()
    _emit(args, profiles_to_json(profiles), format_profiles(profiles))
    return 0


def cmd_manifest(args: argparse.Namespace, config: Config) -> int:
    if args.action == "generate":
        locator = _locator(config)
        builder = ManifestBuilder(FileCatalogStore(config.data_path))
        manifest = builder.generate(
            config.data_path, locator.current_profile_name()
        )
        _emit(args, document_to_json(manifest), format_manifest(manifest))
        return 0

    data_path = config.data_path
    if args.name:
        data_path = _locator(config).find_profile(args.name).data_path
    manifest = load_manifest(data_path)
    if manifest is None:
        print(
            f"No manifest in {data_path}; run 'fabsync manifest generate' "
            "with that profile loaded.",
            file=sys.stderr,
        )
        return 1
    _emit(
        args,
        document_to_json(manifest),
        format_manifest(manifest, verbose=args.verbose),
    )
    return 0


def cmd_cleanup(args: argparse.Namespace, config: Config) -> int:
    journal = CleanupJournal(FileCatalogStore(config.data_path), config.backup_dir)

    if args.action == "run":
        summaries = run_pending_cleanups(journal, config.data_path)
        text = "\n\n".join(summaries) if summaries else "No pending cleanup."
        _emit(args, summaries, text)
        return 0

    pending = []
    for location in (None, config.data_path):
        cleanup = journal.load(location)
        if cleanup is not None:
            pending.append(cleanup)
    text = (
        "\n\n".join(format_pending_cleanup(c) for c in pending)
        if pending
        else "No pending cleanup."
    )
    _emit(args, [document_to_json(c) for c in pending], text)
    return 0


def cmd_export(args: argparse.Namespace, config: Config) -> int:
    catalog = FileCatalogStore(config.data_path)
    exporter = PackageExporter(
        catalog,
        FileContentLibrary(catalog),
        data_path=config.data_path,
        items_root=config.items_root,
    )
    package = exporter.export_items(args.items, args.output)
    omitted = len(args.items) - len(package.items)
    text = f"Exported {len(package.items)} item(s) to {args.output}"
    if omitted:
        text += f" ({omitted} omitted, see log)"
    _emit(args, document_to_json(package), text)
    return 0


def _require_package(folder: Path):
    package = load_package(folder)
    if package is None:
        raise FabSyncError(f"No content package found in {folder}")
    return package


def _importer(config: Config) -> PackageImporter:
    catalog = FileCatalogStore(config.data_path)
    return PackageImporter(catalog, FileContentLibrary(catalog))


def cmd_validate(args: argparse.Namespace, config: Config) -> int:
    package = _require_package(args.package)
    results = _importer(config).validate_package(package)
    _emit(
        args,
        results_to_json(results),
        format_item_results(results, title="Validation"),
    )
    return 0


def cmd_duplicates(args: argparse.Namespace, config: Config) -> int:
    package = _require_package(args.package)
    duplicates = _importer(config).check_duplicate_ids(package, args.target)
    _emit(
        args,
        [document_to_json(d) for d in duplicates],
        format_duplicates(duplicates),
    )
    return 0


def cmd_import(args: argparse.Namespace, config: Config) -> int:
    package = _require_package(args.package)
    importer = _importer(config)

    if not args.allow_duplicates:
        duplicates = importer.check_duplicate_ids(package, args.target)
        if duplicates:
            print(format_duplicates(duplicates), file=sys.stderr)
            print(
                "Refusing to import; pass --allow-duplicates to proceed.",
                file=sys.stderr,
            )
            return 1

    overrides: dict[int, dict[str, str | None]] = {}
    for index, key, name in args.override:
        overrides.setdefault(index, {})[key] = name

    results = importer.import_items(
        package,
        args.package,
        args.target,
        selected_indices=args.items,
        overrides_per_item=overrides,
    )
    _emit(args, results_to_json(results), format_item_results(results))
    return 0 if all(r.success for r in results) else 1


COMMANDS = {
    "profiles": cmd_profiles,
    "manifest": cmd_manifest,
    "cleanup": cmd_cleanup,
    "export": cmd_export,
    "validate": cmd_validate,
    "duplicates": cmd_duplicates,
    "import": cmd_import,
}


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command, and return the exit code."""
    args = build_parser().parse_args(argv)

    if args.command == "init":
        # Runs before config resolution; there may be no data path yet
        print(ensure_config())
        return 0

    try:
        config, unified = load_runtime_config(args)
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        mode="cli",
        debug=config.debug,
        log_file=args.log_file or unified.logging.file,
        level=unified.logging.level,
    )
    logger.debug("Loaded profile data path: %s", config.data_path)

    try:
        return COMMANDS[args.command](args, config)
    except (FabSyncError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()

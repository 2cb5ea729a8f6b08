#!/usr/bin/env python3
"""
Maintenance script to bring the vector collections in line with the
configured embedding providers.

Collections whose stored vector size differs from the provider's are
dropped and recreated. Recreating discards every stored vector, so the
affected videos must be re-indexed afterwards.

Usage:
    python scripts/migrate_collections.py [--dry-run] [--recreate] [-y]

Options:
    --dry-run   Show what would change without touching the store
    --recreate  Drop and recreate every collection, even matching ones
    -y, --yes   Skip confirmation prompt
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass

from video_rag.api.dependencies import build_collection_manager
from video_rag.application.services.collections import EnsureReport
from video_rag.commons.settings import get_settings
from video_rag.commons.telemetry import configure_logging
from video_rag.infrastructure.factory import InfrastructureFactory


@dataclass
class MigrateArgs:
    """Parsed command line arguments."""

    dry_run: bool
    recreate: bool
    skip_confirm: bool


def parse_args() -> MigrateArgs:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate the text and visual vector collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without actually changing it",
    )
    parser.add_argument(
        "--recreate",
        action="store_true",
        help="Drop and recreate every collection",
    )
    parser.add_argument(
        "-y", "--yes", action="store_true", help="Skip confirmation prompt"
    )

    args = parser.parse_args()
    return MigrateArgs(
        dry_run=args.dry_run,
        recreate=args.recreate,
        skip_confirm=args.yes,
    )


def print_report(report: EnsureReport) -> None:
    """Print one line per collection."""
    for collection in report.collections:
        line = f"  {collection.name}: {collection.action} ({collection.vector_size}-d"
        if collection.previous_vector_size is not None:
            line += f", stored {collection.previous_vector_size}-d"
        line += ")"
        if collection.indexes_created:
            line += f" indexes: {', '.join(collection.indexes_created)}"
        if not report.dry_run and not collection.ready:
            line += " [NOT READY]"
        print(line)


async def run_migration(args: MigrateArgs) -> EnsureReport:
    """Run the migration with the configured providers."""
    settings = get_settings()
    factory = InfrastructureFactory(settings)
    try:
        manager = build_collection_manager(factory)
        return await manager.migrate(recreate=args.recreate, dry_run=args.dry_run)
    finally:
        await factory.close_all()


def main() -> None:
    """Main entry point."""
    args = parse_args()
    settings = get_settings()
    configure_logging(
        level=settings.telemetry.log_level,
        format_type="text",
        logger_name="video_rag",
        secrets=settings.secret_values(),
    )

    print("=" * 50)
    print("  VECTOR COLLECTION MIGRATION")
    print("=" * 50)
    print(f"Mode: {'DRY-RUN' if args.dry_run else 'APPLY'}")
    if args.recreate:
        print("All collections will be recreated; stored vectors are lost.")

    if args.recreate and not args.dry_run and not args.skip_confirm:
        response = input("\nAre you sure you want to continue? [y/N]: ")
        if response.lower() not in ("y", "yes"):
            print("Aborted.")
            sys.exit(0)

    try:
        report = asyncio.run(run_migration(args))
    except Exception as e:
        print(f"Migration failed: {e}")
        sys.exit(1)

    print()
    print_report(report)
    print("\n" + "=" * 50)
    if report.recreated:
        print(f"Recreated: {', '.join(report.recreated)}. Re-index affected videos.")
    if not report.dry_run and not report.ready:
        print("Some collections are not ready yet.")
        sys.exit(1)
    print("Migration completed successfully!")
    print("=" * 50)


if __name__ == "__main__":
    main()

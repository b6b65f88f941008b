"""Command-line interface for the MAC registry updater"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import structlog

from mac_registry.config import Settings, settings
from mac_registry.ingestion.bootstrap import (
    backfill_history,
    default_registry_filenames,
    journal_to_history,
    load_ieee_assignments,
)
from mac_registry.ingestion.errors import RegistryError
from mac_registry.ingestion.state_store import StateStore, atomic_write_many, dump_history, parse_history
from mac_registry.ingestion.updater import RegistryUpdater

logger = structlog.get_logger(__name__)


def configure_logging(config: Settings, verbose: bool = False) -> None:
    """Route structlog through stdlib logging with the configured renderer"""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if config.log_format == "json" else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """MAC address registry history management"""
    configure_logging(settings, verbose)


@cli.command()
@click.option('--base-dir', type=click.Path(file_okay=False, path_type=Path), help='Directory containing data/')
@click.option('--offline', is_flag=True, help='Merge the registry files already in data/ieee instead of downloading')
@click.option('--date', 'today', help='Observation date to record (YYYY-MM-DD, default today)')
def update(base_dir: Optional[Path], offline: bool, today: Optional[str]):
    """Merge the current IEEE registries into the history"""

    updater = RegistryUpdater(
        base_dir or Path(settings.base_dir),
        config=settings,
        today=today,
        offline=offline,
    )

    try:
        result = asyncio.run(updater.run())
    except (RegistryError, OSError) as e:
        logger.error("Update failed", error=str(e))
        sys.exit(1)

    click.echo(f"Updated {result['new_count']} prefixes ({result['old_count']} -> {result['new_count']})")
    for source_tag, stats in result['sources'].items():
        click.echo(
            f"   {source_tag}: {stats['added']} added, {stats['changed']} changed, "
            f"{stats['unchanged']} unchanged"
        )


@cli.command('journal-to-json')
@click.argument('snapshot_dir', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument('output', type=click.Path(dir_okay=False, path_type=Path))
def journal_to_json(snapshot_dir: Path, output: Path):
    """Consolidate a journal snapshot directory into a history JSON file"""

    try:
        history = journal_to_history(snapshot_dir)
        atomic_write_many([(output, dump_history(history))])
    except (RegistryError, OSError) as e:
        logger.error("Journal conversion failed", error=str(e))
        sys.exit(1)

    click.echo(f"Wrote {len(history)} prefixes to {output}")


@cli.command()
@click.argument('journal', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('base_dir', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument('output', type=click.Path(dir_okay=False, path_type=Path))
def backfill(journal: Path, base_dir: Path, output: Path):
    """Backfill a journal history with mac-ages.csv and the stored IEEE files"""

    store = StateStore(base_dir)

    try:
        history = parse_history(journal.read_bytes())
        ages = store.load_ages()
        assignments = load_ieee_assignments(store.snapshot_dir, default_registry_filenames())
        result = backfill_history(history, ages, assignments)
        atomic_write_many([(output, dump_history(result))])
    except (RegistryError, OSError) as e:
        logger.error("Backfill failed", error=str(e))
        sys.exit(1)

    click.echo(f"Wrote {len(result)} prefixes to {output}")


def main():
    cli()


if __name__ == '__main__':
    main()

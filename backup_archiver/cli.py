"""Command-line interface for backup archiver."""

import logging
import logging.handlers
import os
import sys
import click
from typing import Optional

from .config.config_manager import ConfigManager
from .core.archiver import get_archiver
from .core.errors import BackupError
from .core.models import CheckResult
from .core.monitor import Monitor
from .core.scheduler import Scheduler
from .storage.record_store import PathRecordStore
from .utils.formatters import format_date, format_file_size, format_hash


def setup_logging(level: str, log_file: Optional[str] = None,
                  max_size_mb: int = 10, backup_count: int = 5):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_size_mb * 1024 * 1024,
                backupCount=backup_count
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


def _load_config(ctx) -> ConfigManager:
    config_manager = ConfigManager(ctx.obj.get('config_path'))
    config_manager.load_config()

    logging_config = config_manager.get_logging_config()
    setup_logging(
        ctx.obj.get('log_level') or logging_config.get('level', 'INFO'),
        ctx.obj.get('log_file') or logging_config.get('file'),
        max_size_mb=logging_config.get('max_size_mb', 10),
        backup_count=logging_config.get('backup_count', 5)
    )
    return config_manager


def build_scheduler(config_manager: ConfigManager) -> Scheduler:
    """Wire the record store, monitor and scheduler from configuration.

    Raises:
        BackupError: If the store is unreadable or the monitor configuration
            is invalid (no paths, unusable destination).
    """
    archive_config = config_manager.get_archive_config()
    monitoring_config = config_manager.get_monitoring_config()

    store = PathRecordStore(config_manager.get_database_config()['path'])
    archiver = get_archiver(
        archive_config['format'],
        compression_level=archive_config['compression_level']
    )
    monitor = Monitor(
        destination=archive_config['destination'],
        paths=store.load(),
        archiver=archiver,
        max_workers=monitoring_config['max_workers'],
        commit=store.update_hash
    )
    return Scheduler(monitor, store, float(monitoring_config['interval_seconds']))


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level')
@click.option('--log-file',
              help='Log file path')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str], log_file: Optional[str]):
    """Backup Archiver - archive directories whenever their content changes."""

    # Ensure context exists
    ctx.ensure_object(dict)

    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


@cli.command()
@click.option('--interval', type=float, help='Check interval in seconds')
@click.option('--archive', 'destination', help='Archive save path')
@click.option('--db', 'db_path', help='Path record database path')
@click.pass_context
def run(ctx, interval: Optional[float], destination: Optional[str], db_path: Optional[str]):
    """Check monitored paths on an interval until interrupted."""
    try:
        config_manager = _load_config(ctx)
        config_manager.apply_overrides('monitoring', interval_seconds=interval)
        config_manager.apply_overrides('archive', destination=destination)
        config_manager.apply_overrides('database', path=db_path)

        scheduler = build_scheduler(config_manager)
    except (BackupError, ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    scheduler.install_signal_handlers()
    click.echo(
        f"Monitoring {len(scheduler.monitor.paths)} paths every {scheduler.interval:g}s "
        f"(archives in {scheduler.monitor.destination})"
    )
    scheduler.run()


@cli.command()
@click.option('--archive', 'destination', help='Archive save path')
@click.option('--db', 'db_path', help='Path record database path')
@click.pass_context
def check(ctx, destination: Optional[str], db_path: Optional[str]):
    """Run a single check cycle and exit."""
    try:
        config_manager = _load_config(ctx)
        config_manager.apply_overrides('archive', destination=destination)
        config_manager.apply_overrides('database', path=db_path)

        scheduler = build_scheduler(config_manager)
    except (BackupError, ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    result = scheduler.run_once()
    _echo_result(result)

    if result.has_errors:
        sys.exit(1)


def _echo_result(result: CheckResult):
    if result.changed_count:
        click.echo(f"Archived {result.changed_count} directories:")
    else:
        click.echo("No changes detected.")

    for record in result.archives:
        click.echo(
            f"  {record.source_path} -> {record.destination_file} "
            f"({format_file_size(record.size)}, {format_date(record.created_at)})"
        )

    for error in result.errors:
        click.echo(f"  ! {error}", err=True)


@cli.group()
def paths():
    """Manage the monitored paths."""


def _open_store(ctx, db_path: Optional[str]) -> PathRecordStore:
    config_manager = _load_config(ctx)
    config_manager.apply_overrides('database', path=db_path)
    return PathRecordStore(config_manager.get_database_config()['path'])


@paths.command('add')
@click.argument('targets', nargs=-1, required=True)
@click.option('--db', 'db_path', help='Path record database path')
@click.pass_context
def add_paths(ctx, targets, db_path: Optional[str]):
    """Start monitoring one or more directories."""
    try:
        store = _open_store(ctx, db_path)
        for target in targets:
            path = os.path.abspath(target)
            if not os.path.isdir(path):
                click.echo(f"Warning: {path} is not an existing directory", err=True)
            if store.add(path):
                click.echo(f"+ {path}")
            else:
                click.echo(f"= {path} (already monitored)")
    except (BackupError, ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@paths.command('remove')
@click.argument('targets', nargs=-1, required=True)
@click.option('--db', 'db_path', help='Path record database path')
@click.pass_context
def remove_paths(ctx, targets, db_path: Optional[str]):
    """Stop monitoring one or more directories."""
    try:
        store = _open_store(ctx, db_path)
        for target in targets:
            path = os.path.abspath(target)
            if store.remove(path):
                click.echo(f"- {path}")
            else:
                click.echo(f"Warning: {path} is not monitored", err=True)
    except (BackupError, ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@paths.command('list')
@click.option('--db', 'db_path', help='Path record database path')
@click.pass_context
def list_paths(ctx, db_path: Optional[str]):
    """List monitored directories and their last archived hash."""
    try:
        store = _open_store(ctx, db_path)
        records = store.records()
    except (BackupError, ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not records:
        click.echo("No monitored paths. Add one with 'paths add'.")
        return

    for record in records:
        click.echo(f"= {record.path} [{format_hash(record.last_hash)}]")


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    try:
        config_manager = _load_config(ctx)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)

    source = config_manager.config_file or "built-in defaults"
    click.echo(f"✅ Configuration loaded successfully ({source})")

    archive_config = config_manager.get_archive_config()
    monitoring_config = config_manager.get_monitoring_config()
    click.echo(f"\n📊 Configuration Summary:")
    click.echo(f"   Archive destination: {archive_config['destination']}")
    click.echo(f"   Archive format: {archive_config['format']} (level {archive_config['compression_level']})")
    click.echo(f"   Database: {config_manager.get_database_config()['path']}")
    click.echo(f"   Interval: {monitoring_config['interval_seconds']}s")
    click.echo(f"   Workers: {monitoring_config['max_workers']}")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()

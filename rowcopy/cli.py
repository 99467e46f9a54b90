"""Command-line interface for chunked table copies."""
import click
import sys
import traceback
import yaml
from dataclasses import asdict
from pathlib import Path
from tqdm import tqdm
from .config import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_STATE_FILE,
    Config,
    apply_env_overrides,
    load_config,
    validate_config,
)
from .logger import setup_logger, setup_logger_from_config
from .connectors.postgres import PostgresConnector
from .copier import CopyJob, TableCopier, DEFAULT_BATCH_SIZE, DEFAULT_CHUNK_SIZE
from .notifier import create_notifier
from .progress import ProgressTracker
from .translations import TranslationRegistry
from . import __version__


def _load_settings(config, logger):
    """Load and validate the config file, falling back to rowcopy.yaml or the environment."""
    if config:
        logger.info(f"Loading configuration from {config}")
        config_data = load_config(config)
    elif Path(DEFAULT_CONFIG_FILE).exists():
        logger.info(f"Loading configuration from {DEFAULT_CONFIG_FILE}")
        config_data = load_config(DEFAULT_CONFIG_FILE)
    else:
        logger.info("No configuration file, reading settings from the environment")
        config_data = apply_env_overrides({})

    errors = validate_config(config_data)
    if errors:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    return Config.from_dict(config_data)


def copy_options(func):
    """Options shared by the copy and resume commands."""
    options = [
        click.argument("source_table"),
        click.argument("destination_table"),
        click.option(
            "--config",
            "-c",
            type=click.Path(exists=True),
            help=f"Path to configuration YAML file (default: {DEFAULT_CONFIG_FILE} if present)",
        ),
        click.option(
            "--data-translation",
            "data_translation",
            default=None,
            help="Key of the translation mapping to apply while copying",
        ),
        click.option(
            "--id-column",
            default=None,
            help="Column used to split the copy into id windows (default: id)",
        ),
        click.option(
            "--batch-size",
            default=None,
            type=click.IntRange(min=1),
            help=f"Rows per bulk insert when translating (default: {DEFAULT_BATCH_SIZE})",
        ),
        click.option(
            "--state-file",
            default=None,
            help=f"Path to state file (default: {DEFAULT_STATE_FILE})",
        ),
        click.option(
            "--no-progress",
            is_flag=True,
            help="Disable the progress bar",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run_copy(settings, logger, source_table, destination_table, chunk_size, starting_id,
              data_translation, id_column, batch_size, state_file, no_progress):
    job = CopyJob(
        source_table=source_table,
        destination_table=destination_table,
        id_column=id_column or settings.copy.id_column,
        chunk_size=chunk_size or settings.copy.chunk_size,
        starting_id=starting_id,
        translation_key=data_translation,
    )

    tracker = ProgressTracker(state_file or settings.copy.state_file)

    logger.info("Connecting to database...")
    connector = PostgresConnector(config=asdict(settings.database))
    connector.connect()

    progress_bar = tqdm(desc=f"{source_table} -> {destination_table}", unit="ids",
                        disable=no_progress)

    def on_window_complete(job, window, rows):
        tracker.record_window(job.source_table, job.destination_table, window.end, rows)
        progress_bar.update(window.size)

    try:
        copier = TableCopier(
            connector=connector,
            notifier=create_notifier(asdict(settings.notifications), logger=logger),
            logger=logger,
            translations=TranslationRegistry(settings.translations),
            batch_size=batch_size or settings.copy.batch_size,
            on_window_complete=on_window_complete,
            subject=settings.notifications.subject,
        )

        tracker.start_copy(job.source_table, job.destination_table, job.starting_id,
                           job.chunk_size, job.id_column, job.translation_key)
        outcome = copier.run(job)
    finally:
        progress_bar.close()
        connector.disconnect()

    logger.info("=" * 60)
    logger.info("COPY COMPLETED" if outcome.success else "COPY FAILED")
    logger.info("=" * 60)
    logger.info(f"Windows copied: {len(outcome.windows)}")
    logger.info(f"Rows copied: {outcome.rows_copied:,}")

    if outcome.success:
        tracker.mark_completed(job.source_table, job.destination_table)
    else:
        tracker.mark_failed(job.source_table, job.destination_table, outcome.message)
        resume_from = tracker.next_starting_id(job.source_table, job.destination_table)
        logger.error(f"Resume with --starting-id {resume_from} or the 'resume' command")
        sys.exit(outcome.exit_code)


@click.group()
@click.version_option(version=__version__)
def cli():
    """Chunked table row copy tool."""
    pass


@cli.command(name="copy")
@copy_options
@click.option(
    "--chunk-size",
    default=None,
    type=click.IntRange(min=1),
    help=f"Number of ids copied per window (default: {DEFAULT_CHUNK_SIZE})",
)
@click.option(
    "--starting-id",
    default=1,
    type=click.IntRange(min=1),
    help="Id of the first row to copy, to resume an interrupted copy (default: 1)",
)
def copy_command(source_table, destination_table, config, data_translation, id_column, batch_size,
                 state_file, no_progress, chunk_size, starting_id):
    """Copy rows from SOURCE_TABLE to DESTINATION_TABLE."""
    logger = setup_logger("rowcopy", level="INFO")

    try:
        settings = _load_settings(config, logger)
        logger = setup_logger_from_config("rowcopy", asdict(settings.logging))
        _run_copy(settings, logger, source_table, destination_table, chunk_size, starting_id,
                  data_translation, id_column, batch_size, state_file, no_progress)
    except Exception as e:
        logger.error(f"Copy failed: {e}")
        logger.error(traceback.format_exc())
        sys.exit(1)


@cli.command()
@copy_options
@click.option(
    "--chunk-size",
    default=None,
    type=click.IntRange(min=1),
    help="Number of ids copied per window (default: value of the interrupted copy)",
)
def resume(source_table, destination_table, config, data_translation, id_column, batch_size,
           state_file, no_progress, chunk_size):
    """Resume copying SOURCE_TABLE to DESTINATION_TABLE from the last saved window."""
    logger = setup_logger("rowcopy", level="INFO")

    try:
        settings = _load_settings(config, logger)
        logger = setup_logger_from_config("rowcopy", asdict(settings.logging))

        state_path = state_file or settings.copy.state_file
        if not Path(state_path).exists():
            logger.error(f"State file not found: {state_path}")
            logger.error("No copy to resume. Use the 'copy' command to start a new copy.")
            sys.exit(1)

        progress = ProgressTracker(state_path).get_copy_progress(source_table, destination_table)
        if not progress or not progress.get('next_starting_id'):
            logger.error(f"No saved progress for {source_table} -> {destination_table}")
            sys.exit(1)

        logger.info("=" * 60)
        logger.info("COPY PROGRESS")
        logger.info("=" * 60)
        logger.info(f"Status: {progress.get('status')}")
        logger.info(f"Windows completed: {progress.get('windows_completed', 0)}")
        logger.info(f"Rows copied: {progress.get('rows_copied', 0):,}")
        logger.info(f"Resuming from id: {progress['next_starting_id']:,}")
        logger.info("=" * 60)

        _run_copy(
            settings, logger, source_table, destination_table,
            chunk_size or progress.get('chunk_size'),
            progress['next_starting_id'],
            data_translation or progress.get('translation_key'),
            id_column or progress.get('id_column'),
            batch_size, state_path, no_progress,
        )
    except Exception as e:
        logger.error(f"Resume failed: {e}")
        logger.error(traceback.format_exc())
        sys.exit(1)


@cli.command()
@click.option(
    "--state-file",
    default=DEFAULT_STATE_FILE,
    help=f"Path to state file (default: {DEFAULT_STATE_FILE})",
)
@click.option("--reset", is_flag=True, help="Clear the saved progress of all copies")
def status(state_file, reset):
    """Show the saved progress of all copies."""
    logger = setup_logger("status", level="INFO")

    if not Path(state_file).exists():
        logger.error(f"State file not found: {state_file}")
        sys.exit(1)

    tracker = ProgressTracker(state_file)

    if reset:
        tracker.reset()
        logger.info(f"✓ Progress cleared in {state_file}")
        return

    summary = tracker.get_summary()
    logger.info("=" * 60)
    logger.info("COPY STATUS")
    logger.info("=" * 60)
    logger.info(f"Copies: {summary['completed_copies']}/{summary['total_copies']} completed, "
                f"{summary['failed_copies']} failed")
    logger.info(f"Rows copied: {summary['rows_copied']:,}")
    logger.info(f"Last updated: {summary['last_updated']}")
    logger.info("=" * 60)

    for key, progress in sorted(tracker.get_all_copy_progress().items()):
        logger.info(f"{key}: {progress.get('status')}, "
                    f"{progress.get('windows_completed', 0)} window(s), "
                    f"{progress.get('rows_copied', 0):,} rows, "
                    f"next id {progress.get('next_starting_id')}")
        if progress.get('error'):
            logger.info(f"  error: {progress['error']}")


@cli.command()
@click.option(
    "--config",
    "-c",
    required=True,
    type=click.Path(exists=True),
    help="Path to configuration YAML file",
)
def validate(config):
    """Validate configuration and test the database connection."""
    logger = setup_logger("validate", level="INFO")

    try:
        logger.info(f"Loading configuration from {config}")
        config_data = load_config(config)

        logger.info("Validating configuration...")
        errors = validate_config(config_data)

        if errors:
            logger.error("Configuration validation failed:")
            for error in errors:
                logger.error(f"  - {error}")
            sys.exit(1)

        logger.info("✓ Configuration is valid")

        settings = Config.from_dict(config_data)
        registry = TranslationRegistry(settings.translations)
        logger.info(f"✓ {len(registry.keys())} translation mapping(s) loaded")

        logger.info("Testing database connection...")
        try:
            connector = PostgresConnector(config=asdict(settings.database))
            connector.connect()
            logger.info("✓ Database connection successful")
            connector.disconnect()
        except Exception as e:
            logger.error(f"✗ Database connection failed: {e}")
            sys.exit(1)

        logger.info("✓ Validation completed successfully")

    except Exception as e:
        logger.error(f"Validation failed: {e}")
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    required=True,
    type=click.Path(exists=True),
    help="Path to configuration YAML file",
)
def translations(config):
    """List the configured translation mappings."""
    try:
        registry = TranslationRegistry.from_config(load_config(config))
    except (ValueError, OSError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not registry.keys():
        click.echo("No translation mappings configured")
        return

    for key in registry.keys():
        mapping = registry.mapping(key)
        click.echo(key)
        for column, rules in mapping.items():
            click.echo(f"  {column}: {len(rules)} rule(s)")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()

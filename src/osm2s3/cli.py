import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from .config.settings import Config, ConfigurationError
from .config_loader import DEFAULT_CONFIG_PATH, load_config
from .domain.enums import FailurePolicy, JobStatus
from .pipeline.archive import Archiver
from .pipeline.export import Exporter
from .pipeline.runner import PipelineRunner
from .pipeline.upload import S3Uploader
from .types import RunReport
from .utils import setup_logging

app = typer.Typer(help="OSM roads pipeline: ogr2ogr export -> zip -> S3 upload")


def print_report(report: RunReport) -> None:
    """Echo one line per job plus a summary."""
    for result in report.results:
        code = result.iso3_code or "-"
        if result.status == JobStatus.FAILED:
            kind = result.error_kind.value if result.error_kind else "error"
            typer.echo(f"FAILED    {result.table_name} [{code}] ({kind}): {result.message}", err=True)
        elif result.status == JobStatus.PLANNED:
            typer.echo(f"PLANNED   {result.table_name} [{code}] -> {result.upload_key}")
        else:
            typer.echo(f"UPLOADED  {result.table_name} [{code}] -> {result.upload_key}")
    if report.aborted:
        typer.echo("Run aborted after first failure; remaining tables were not processed.", err=True)
    typer.echo(f"{len(report.succeeded)} succeeded, {len(report.failed)} failed")


@app.command("run")
def run_command(
    config: Annotated[Path, typer.Option("--config", "-c", help="Path to the TOML (or YAML) job configuration")] = DEFAULT_CONFIG_PATH,
    policy: Annotated[FailurePolicy, typer.Option("--policy", help="abort: stop at first failure | continue: process all tables and report")] = FailurePolicy.ABORT,
    all_codes: Annotated[bool, typer.Option("--all-codes", help="Export every configured ISO3 code instead of only the first")] = False,
    work_dir: Annotated[Optional[Path], typer.Option("--work-dir", help="Directory for exports and archives (default: OSM2S3_WORK_DIR or cwd)")] = None,
    cleanup: Annotated[bool, typer.Option("--cleanup", help="Remove export directory and archive after a successful upload")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Plan jobs without exporting or uploading")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")] = False,
    log_to_file: Annotated[bool, typer.Option("--log-to-file", help="Create timestamped log files")] = False,
):
    """
    Export each configured table with ogr2ogr, zip the Shapefile directory and upload it to S3.

    Examples:
        osm2s3 run                                   # osm.toml in the current directory
        osm2s3 run -c jobs/roads.toml --all-codes
        osm2s3 run --policy continue --cleanup
    """
    setup_logging(verbose, "run", log_to_file)

    try:
        settings = Config()
        job_config = load_config(config)
    except ConfigurationError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    runner = PipelineRunner(
        config=job_config,
        exporter=Exporter(settings.export.ogr2ogr),
        archiver=Archiver(),
        uploader=S3Uploader.from_config(settings),
        work_dir=work_dir or settings.export.work_path,
        policy=policy,
        all_codes=all_codes,
        cleanup=cleanup,
        dry_run=dry_run,
    )

    try:
        report = runner.run()
    except Exception as e:
        logging.error(f"Run failed: {e}")
        if verbose:
            import traceback
            logging.error(f"Full traceback: {traceback.format_exc()}")
        raise typer.Exit(1) from e

    print_report(report)
    if not report.ok:
        raise typer.Exit(1)


@app.command("validate")
def validate_command(
    config: Annotated[Path, typer.Option("--config", "-c", help="Path to the TOML (or YAML) job configuration")] = DEFAULT_CONFIG_PATH,
    all_codes: Annotated[bool, typer.Option("--all-codes", help="Show every configured ISO3 code as a job")] = False,
):
    """Validate the job configuration and runtime settings and list the planned jobs."""
    setup_logging(False)

    try:
        settings = Config()
        job_config = load_config(config)
    except ConfigurationError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Connection: {job_config.connection.redacted_string}")
    typer.echo(f"Schema: {job_config.connection.schema_name}")
    for key, value in settings.get_security_summary().items():
        typer.echo(f"{key}: {value}")

    runner = PipelineRunner(
        config=job_config,
        exporter=Exporter(settings.export.ogr2ogr),
        archiver=Archiver(),
        uploader=S3Uploader.from_config(settings),
        work_dir=settings.export.work_path,
        all_codes=all_codes,
        policy=FailurePolicy.CONTINUE,
        dry_run=True,
    )
    report = runner.run()
    print_report(report)
    if not report.ok:
        raise typer.Exit(1)


@app.command("version")
def version():
    """Display version information."""
    from . import __version__
    typer.echo(f"osm2s3 version: {__version__}")


if __name__ == "__main__":
    app()

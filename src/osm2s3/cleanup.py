"""Local artifact management for export/archive runs."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .domain.models import TableJob
from .types import ExportError

logger = logging.getLogger(__name__)


def remove_job_artifacts(job: TableJob) -> int:
    """
    Remove a job's export directory and archive.

    Args:
        job: Job whose artifacts should be removed

    Returns:
        Number of paths removed
    """
    removed = 0

    if job.output_dir.is_dir():
        try:
            shutil.rmtree(job.output_dir)
            removed += 1
            logger.debug(f"Removed export directory {job.output_dir}")
        except OSError as e:
            logger.warning(f"Could not remove {job.output_dir}: {e}")

    if job.archive_path.is_file():
        try:
            job.archive_path.unlink()
            removed += 1
            logger.debug(f"Removed archive {job.archive_path}")
        except OSError as e:
            logger.warning(f"Could not remove {job.archive_path}: {e}")

    return removed


def remove_stale_partials(work_dir: Path) -> int:
    """Delete ``*.zip.part`` files left behind by an interrupted run."""
    cleaned = 0
    if not work_dir.is_dir():
        return 0
    for partial in work_dir.glob("*.zip.part"):
        try:
            partial.unlink()
            cleaned += 1
            logger.debug(f"Removed partial archive {partial}")
        except OSError as e:
            logger.warning(f"Could not remove partial archive {partial}: {e}")
    if cleaned:
        logger.info(f"Cleaned up {cleaned} partial archive(s) in {work_dir}")
    return cleaned


def reset_export_dir(job: TableJob) -> None:
    """
    Remove a job's export directory before ogr2ogr writes into it.

    ogr2ogr refuses to write a Shapefile layer that already exists, and files
    left from an earlier run would otherwise end up in the new archive.

    Raises:
        ExportError: If the old directory cannot be removed
    """
    if not job.output_dir.exists():
        return
    try:
        shutil.rmtree(job.output_dir)
    except OSError as e:
        raise ExportError(job.layer_name, f"cannot clear previous export {job.output_dir}: {e}") from e
    logger.info(f"Removed previous export directory {job.output_dir}")

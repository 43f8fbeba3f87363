"""
PipelineRunner - Sequential export -> archive -> upload driver

Walks the configured tables in file order and runs each job to completion
before starting the next. Every job produces a JobResult; the failure policy
decides whether a failed job stops the batch.
"""

import logging
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Optional, Union

from ..cleanup import remove_job_artifacts, remove_stale_partials, reset_export_dir
from ..config.settings import ConfigurationError
from ..domain.enums import ErrorKind, FailurePolicy, JobStatus
from ..domain.models import JobConfig, TableJob
from ..types import JobResult, PipelineError, RunReport
from ..utils import get_temp_dir, timer
from .archive import Archiver
from .export import Exporter
from .upload import S3Uploader

logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Drives the Exporter, Archiver and S3Uploader for every configured table.

    By default only the first ISO3 code of each table is processed; with
    ``all_codes`` every code becomes its own job.
    """

    def __init__(
        self,
        config: JobConfig,
        exporter: Exporter,
        archiver: Archiver,
        uploader: S3Uploader,
        work_dir: Optional[Path] = None,
        policy: FailurePolicy = FailurePolicy.ABORT,
        all_codes: bool = False,
        cleanup: bool = False,
        dry_run: bool = False,
    ):
        self.config = config
        self.exporter = exporter
        self.archiver = archiver
        self.uploader = uploader
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.policy = policy
        self.all_codes = all_codes
        self.cleanup = cleanup
        self.dry_run = dry_run

    def plan_jobs(self, table_name: str, codes: list[str]) -> list[TableJob]:
        """
        Jobs for one table entry.

        Raises:
            ConfigurationError: If the table has no ISO3 codes
        """
        if not codes:
            raise ConfigurationError(f"Table '{table_name}' has no ISO3 codes configured")
        selected = codes if self.all_codes else codes[:1]
        if len(codes) > 1 and not self.all_codes:
            logger.debug(f"{table_name}: using {codes[0]}, ignoring {', '.join(codes[1:])}")
        return [TableJob.plan(table_name, code, self.work_dir) for code in selected]

    def _iter_jobs(self) -> Iterator[tuple[str, Union[TableJob, ConfigurationError]]]:
        for table_name, codes in self.config.tables.items():
            try:
                jobs = self.plan_jobs(table_name, codes)
            except ConfigurationError as e:
                yield table_name, e
                continue
            for job in jobs:
                yield table_name, job

    def run_job(self, job: TableJob) -> JobResult:
        """Export, archive and upload a single job."""
        start = time.time()
        try:
            reset_export_dir(job)
            self.exporter.export(job, self.config.connection)
            self.archiver.archive(job.output_dir, job.archive_path)
            self.uploader.upload(job.archive_path, job.layer_name)
        except PipelineError as e:
            logger.error(f"{job.table_name} [{job.iso3_code}] failed ({e.kind.value}): {e}")
            return JobResult(
                table_name=job.table_name,
                iso3_code=job.iso3_code,
                layer_name=job.layer_name,
                status=JobStatus.FAILED,
                error_kind=e.kind,
                message=str(e),
                duration_s=time.time() - start,
                archive_path=job.archive_path if job.archive_path.exists() else None,
            )

        if self.cleanup:
            remove_job_artifacts(job)

        return JobResult(
            table_name=job.table_name,
            iso3_code=job.iso3_code,
            layer_name=job.layer_name,
            status=JobStatus.SUCCEEDED,
            duration_s=time.time() - start,
            archive_path=None if self.cleanup else job.archive_path,
            upload_key=job.layer_name,
        )

    @timer
    def run(self) -> RunReport:
        """
        Process every configured table sequentially.

        Returns:
            RunReport with one JobResult per attempted (or planned) job
        """
        logger.info(f"Temp directory: {get_temp_dir()}")
        logger.info(f"Work directory: {self.work_dir}")
        logger.info(f"Failure policy: {self.policy.value}")

        report = RunReport()
        if not self.dry_run:
            self.work_dir.mkdir(parents=True, exist_ok=True)
            remove_stale_partials(self.work_dir)

        for table_name, item in self._iter_jobs():
            if isinstance(item, ConfigurationError):
                logger.error(str(item))
                result = JobResult(
                    table_name=table_name,
                    iso3_code=None,
                    layer_name=None,
                    status=JobStatus.FAILED,
                    error_kind=ErrorKind.CONFIG,
                    message=str(item),
                )
            elif self.dry_run:
                logger.info(f"[dry run] {item.table_name} [{item.iso3_code}] -> {item.layer_name}")
                result = JobResult(
                    table_name=item.table_name,
                    iso3_code=item.iso3_code,
                    layer_name=item.layer_name,
                    status=JobStatus.PLANNED,
                    archive_path=item.archive_path,
                    upload_key=item.layer_name,
                )
            else:
                result = self.run_job(item)

            report.add(result)
            if result.status == JobStatus.FAILED and self.policy == FailurePolicy.ABORT:
                report.aborted = True
                logger.error("Aborting run after first failure")
                break

        logger.info(
            f"Run finished: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed, {len(report.results)} total"
        )
        return report

"""
Type definitions for the osm2s3 export pipeline.

This module provides the per-job result records and the exception hierarchy
used by the export, archive and upload steps. Components raise these errors;
the runner turns them into JobResult records so the failure policy can decide
whether the batch continues.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .domain.enums import ErrorKind, JobStatus


@dataclass(frozen=True)
class ExportResult:
    """Outcome of a single ogr2ogr invocation."""
    output_dir: Path
    returncode: int
    duration_s: float = 0.0


@dataclass(frozen=True)
class JobResult:
    """Result metadata for one (table, ISO3) job.

    Provides enough detail to report a batch run without re-reading logs.
    """
    table_name: str
    iso3_code: Optional[str]
    layer_name: Optional[str]
    status: JobStatus
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    duration_s: float = 0.0
    archive_path: Optional[Path] = None
    upload_key: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == JobStatus.SUCCEEDED


@dataclass
class RunReport:
    """Ordered collection of job results for a single run."""
    results: list[JobResult] = field(default_factory=list)
    aborted: bool = False

    def add(self, result: JobResult) -> None:
        self.results.append(result)

    @property
    def succeeded(self) -> list[JobResult]:
        return [r for r in self.results if r.status == JobStatus.SUCCEEDED]

    @property
    def failed(self) -> list[JobResult]:
        return [r for r in self.results if r.status == JobStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed and not self.aborted


# Pipeline exception hierarchy
class PipelineError(Exception):
    """Base exception for pipeline steps."""
    kind: ErrorKind = ErrorKind.CONFIG


class ExportError(PipelineError):
    """ogr2ogr could not be started, exited non-zero, or produced no output."""
    kind = ErrorKind.EXPORT

    def __init__(self, layer_name: str, message: str, returncode: Optional[int] = None):
        self.layer_name = layer_name
        self.returncode = returncode
        detail = f" (exit status {returncode})" if returncode is not None else ""
        super().__init__(f"Export of {layer_name} failed{detail}: {message}")


class ArchiveError(PipelineError):
    """Error while building the zip archive from an export directory."""
    kind = ErrorKind.ARCHIVE


class UploadError(PipelineError):
    """Error while pushing an archive to object storage."""
    kind = ErrorKind.UPLOAD

    def __init__(self, bucket: str, key: str, message: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"Upload to s3://{bucket}/{key} failed: {message}")

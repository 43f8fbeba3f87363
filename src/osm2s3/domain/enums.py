"""
Pipeline Enumerations

Core enums for type safety and clear interface definitions across the pipeline.
"""

from enum import Enum


class FailurePolicy(str, Enum):
    """What the runner does after a job fails."""
    ABORT = "abort"         # Stop at the first failed job
    CONTINUE = "continue"   # Run every job, report failures at the end


class JobStatus(str, Enum):
    """Final state of a single table/code job."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PLANNED = "planned"     # Dry run only


class ErrorKind(str, Enum):
    """Failure categories reported per job."""
    CONFIG = "config"       # Bad or incomplete configuration entry
    EXPORT = "export"       # ogr2ogr missing, non-zero exit or no output
    ARCHIVE = "archive"     # Zip creation, read or write failure
    UPLOAD = "upload"       # Credential, connectivity or S3 API failure

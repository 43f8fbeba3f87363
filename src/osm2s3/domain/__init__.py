"""
Domain Models and Types

This module contains the core domain models and enumerations used throughout the pipeline.

Models:
- ConnectionDescriptor: ogr2ogr connection string and source schema
- JobConfig: Tables and country codes to export
- TableJob: One export/archive/upload unit of work

Enums:
- FailurePolicy: Abort on first failure or continue and report
- JobStatus: Per-job outcome
- ErrorKind: Failure categories (config, export, archive, upload)
"""

from .enums import ErrorKind, FailurePolicy, JobStatus
from .models import ConnectionDescriptor, JobConfig, TableJob, layer_name_for

__all__ = [
    "ConnectionDescriptor", "JobConfig", "TableJob", "layer_name_for",
    "ErrorKind", "FailurePolicy", "JobStatus"
]

"""
Configuration module for the osm2s3 pipeline.
Runtime settings and storage credentials resolved from the environment.
"""

from .settings import (
    Config,
    ConfigurationError,
    ExportConfig,
    StorageConfig,
    StorageCredentials,
)

__all__ = [
    'Config',
    'ConfigurationError',
    'ExportConfig',
    'StorageConfig',
    'StorageCredentials'
]

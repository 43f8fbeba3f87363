"""
Runtime settings and credential management for the osm2s3 pipeline.

Storage credentials and tool locations are never kept in the job
configuration file; they are resolved from the environment at startup.

Usage:
    from osm2s3.config.settings import Config
    config = Config()
    uploader = S3Uploader.from_config(config)

Environment Variables:
    OSM2S3_BUCKET: Target bucket (default osm-roads-dumps)
    OSM2S3_REGION: Bucket region (default eu-west-2)
    S3_ENDPOINT_URL: Optional endpoint for S3-compatible storage
    AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_SESSION_TOKEN:
        Explicit credentials; when unset boto3's default chain is used
    OGR2OGR_PATH: ogr2ogr executable (default ogr2ogr on PATH)
    OSM2S3_WORK_DIR: Directory receiving exports and archives (default cwd)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "osm-roads-dumps"
DEFAULT_REGION = "eu-west-2"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class StorageCredentials:
    """Explicit S3 credentials. Empty means boto3 resolves them itself."""
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None

    def __post_init__(self):
        """Key id and secret must be supplied together."""
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ValueError("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set together")
        if self.session_token and not self.access_key_id:
            raise ValueError("AWS_SESSION_TOKEN requires AWS_ACCESS_KEY_ID")

    @property
    def explicit(self) -> bool:
        return bool(self.access_key_id)

    def __repr__(self) -> str:
        return f"StorageCredentials(explicit={self.explicit})"


@dataclass
class StorageConfig:
    """Object storage target."""
    bucket: str = DEFAULT_BUCKET
    region: str = DEFAULT_REGION
    endpoint_url: Optional[str] = None

    def __post_init__(self):
        """Validate storage configuration."""
        if not self.bucket:
            raise ValueError("Bucket name cannot be empty")
        if not self.region:
            raise ValueError("Region cannot be empty")
        if self.endpoint_url and not self.endpoint_url.startswith(('http://', 'https://')):
            raise ValueError("Endpoint URL must include protocol (https://)")


@dataclass
class ExportConfig:
    """ogr2ogr and working directory settings."""
    ogr2ogr: str = "ogr2ogr"
    work_dir: Optional[str] = None

    def __post_init__(self):
        if not self.ogr2ogr:
            raise ValueError("OGR2OGR_PATH cannot be empty")

    @property
    def work_path(self) -> Path:
        return Path(self.work_dir) if self.work_dir else Path.cwd()


class Config:
    """
    Centralized runtime configuration for the osm2s3 pipeline.

    Environment variables loaded (in order of preference):
    1. Explicit environment file passed to constructor
    2. .env.{ENVIRONMENT} (where ENVIRONMENT=development|production|staging)
    3. .env file in project root
    4. System environment variables

    Example:
        config = Config(environment="production")
        config = Config(env_file=Path("/secure/production.env"))
    """

    def __init__(self,
                 environment: Optional[str] = None,
                 env_file: Optional[Path] = None):
        """
        Initialize configuration with secure credential loading.

        Args:
            environment: Target environment (development|staging|production)
            env_file: Explicit path to environment file
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.project_root = self._find_project_root()

        self._load_environment_variables(env_file)

        self._load_storage_config()
        self._load_credentials()
        self._load_export_config()

    def _find_project_root(self) -> Path:
        """Find project root directory containing pyproject.toml, .git or a .env file."""
        cwd = Path.cwd()
        for parent in (cwd, *cwd.parents):
            if any((parent / marker).exists() for marker in ['pyproject.toml', '.git', '.env']):
                return parent
        return cwd

    def _load_environment_variables(self, env_file: Path | None) -> None:
        """Load environment variables from appropriate source."""
        loaded_files = []

        if env_file:
            if env_file.exists():
                load_dotenv(env_file)
                loaded_files.append(str(env_file))
                logger.info(f"Loaded configuration from {env_file}")
            else:
                raise ConfigurationError(f"Specified env file not found: {env_file}")
        else:
            env_specific_file = self.project_root / f".env.{self.environment}"
            if env_specific_file.exists():
                load_dotenv(env_specific_file)
                loaded_files.append(str(env_specific_file))
                logger.info(f"Loaded environment-specific config: {env_specific_file}")

            generic_env_file = self.project_root / ".env"
            if generic_env_file.exists():
                load_dotenv(generic_env_file)
                loaded_files.append(str(generic_env_file))
                logger.info(f"Loaded generic config: {generic_env_file}")

        if not loaded_files:
            logger.debug("No .env files found, using system environment variables only")

        self._loaded_env_files = loaded_files

    def _load_storage_config(self) -> None:
        try:
            self.storage = StorageConfig(
                bucket=os.getenv("OSM2S3_BUCKET", DEFAULT_BUCKET),
                region=os.getenv("OSM2S3_REGION", DEFAULT_REGION),
                endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid storage configuration: {e}")

    def _load_credentials(self) -> None:
        try:
            self.credentials = StorageCredentials(
                access_key_id=os.getenv("AWS_ACCESS_KEY_ID") or None,
                secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY") or None,
                session_token=os.getenv("AWS_SESSION_TOKEN") or None,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid storage credentials: {e}")

        if not self.credentials.explicit:
            logger.debug("No explicit AWS credentials set, using boto3 default credential chain")

    def _load_export_config(self) -> None:
        try:
            self.export = ExportConfig(
                ogr2ogr=os.getenv("OGR2OGR_PATH", "ogr2ogr"),
                work_dir=os.getenv("OSM2S3_WORK_DIR") or None,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid export configuration: {e}")

    def get_security_summary(self) -> dict[str, Any]:
        """
        Get configuration summary for audit purposes.

        Returns:
            Dictionary with security-relevant configuration info (no secrets)
        """
        return {
            'environment': self.environment,
            'loaded_env_files': self._loaded_env_files,
            'bucket': self.storage.bucket,
            'region': self.storage.region,
            'endpoint_url': self.storage.endpoint_url,
            'explicit_credentials': self.credentials.explicit,
            'ogr2ogr': self.export.ogr2ogr,
            'work_dir': str(self.export.work_path),
        }

    def __repr__(self) -> str:
        """Safe string representation without credentials."""
        return (
            f"Config(environment={self.environment}, "
            f"bucket={self.storage.bucket}, "
            f"region={self.storage.region})"
        )

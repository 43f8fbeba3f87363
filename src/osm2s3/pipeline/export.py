"""
Exporter - ogr2ogr Shapefile Export

Runs ogr2ogr once per job to write the country's rows from PostgreSQL into an
ESRI Shapefile directory named after the job's layer.
"""

import logging
import subprocess
import sys
import time

from ..domain.models import ConnectionDescriptor, TableJob
from ..types import ExportError, ExportResult

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "ESRI Shapefile"


class Exporter:
    """
    ogr2ogr wrapper.

    The subprocess output is relayed to this process's stderr/stdout as-is so
    operators see GDAL's own messages.
    """

    def __init__(self, ogr2ogr: str = "ogr2ogr"):
        self.ogr2ogr = ogr2ogr

    def build_command(self, job: TableJob, connection: ConnectionDescriptor) -> list[str]:
        """Argument vector for exporting ``job`` from ``connection``."""
        return [
            self.ogr2ogr,
            "-f", OUTPUT_FORMAT,
            str(job.output_dir),
            connection.connection_string,
            "-sql", job.filter_query(connection.schema_name),
            "-nln", job.layer_name,
        ]

    def export(self, job: TableJob, connection: ConnectionDescriptor) -> ExportResult:
        """
        Export one table/country pair to a Shapefile directory.

        Args:
            job: Job describing table, ISO3 code and output directory
            connection: Source database connection

        Returns:
            ExportResult with the output directory and exit status

        Raises:
            ExportError: If ogr2ogr cannot be started, exits non-zero, or
                leaves no output directory behind
        """
        command = self.build_command(job, connection)
        logged = [connection.redacted_string if arg == connection.connection_string else arg
                  for arg in command]
        logger.info(f"Exporting {job.table_name} [{job.iso3_code}] -> {job.output_dir}")
        logger.debug(f"Running: {subprocess.list2cmdline(logged)}")

        job.output_dir.parent.mkdir(parents=True, exist_ok=True)
        start = time.time()
        try:
            completed = subprocess.run(command, capture_output=True, check=False)
        except FileNotFoundError:
            raise ExportError(job.layer_name, f"executable not found: {self.ogr2ogr}")
        except OSError as e:
            raise ExportError(job.layer_name, f"could not start {self.ogr2ogr}: {e}")
        duration = time.time() - start

        self._relay(completed.stderr, sys.stderr)
        self._relay(completed.stdout, sys.stdout)

        if completed.returncode != 0:
            tail = (completed.stderr or b"").decode("utf-8", errors="replace").strip().splitlines()
            raise ExportError(job.layer_name, tail[-1] if tail else "ogr2ogr reported an error",
                              returncode=completed.returncode)

        if not job.output_dir.is_dir():
            raise ExportError(job.layer_name, f"no output directory at {job.output_dir}",
                              returncode=completed.returncode)

        logger.info(f"Exported {job.layer_name} in {duration:.1f}s")
        return ExportResult(output_dir=job.output_dir, returncode=completed.returncode,
                            duration_s=duration)

    @staticmethod
    def _relay(data: bytes | None, stream) -> None:
        if not data:
            return
        stream.flush()
        stream.buffer.write(data)
        stream.buffer.flush()

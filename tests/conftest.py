"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pytest

from osm2s3.config_loader import load_config
from osm2s3.domain.models import ConnectionDescriptor, TableJob
from osm2s3.types import ExportResult

CONFIG_TOML = """
[tables]
roads_a = ["KEN", "UGA"]
roads_b = ["NPL"]

[connection]
host = "db.local"
user = "osm"
password = "s3cret"
name = "osmdb"
port = 5432
schema = "osm"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A valid osm.toml with two tables."""
    path = tmp_path / "osm.toml"
    path.write_text(CONFIG_TOML)
    return path


@pytest.fixture
def job_config(config_file: Path):
    return load_config(config_file)


@pytest.fixture
def connection() -> ConnectionDescriptor:
    return ConnectionDescriptor.from_mapping({
        "host": "db.local",
        "user": "osm",
        "password": "s3cret",
        "name": "osmdb",
        "port": 5432,
        "schema": "osm",
    })


class FakeExporter:
    """Writes a small shapefile-like directory instead of running ogr2ogr."""

    def __init__(self, events: list, fail_layers: tuple = ()):
        self.events = events
        self.fail_layers = fail_layers

    def export(self, job: TableJob, connection: ConnectionDescriptor) -> ExportResult:
        from osm2s3.types import ExportError

        self.events.append(("export", job.layer_name))
        if job.layer_name in self.fail_layers:
            raise ExportError(job.layer_name, "boom", returncode=1)
        if job.output_dir.exists():
            # ogr2ogr without -overwrite refuses an existing layer
            raise ExportError(job.layer_name, f"Layer {job.layer_name} already exists", returncode=1)
        job.output_dir.mkdir(parents=True)
        (job.output_dir / f"{job.layer_name}.shp").write_bytes(b"shp-" + job.iso3_code.encode())
        (job.output_dir / f"{job.layer_name}.dbf").write_bytes(b"dbf")
        return ExportResult(output_dir=job.output_dir, returncode=0)


class FakeUploader:
    """Records uploads and the archive bytes seen at upload time."""

    bucket = "test-bucket"

    def __init__(self, events: list, fail_keys: tuple = ()):
        self.events = events
        self.fail_keys = fail_keys
        self.uploaded: dict[str, bytes] = {}

    def upload(self, archive_path: Path, key: str) -> dict:
        from osm2s3.types import UploadError

        self.events.append(("upload", key))
        if key in self.fail_keys:
            raise UploadError(self.bucket, key, "denied")
        self.uploaded[key] = Path(archive_path).read_bytes()
        return {"ETag": '"abc"', "ResponseMetadata": {"HTTPStatusCode": 200}}


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def fake_exporter(events):
    return FakeExporter(events)


@pytest.fixture
def fake_uploader(events):
    return FakeUploader(events)


@pytest.fixture
def exporter_factory(events):
    def make(fail_layers: tuple = ()):
        return FakeExporter(events, fail_layers)
    return make


@pytest.fixture
def uploader_factory(events):
    def make(fail_keys: tuple = ()):
        return FakeUploader(events, fail_keys)
    return make

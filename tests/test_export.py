"""Tests for the ogr2ogr Exporter."""

import subprocess
from pathlib import Path

import pytest

from osm2s3.domain.models import TableJob
from osm2s3.pipeline.export import Exporter
from osm2s3.types import ExportError


class FakeRun:
    """Stand-in for subprocess.run recording the argument vector."""

    def __init__(self, returncode=0, stdout=b"", stderr=b"", create_output=True):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.create_output = create_output
        self.calls = []

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        if self.create_output:
            Path(command[3]).mkdir(parents=True, exist_ok=True)
        return subprocess.CompletedProcess(command, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def job(tmp_path: Path) -> TableJob:
    return TableJob.plan("roads", "KEN", tmp_path)


def test_command_line(job, connection):
    command = Exporter("ogr2ogr").build_command(job, connection)

    assert command == [
        "ogr2ogr",
        "-f", "ESRI Shapefile",
        str(job.output_dir),
        connection.connection_string,
        "-sql", "SELECT * FROM osm.roads WHERE iso3 = 'KEN'",
        "-nln", "ken_trs_roads_osm",
    ]


def test_successful_export(monkeypatch, job, connection, capfdbinary):
    fake = FakeRun(stdout=b"out-line\r\n", stderr=b"Warning: nom de rue \xe9\n")
    monkeypatch.setattr(subprocess, "run", fake)

    result = Exporter().export(job, connection)

    assert result.output_dir == job.output_dir
    assert result.returncode == 0
    assert len(fake.calls) == 1
    assert fake.calls[0][1]["capture_output"] is True

    # Subprocess output is relayed unchanged
    captured = capfdbinary.readouterr()
    assert b"out-line\r\n" in captured.out
    assert b"Warning: nom de rue \xe9\n" in captured.err


def test_nonzero_exit_is_an_error(monkeypatch, job, connection):
    fake = FakeRun(returncode=1, stderr=b"ERROR 1: relation does not exist\n")
    monkeypatch.setattr(subprocess, "run", fake)

    with pytest.raises(ExportError) as excinfo:
        Exporter().export(job, connection)

    assert excinfo.value.returncode == 1
    assert "relation does not exist" in str(excinfo.value)


def test_missing_executable(monkeypatch, job, connection):
    def missing(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(subprocess, "run", missing)

    with pytest.raises(ExportError, match="executable not found"):
        Exporter("/no/such/ogr2ogr").export(job, connection)


def test_no_output_directory(monkeypatch, job, connection):
    monkeypatch.setattr(subprocess, "run", FakeRun(create_output=False))

    with pytest.raises(ExportError, match="no output directory"):
        Exporter().export(job, connection)


def test_password_not_logged(monkeypatch, job, connection, caplog):
    monkeypatch.setattr(subprocess, "run", FakeRun())

    with caplog.at_level("DEBUG", logger="osm2s3.pipeline.export"):
        Exporter().export(job, connection)

    assert "s3cret" not in caplog.text
    assert "password='***'" in caplog.text

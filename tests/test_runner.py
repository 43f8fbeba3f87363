"""Tests for the sequential PipelineRunner."""

import zipfile
from pathlib import Path

from osm2s3.domain.enums import ErrorKind, FailurePolicy, JobStatus
from osm2s3.domain.models import JobConfig
from osm2s3.pipeline.archive import Archiver
from osm2s3.pipeline.runner import PipelineRunner


class RecordingArchiver(Archiver):
    def __init__(self, events: list):
        super().__init__()
        self.events = events

    def archive(self, source_dir, archive_path):
        self.events.append(("archive", Path(archive_path).stem))
        return super().archive(source_dir, archive_path)


def make_runner(config, events, tmp_path, exporter, uploader, **kwargs) -> PipelineRunner:
    return PipelineRunner(
        config=config,
        exporter=exporter,
        archiver=RecordingArchiver(events),
        uploader=uploader,
        work_dir=tmp_path / "work",
        **kwargs,
    )


def test_two_tables_run_strictly_in_sequence(job_config, events, tmp_path, fake_exporter, fake_uploader):
    report = make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader).run()

    assert report.ok
    assert events == [
        ("export", "ken_trs_roads_osm"),
        ("archive", "ken_trs_roads_osm"),
        ("upload", "ken_trs_roads_osm"),
        ("export", "npl_trs_roads_osm"),
        ("archive", "npl_trs_roads_osm"),
        ("upload", "npl_trs_roads_osm"),
    ]


def test_only_first_code_is_used_by_default(job_config, events, tmp_path, fake_exporter, fake_uploader):
    report = make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader).run()

    assert [r.iso3_code for r in report.results] == ["KEN", "NPL"]
    assert set(fake_uploader.uploaded) == {"ken_trs_roads_osm", "npl_trs_roads_osm"}


def test_all_codes_fans_out(job_config, events, tmp_path, fake_exporter, fake_uploader):
    report = make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader, all_codes=True).run()

    assert [r.iso3_code for r in report.results] == ["KEN", "UGA", "NPL"]
    assert [e for e in events if e[0] == "export"] == [
        ("export", "ken_trs_roads_osm"),
        ("export", "uga_trs_roads_osm"),
        ("export", "npl_trs_roads_osm"),
    ]


def test_uploaded_archive_matches_export(job_config, events, tmp_path, fake_exporter, fake_uploader):
    make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader).run()

    archive = tmp_path / "work" / "ken_trs_roads_osm.zip"
    assert archive.read_bytes() == fake_uploader.uploaded["ken_trs_roads_osm"]
    with zipfile.ZipFile(archive) as zf:
        assert sorted(zf.namelist()) == ["ken_trs_roads_osm.dbf", "ken_trs_roads_osm.shp"]
        assert zf.read("ken_trs_roads_osm.shp") == b"shp-KEN"


def test_abort_policy_stops_after_first_failure(job_config, events, tmp_path, exporter_factory, fake_uploader):
    exporter = exporter_factory(fail_layers=("ken_trs_roads_osm",))

    report = make_runner(job_config, events, tmp_path, exporter, fake_uploader).run()

    assert report.aborted
    assert not report.ok
    assert len(report.results) == 1
    failed = report.results[0]
    assert failed.status == JobStatus.FAILED
    assert failed.error_kind == ErrorKind.EXPORT
    assert events == [("export", "ken_trs_roads_osm")]


def test_continue_policy_processes_remaining_tables(job_config, events, tmp_path, fake_exporter, uploader_factory):
    uploader = uploader_factory(fail_keys=("ken_trs_roads_osm",))

    report = make_runner(
        job_config, events, tmp_path, fake_exporter, uploader, policy=FailurePolicy.CONTINUE
    ).run()

    assert not report.ok
    assert not report.aborted
    assert [r.status for r in report.results] == [JobStatus.FAILED, JobStatus.SUCCEEDED]
    assert report.failed[0].error_kind == ErrorKind.UPLOAD
    assert ("export", "npl_trs_roads_osm") in events


def test_empty_code_list_is_a_config_failure(connection, events, tmp_path, fake_exporter, fake_uploader):
    config = JobConfig(tables={"empty": [], "roads": ["NPL"]}, connection=connection)

    report = make_runner(
        config, events, tmp_path, fake_exporter, fake_uploader, policy=FailurePolicy.CONTINUE
    ).run()

    assert report.results[0].status == JobStatus.FAILED
    assert report.results[0].error_kind == ErrorKind.CONFIG
    assert "no ISO3 codes" in report.results[0].message
    assert report.results[1].status == JobStatus.SUCCEEDED


def test_empty_code_list_aborts_before_any_export(connection, events, tmp_path, fake_exporter, fake_uploader):
    config = JobConfig(tables={"empty": [], "roads": ["NPL"]}, connection=connection)

    report = make_runner(config, events, tmp_path, fake_exporter, fake_uploader).run()

    assert report.aborted
    assert events == []


def test_dry_run_invokes_nothing(job_config, events, tmp_path, fake_exporter, fake_uploader):
    report = make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader, dry_run=True).run()

    assert events == []
    assert [r.status for r in report.results] == [JobStatus.PLANNED, JobStatus.PLANNED]
    assert [r.upload_key for r in report.results] == ["ken_trs_roads_osm", "npl_trs_roads_osm"]
    assert not (tmp_path / "work").exists()


def test_cleanup_removes_artifacts(job_config, events, tmp_path, fake_exporter, fake_uploader):
    report = make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader, cleanup=True).run()

    assert report.ok
    work = tmp_path / "work"
    assert not (work / "ken_trs_roads_osm").exists()
    assert not (work / "ken_trs_roads_osm.zip").exists()


def test_artifacts_are_kept_by_default(job_config, events, tmp_path, fake_exporter, fake_uploader):
    make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader).run()

    work = tmp_path / "work"
    assert (work / "ken_trs_roads_osm").is_dir()
    assert (work / "ken_trs_roads_osm.zip").is_file()


def test_rerun_reuploads_identical_archive(job_config, events, tmp_path, fake_exporter, fake_uploader):
    runner = make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader)

    assert runner.run().ok
    first = fake_uploader.uploaded["ken_trs_roads_osm"]
    assert runner.run().ok

    assert fake_uploader.uploaded["ken_trs_roads_osm"] == first
    with zipfile.ZipFile(tmp_path / "work" / "ken_trs_roads_osm.zip") as zf:
        assert sorted(zf.namelist()) == ["ken_trs_roads_osm.dbf", "ken_trs_roads_osm.shp"]
    assert [e for e in events if e == ("upload", "ken_trs_roads_osm")] == [("upload", "ken_trs_roads_osm")] * 2


def test_stale_partial_archives_are_removed(job_config, events, tmp_path, fake_exporter, fake_uploader):
    work = tmp_path / "work"
    work.mkdir()
    (work / "old_trs_roads_osm.zip.part").write_bytes(b"half")

    make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader).run()

    assert not (work / "old_trs_roads_osm.zip.part").exists()


def test_previous_export_directory_is_replaced(job_config, events, tmp_path, fake_exporter, fake_uploader):
    stale_dir = tmp_path / "work" / "ken_trs_roads_osm"
    stale_dir.mkdir(parents=True)
    (stale_dir / "stale_from_last_run.shp").write_bytes(b"old")

    report = make_runner(job_config, events, tmp_path, fake_exporter, fake_uploader).run()

    assert report.ok
    assert not (stale_dir / "stale_from_last_run.shp").exists()
    with zipfile.ZipFile(tmp_path / "work" / "ken_trs_roads_osm.zip") as zf:
        assert sorted(zf.namelist()) == ["ken_trs_roads_osm.dbf", "ken_trs_roads_osm.shp"]

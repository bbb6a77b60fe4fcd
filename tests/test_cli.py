"""Tests for the attachsync CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from attachsync.cli import cli, get_config_file, load_config
from attachsync.storage.remote import LocalFSRemoteStore


@pytest.fixture(autouse=True)
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the CLI at a temporary config directory and reset logging after."""
    path = tmp_path / "config"
    monkeypatch.setenv("ATTACHSYNC_CONFIG_DIR", str(path))
    for var in ("ATTACHSYNC_DOCUMENTS_DIR", "ATTACHSYNC_REMOTE_TYPE", "ATTACHSYNC_BATCH_SIZE"):
        monkeypatch.delenv(var, raising=False)
    yield path
    package_logger = logging.getLogger("attachsync")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    path = tmp_path / "docs"
    path.mkdir()
    return path


@pytest.fixture
def remote_dir(tmp_path: Path) -> Path:
    return tmp_path / "remote"


@pytest.fixture
def configured(runner: CliRunner, docs: Path, remote_dir: Path) -> None:
    result = runner.invoke(
        cli,
        [
            "configure",
            "--documents-dir",
            str(docs),
            "--remote-type",
            "local",
            "--remote-path",
            str(remote_dir),
        ],
    )
    assert result.exit_code == 0, result.output


class TestConfigure:
    """Tests for the configure command."""

    def test_writes_config(self, runner: CliRunner, docs: Path, config_dir: Path) -> None:
        """configure should persist the given options."""
        result = runner.invoke(
            cli, ["configure", "--documents-dir", str(docs), "--batch-size", "5"]
        )

        assert result.exit_code == 0, result.output
        assert "Configuration saved" in result.output
        assert get_config_file() == config_dir / "config.json"
        data = json.loads(get_config_file().read_text())
        assert data["documents_dir"] == str(docs.resolve())
        assert data["batch_size"] == 5

    def test_updates_only_given_options(self, runner: CliRunner, configured: None) -> None:
        """Options not passed keep their previous value."""
        result = runner.invoke(cli, ["configure", "--batch-size", "3"])

        assert result.exit_code == 0, result.output
        config = load_config()
        assert config["batch_size"] == 3
        assert config["remote_type"] == "local"

    def test_requires_documents_dir(self, runner: CliRunner) -> None:
        """An incomplete configuration is refused."""
        result = runner.invoke(cli, ["configure", "--remote-type", "local"])

        assert result.exit_code == 1
        assert "documents_dir" in result.output


class TestSyncCommand:
    """Tests for the sync and delete commands."""

    def test_requires_configuration(self, runner: CliRunner) -> None:
        """sync without configuration should fail with a hint."""
        result = runner.invoke(cli, ["sync", "a.jpg"])

        assert result.exit_code == 1
        assert "attachsync configure" in result.output

    def test_sync_uploads(
        self, runner: CliRunner, configured: None, docs: Path, remote_dir: Path
    ) -> None:
        """A local-only file is uploaded."""
        (docs / "a.jpg").write_bytes(b"jpg")

        result = runner.invoke(cli, ["sync", "a.jpg"])

        assert result.exit_code == 0, result.output
        assert "✓ a.jpg" in result.output
        assert "1 succeeded, 0 failed, 0 not processed" in result.output
        assert LocalFSRemoteStore(remote_dir).probe("a.jpg") is not None

    def test_sync_reports_failures(self, runner: CliRunner, configured: None) -> None:
        """A file missing everywhere is reported and the exit code is 1."""
        result = runner.invoke(cli, ["sync", "gone.jpg"])

        assert result.exit_code == 1
        assert "✗ gone.jpg" in result.output

    def test_sync_stops_after_failed_batch(
        self, runner: CliRunner, configured: None, docs: Path
    ) -> None:
        """Without --keep-going, files after a failed batch are not processed."""
        runner.invoke(cli, ["configure", "--batch-size", "1"])
        (docs / "b.jpg").write_bytes(b"jpg")

        result = runner.invoke(cli, ["sync", "a.jpg", "b.jpg"])

        assert result.exit_code == 1
        assert "0 succeeded, 1 failed, 1 not processed" in result.output

    def test_sync_keep_going(
        self, runner: CliRunner, configured: None, docs: Path, remote_dir: Path
    ) -> None:
        """--keep-going resumes draining after a failed batch."""
        runner.invoke(cli, ["configure", "--batch-size", "1"])
        (docs / "b.jpg").write_bytes(b"jpg")

        result = runner.invoke(cli, ["sync", "--keep-going", "a.jpg", "b.jpg"])

        assert result.exit_code == 1
        assert "1 succeeded, 1 failed, 0 not processed" in result.output
        assert LocalFSRemoteStore(remote_dir).probe("b.jpg") is not None

    def test_sync_with_owner(
        self, runner: CliRunner, configured: None, docs: Path, remote_dir: Path
    ) -> None:
        """Identities are relative to the --owner prefix."""
        (docs / "trips" / "1").mkdir(parents=True)
        (docs / "trips" / "1" / "x.jpg").write_bytes(b"jpg")

        result = runner.invoke(cli, ["sync", "x.jpg", "--owner", "trips/1"])

        assert result.exit_code == 0, result.output
        assert "✓ trips/1/x.jpg" in result.output
        assert LocalFSRemoteStore(remote_dir).probe("trips/1/x.jpg") is not None

    def test_delete_with_owner(
        self, runner: CliRunner, configured: None, docs: Path
    ) -> None:
        """delete removes the file under the --owner prefix."""
        (docs / "trips" / "1").mkdir(parents=True)
        (docs / "trips" / "1" / "x.jpg").write_bytes(b"jpg")
        (docs / "x.jpg").write_bytes(b"other")

        result = runner.invoke(cli, ["delete", "--owner", "trips/1", "x.jpg"])

        assert result.exit_code == 0, result.output
        assert not (docs / "trips" / "1" / "x.jpg").exists()
        assert (docs / "x.jpg").exists()

    def test_delete(
        self, runner: CliRunner, configured: None, docs: Path, remote_dir: Path
    ) -> None:
        """delete removes local and remote copies."""
        (docs / "a.jpg").write_bytes(b"jpg")
        runner.invoke(cli, ["sync", "a.jpg"])

        result = runner.invoke(cli, ["delete", "a.jpg"])

        assert result.exit_code == 0, result.output
        assert not (docs / "a.jpg").exists()
        assert LocalFSRemoteStore(remote_dir).probe("a.jpg") is None


class TestFileCommands:
    """Tests for the save and resolve commands."""

    def test_save(
        self, runner: CliRunner, configured: None, docs: Path, tmp_path: Path
    ) -> None:
        """save moves the file under the prefix and prints the identity."""
        source = tmp_path / "IMG_0003.jpg"
        source.write_bytes(b"jpg")

        result = runner.invoke(cli, ["save", str(source), "--prefix", "trips/9"])

        assert result.exit_code == 0, result.output
        assert "trips/9/IMG_0003.jpg" in result.output
        assert (docs / "trips" / "9" / "IMG_0003.jpg").exists()

    def test_save_missing_source(
        self, runner: CliRunner, configured: None, tmp_path: Path
    ) -> None:
        """save reports a missing source file."""
        result = runner.invoke(cli, ["save", str(tmp_path / "nope.jpg")])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_resolve(self, runner: CliRunner, configured: None, docs: Path) -> None:
        """resolve prints the local path of a synced file."""
        (docs / "a.jpg").write_bytes(b"jpg")

        result = runner.invoke(cli, ["resolve", "a.jpg"])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == str((docs / "a.jpg").resolve())

    def test_resolve_missing(self, runner: CliRunner, configured: None) -> None:
        """resolve fails for files not synced locally."""
        result = runner.invoke(cli, ["resolve", "a.jpg"])

        assert result.exit_code == 1
        assert "not yet synced locally" in result.output

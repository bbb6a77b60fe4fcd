"""Tests for remote storage implementations."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from attachsync.storage.remote import (
    LocalFSRemoteStore,
    ObjectNotFoundError,
    RemoteStore,
    S3RemoteStore,
    create_remote_store,
)


class TestLocalFSRemoteStore:
    """Tests for LocalFSRemoteStore implementation."""

    @pytest.fixture
    def storage(self, tmp_path: Path) -> LocalFSRemoteStore:
        """Create a LocalFSRemoteStore instance for testing."""
        return LocalFSRemoteStore(tmp_path / "remote")

    @pytest.fixture
    def local_file(self, tmp_path: Path) -> Path:
        """Create a local file to upload."""
        path = tmp_path / "local" / "x.jpg"
        path.parent.mkdir()
        path.write_bytes(b"jpeg bytes")
        return path

    def test_probe_missing_returns_none(self, storage: LocalFSRemoteStore) -> None:
        """probe() should report absence as None."""
        assert storage.probe("trips/1/x.jpg") is None

    def test_upload_then_probe(self, storage: LocalFSRemoteStore, local_file: Path) -> None:
        """probe() should return metadata after upload()."""
        storage.upload(local_file, "trips/1/x.jpg")

        metadata = storage.probe("trips/1/x.jpg")

        assert metadata is not None
        assert metadata.path == "trips/1/x.jpg"
        assert metadata.size == len(b"jpeg bytes")
        assert metadata.updated is not None

    def test_download_writes_file(
        self, storage: LocalFSRemoteStore, local_file: Path, tmp_path: Path
    ) -> None:
        """download() should create parents and write the object."""
        storage.upload(local_file, "x.jpg")
        target = tmp_path / "docs" / "nested" / "x.jpg"

        storage.download("x.jpg", target)

        assert target.read_bytes() == b"jpeg bytes"

    def test_download_missing_raises(self, storage: LocalFSRemoteStore, tmp_path: Path) -> None:
        """download() should raise ObjectNotFoundError for missing objects."""
        with pytest.raises(ObjectNotFoundError, match="Object not found"):
            storage.download("missing.jpg", tmp_path / "missing.jpg")

    def test_delete(self, storage: LocalFSRemoteStore, local_file: Path) -> None:
        """delete() should return True once, then False."""
        storage.upload(local_file, "x.jpg")

        assert storage.delete("x.jpg") is True
        assert storage.delete("x.jpg") is False
        assert storage.probe("x.jpg") is None

    def test_download_url(self, storage: LocalFSRemoteStore, local_file: Path) -> None:
        """download_url() should return a file URL for existing objects."""
        storage.upload(local_file, "x.jpg")
        assert storage.download_url("x.jpg").startswith("file://")

    def test_rejects_parent_traversal(self, storage: LocalFSRemoteStore) -> None:
        """Identities must stay inside the store."""
        with pytest.raises(ValueError, match="Invalid identity"):
            storage.probe("../outside.jpg")

    def test_location(self, storage: LocalFSRemoteStore) -> None:
        """location should describe the directory."""
        assert storage.location.startswith("Local filesystem:")


class TestS3RemoteStore:
    """Tests for S3RemoteStore using moto mock."""

    @pytest.fixture
    def mock_s3(self) -> Iterator[None]:
        """Set up moto mock for S3."""
        pytest.importorskip("moto")
        import boto3
        from moto import mock_aws

        with mock_aws():
            client = boto3.client("s3", region_name="us-east-1")
            client.create_bucket(Bucket="test-bucket")
            yield

    @pytest.fixture
    def storage(self, mock_s3: None) -> S3RemoteStore:
        """Create an S3RemoteStore instance for testing."""
        return S3RemoteStore(bucket="test-bucket", region="us-east-1")

    @pytest.fixture
    def local_file(self, tmp_path: Path) -> Path:
        """Create a local file to upload."""
        path = tmp_path / "x.jpg"
        path.write_bytes(b"s3 jpeg bytes")
        return path

    def test_probe_missing_returns_none(self, storage: S3RemoteStore) -> None:
        """A 404 from HEAD should be reported as absence, not an error."""
        assert storage.probe("trips/1/missing.jpg") is None

    def test_upload_and_probe(self, storage: S3RemoteStore, local_file: Path) -> None:
        """probe() should return size and etag after upload()."""
        storage.upload(local_file, "trips/1/x.jpg")

        metadata = storage.probe("trips/1/x.jpg")

        assert metadata is not None
        assert metadata.size == len(b"s3 jpeg bytes")
        assert metadata.etag
        assert '"' not in metadata.etag

    def test_download(self, storage: S3RemoteStore, local_file: Path, tmp_path: Path) -> None:
        """download() should write the object to the local path."""
        storage.upload(local_file, "x.jpg")
        target = tmp_path / "docs" / "x.jpg"

        storage.download("x.jpg", target)

        assert target.read_bytes() == b"s3 jpeg bytes"

    def test_download_missing_raises(self, storage: S3RemoteStore, tmp_path: Path) -> None:
        """download() should raise ObjectNotFoundError for missing objects."""
        with pytest.raises(ObjectNotFoundError, match="Object not found"):
            storage.download("missing.jpg", tmp_path / "missing.jpg")

    def test_delete(self, storage: S3RemoteStore, local_file: Path) -> None:
        """delete() should remove the object and report missing ones."""
        storage.upload(local_file, "x.jpg")

        assert storage.delete("x.jpg") is True
        assert storage.probe("x.jpg") is None
        assert storage.delete("x.jpg") is False

    def test_download_url(self, storage: S3RemoteStore) -> None:
        """download_url() should return a presigned URL for the key."""
        url = storage.download_url("trips/1/x.jpg", expires_in=60)
        assert "test-bucket" in url
        assert "trips/1/x.jpg" in url

    def test_key_prefix(self, mock_s3: None) -> None:
        """Keys should be prefixed when a key prefix is configured."""
        storage = S3RemoteStore(bucket="test-bucket", key_prefix="/app/")
        assert storage._key("trips/1/x.jpg") == "app/trips/1/x.jpg"
        assert storage._key("/x.jpg") == "app/x.jpg"

    def test_location(self, storage: S3RemoteStore) -> None:
        """location should name the bucket."""
        assert storage.location == "S3: s3://test-bucket"


class TestCreateRemoteStore:
    """Tests for the create_remote_store factory function."""

    def test_create_local_store(self, tmp_path: Path) -> None:
        """Should create LocalFSRemoteStore for type='local'."""
        config = {"type": "local", "local_path": str(tmp_path / "remote")}

        storage = create_remote_store(config)

        assert isinstance(storage, LocalFSRemoteStore)

    def test_default_type_is_local(self, tmp_path: Path) -> None:
        """Should default to local storage if type not specified."""
        config: dict[str, str | None] = {"local_path": str(tmp_path)}

        assert isinstance(create_remote_store(config), LocalFSRemoteStore)

    def test_create_s3_store(self) -> None:
        """Should create S3RemoteStore for type='s3'."""
        pytest.importorskip("moto")
        from moto import mock_aws

        with mock_aws():
            config = {"type": "s3", "bucket": "my-bucket", "region": "us-east-1"}

            assert isinstance(create_remote_store(config), S3RemoteStore)

    def test_create_s3_requires_bucket(self) -> None:
        """Should raise ValueError if bucket is missing."""
        config: dict[str, str | None] = {"type": "s3"}

        with pytest.raises(ValueError, match="requires 'bucket'"):
            create_remote_store(config)

    def test_unknown_type_raises(self) -> None:
        """Should raise ValueError for unknown storage type."""
        with pytest.raises(ValueError, match="Unknown storage type"):
            create_remote_store({"type": "ftp"})


class TestRemoteStoreInterface:
    """Verify RemoteStore is a proper abstract base class."""

    def test_cannot_instantiate_abstract(self) -> None:
        """RemoteStore cannot be instantiated directly."""
        with pytest.raises(TypeError, match="abstract"):
            RemoteStore()  # type: ignore[abstract]

from pathlib import Path

import pytest
from botocore.exceptions import ClientError

import storage
from exceptions import StorageError


class FakeS3:
    def __init__(self, fail: bool = False) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail = fail

    def put_object(self, Bucket: str, Key: str, Body: bytes) -> None:
        if self.fail:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.objects[f"{Bucket}/{Key}"] = Body


def test_local_roundtrip(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(storage, "S3_BUCKET", None)
    monkeypatch.setattr(storage, "LOCAL_ROOT", tmp_path)

    location = storage.save_file("report.csv", "FINANCIAL SUMMARY\n")

    assert Path(location) == tmp_path / "reports" / "report.csv"
    assert storage.load_file("report.csv") == b"FINANCIAL SUMMARY\n"
    assert storage.list_files() == ["report.csv"]


def test_local_missing_file_and_folder(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(storage, "S3_BUCKET", None)
    monkeypatch.setattr(storage, "LOCAL_ROOT", tmp_path)

    assert storage.load_file("missing.csv") is None
    assert storage.list_files("nothing_here") == []


def test_s3_upload(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeS3()
    monkeypatch.setattr(storage, "S3_BUCKET", "nova-bucket")
    monkeypatch.setattr(storage, "get_s3_client", lambda: fake)

    location = storage.save_file("report.csv", b"data")

    assert location == "s3://nova-bucket/reports/report.csv"
    assert fake.objects == {"nova-bucket/reports/report.csv": b"data"}


def test_s3_upload_failure_raises_storage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(storage, "S3_BUCKET", "nova-bucket")
    monkeypatch.setattr(storage, "get_s3_client", lambda: FakeS3(fail=True))

    with pytest.raises(StorageError):
        storage.save_file("report.csv", b"data")

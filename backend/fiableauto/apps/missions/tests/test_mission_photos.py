from __future__ import annotations

from decimal import Decimal
from io import BytesIO

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from fiableauto.apps.missions import models, router, schemas, services
from fiableauto.apps.missions.storage import (
    LocalDirectoryStorage,
    PlaceholderStorage,
    get_blob_storage,
)
from fiableauto.errors import NotFoundError, PayloadTooLargeError, ValidationError


class _RecordingStorage:
    def __init__(self):
        self.calls = []

    def store(self, content, *, key, metadata):
        self.calls.append((key, len(content), metadata))
        return f"https://cdn.example.com/{key}"


def _upload(content=b"\xff\xd8jpeg-bytes", content_type="image/jpeg", **extra):
    return schemas.PhotoUpload(
        filename="avant.jpg",
        content_type=content_type,
        content=content,
        **extra,
    )


def test_upload_creates_photo_row(db_session, make_mission):
    mission = make_mission()
    storage = _RecordingStorage()

    photo, url = services.upload_photo(
        db_session,
        storage,
        mission_id=mission.id,
        photo_type="front",
        upload=_upload(gps_latitude=Decimal("48.85661400"), device_info="Pixel 7"),
    )

    assert photo.photo_type == "front"
    assert photo.mime_type == "image/jpeg"
    assert photo.original_name == "avant.jpg"
    assert photo.filename.endswith("_avant.jpg")
    assert photo.storage_url == url
    assert url.startswith(f"https://cdn.example.com/{mission.id}/")
    assert photo.device_info == "Pixel 7"
    assert storage.calls[0][2]["photo_type"] == "front"


def test_reupload_same_type_replaces_row(db_session, make_mission):
    mission = make_mission()
    storage = _RecordingStorage()

    first, _ = services.upload_photo(
        db_session, storage, mission_id=mission.id, photo_type="front", upload=_upload()
    )
    second, _ = services.upload_photo(
        db_session,
        storage,
        mission_id=mission.id,
        photo_type="front",
        upload=_upload(content=b"\x89PNG-new", content_type="image/png", device_info="iPhone"),
    )

    rows = db_session.query(models.MissionPhoto).filter_by(mission_id=mission.id).all()
    assert len(rows) == 1
    assert second.id == first.id
    assert rows[0].mime_type == "image/png"
    assert rows[0].file_size == len(b"\x89PNG-new")
    assert rows[0].device_info == "iPhone"


def test_different_types_are_kept_separately(db_session, make_mission):
    mission = make_mission()
    storage = _RecordingStorage()

    for photo_type in ("front", "rear", "dashboard"):
        services.upload_photo(
            db_session, storage, mission_id=mission.id, photo_type=photo_type, upload=_upload()
        )

    assert db_session.query(models.MissionPhoto).filter_by(mission_id=mission.id).count() == 3


def test_jpg_alias_is_accepted(db_session, make_mission):
    mission = make_mission()

    photo, _ = services.upload_photo(
        db_session,
        _RecordingStorage(),
        mission_id=mission.id,
        photo_type="rear",
        upload=_upload(content_type="image/jpg"),
    )

    assert photo.mime_type == "image/jpg"


@pytest.mark.parametrize("content_type", ["application/pdf", "image/gif", None])
def test_disallowed_mime_type_is_rejected(db_session, make_mission, content_type):
    mission = make_mission()
    storage = _RecordingStorage()

    with pytest.raises(ValidationError):
        services.upload_photo(
            db_session,
            storage,
            mission_id=mission.id,
            photo_type="front",
            upload=_upload(content_type=content_type),
        )
    assert storage.calls == []


def test_missing_file_is_rejected(db_session, make_mission):
    mission = make_mission()

    with pytest.raises(ValidationError) as excinfo:
        services.upload_photo(
            db_session, _RecordingStorage(), mission_id=mission.id, photo_type="front", upload=None
        )
    assert excinfo.value.message == "No file uploaded"


def test_missing_photo_type_is_rejected(db_session, make_mission):
    mission = make_mission()

    with pytest.raises(ValidationError):
        services.upload_photo(
            db_session, _RecordingStorage(), mission_id=mission.id, photo_type=" ", upload=_upload()
        )


def test_oversize_file_is_rejected(db_session, make_mission, monkeypatch):
    monkeypatch.setenv("MISSION_PHOTO_MAX_BYTES", "8")
    mission = make_mission()

    with pytest.raises(PayloadTooLargeError) as excinfo:
        services.upload_photo(
            db_session,
            _RecordingStorage(),
            mission_id=mission.id,
            photo_type="front",
            upload=_upload(content=b"0123456789"),
        )
    assert excinfo.value.status_code == 413


def test_upload_to_unknown_mission_stores_nothing(db_session):
    storage = _RecordingStorage()

    with pytest.raises(NotFoundError):
        services.upload_photo(
            db_session, storage, mission_id=4242, photo_type="front", upload=_upload()
        )
    assert storage.calls == []
    assert db_session.query(models.MissionPhoto).count() == 0


def test_placeholder_storage_labels_url_with_photo_type():
    url = PlaceholderStorage().store(b"x", key="1/a.jpg", metadata={"photo_type": "rear left"})

    assert url.startswith("https://via.placeholder.com/")
    assert url.endswith("text=rear%20left")


def test_local_storage_writes_file(tmp_path):
    storage = LocalDirectoryStorage(tmp_path, "/media/photos/")

    url = storage.store(b"bytes", key="7/123_front.jpg", metadata={})

    assert url == "/media/photos/7/123_front.jpg"
    assert (tmp_path / "7" / "123_front.jpg").read_bytes() == b"bytes"


def test_local_storage_refuses_escaping_keys(tmp_path):
    storage = LocalDirectoryStorage(tmp_path / "photos", "/media")

    with pytest.raises(ValueError):
        storage.store(b"bytes", key="../outside.jpg", metadata={})


def test_storage_backend_is_chosen_from_env(monkeypatch, tmp_path):
    monkeypatch.delenv("MISSION_PHOTO_STORAGE", raising=False)
    assert isinstance(get_blob_storage(), PlaceholderStorage)

    monkeypatch.setenv("MISSION_PHOTO_STORAGE", "local")
    monkeypatch.setenv("MISSION_PHOTO_DIR", str(tmp_path))
    assert isinstance(get_blob_storage(), LocalDirectoryStorage)

    monkeypatch.setenv("MISSION_PHOTO_STORAGE", "s3")
    with pytest.raises(ValueError):
        get_blob_storage()


def test_upload_endpoint_reads_multipart_file(db_session, make_mission):
    mission = make_mission()
    upload = UploadFile(
        filename="interieur.webp",
        file=BytesIO(b"RIFF-webp"),
        headers=Headers({"content-type": "image/webp"}),
    )

    response = router.upload_photo(
        mission_id=mission.id,
        photo=upload,
        photo_type="interior",
        gps_latitude=None,
        gps_longitude=None,
        device_info=None,
        db=db_session,
        storage=PlaceholderStorage(),
    )

    assert response.success is True
    assert response.data["photo"]["photo_type"] == "interior"
    assert response.data["url"].endswith("text=interior")


def test_local_storage_refuses_sibling_directories(tmp_path):
    storage = LocalDirectoryStorage(tmp_path / "photos", "/media")

    with pytest.raises(ValueError):
        storage.store(b"bytes", key="../photos_evil/x.jpg", metadata={})

import re

import pytest

from cardshare.core.exceptions.base import StorageUnavailableError, ValidationError
from cardshare.core.exceptions.domain import (
    AssetTooLargeError,
    UnsupportedAssetTypeError,
    UploadTransportError,
)
from cardshare.domain.asset.models import RemoteImageReference, UploadedImage, UploadStatus
from cardshare.domain.asset.service import AssetStore

FILENAME_PATTERN = re.compile(r"^front_\d+_[0-9a-f]{12}\.png$")


class TestUploads:

    async def test_upload_is_written_with_generated_name(self, asset_store, upload_dir, png_upload):
        ref = await asset_store.store(png_upload(), "front")

        assert ref.owned is True
        prefix, filename = ref.path.split("/")
        assert prefix == "uploads"
        assert FILENAME_PATTERN.match(filename)
        assert (upload_dir / filename).read_bytes() == png_upload().content

    async def test_two_uploads_never_share_a_file(self, asset_store, png_upload, uploaded_files):
        first = await asset_store.store(png_upload(), "front")
        second = await asset_store.store(png_upload(), "front")

        assert first.path != second.path
        assert len(uploaded_files()) == 2

    async def test_size_limit_is_inclusive(self, asset_store, png_upload, uploaded_files):
        ref = await asset_store.store(png_upload(content=b"x" * 5_000_000), "front")
        assert ref.owned

        with pytest.raises(AssetTooLargeError) as exc_info:
            await asset_store.store(png_upload(content=b"x" * 5_000_001), "front")

        assert exc_info.value.details == {"size": 5_000_001, "limit": 5_000_000}
        assert len(uploaded_files()) == 1

    async def test_declared_size_is_checked(self, asset_store, png_upload, uploaded_files):
        with pytest.raises(AssetTooLargeError):
            await asset_store.store(png_upload(content=b"", size=5_000_001), "front")
        assert uploaded_files() == []

    async def test_gif_is_rejected_without_writing(self, asset_store, uploaded_files):
        upload = UploadedImage(filename="anim.gif", content_type="image/gif", content=b"GIF89a")

        with pytest.raises(UnsupportedAssetTypeError) as exc_info:
            await asset_store.store(upload, "front")

        assert exc_info.value.details["content_type"] == "image/gif"
        assert uploaded_files() == []

    @pytest.mark.parametrize("status", [UploadStatus.PARTIAL, UploadStatus.SIZE_LIMIT, UploadStatus.CANT_WRITE])
    async def test_transport_failures_are_distinct(self, asset_store, png_upload, uploaded_files, status):
        with pytest.raises(UploadTransportError) as exc_info:
            await asset_store.store(png_upload(status=status), "front", "front_image")

        assert exc_info.value.details == {"reason": status.name, "field": "front_image"}
        assert uploaded_files() == []

    async def test_extension_falls_back_to_content_type(self, asset_store):
        upload = UploadedImage(filename="photo", content_type="image/jpeg", content=b"\xff\xd8\xff")

        ref = await asset_store.store(upload, "back")

        assert re.match(r"^uploads/back_\d+_[0-9a-f]{12}\.jpg$", ref.path)

    async def test_extension_is_lowercased(self, asset_store):
        upload = UploadedImage(filename="PHOTO.PNG", content_type="image/png", content=b"data")

        ref = await asset_store.store(upload, "front")

        assert ref.path.endswith(".png")


class TestRemoteReferences:

    async def test_url_is_returned_verbatim_without_side_effects(self, asset_store, upload_dir):
        url = "https://cdn.example.com/images/card.png?size=large"

        ref = await asset_store.store(RemoteImageReference(url), "front")

        assert ref.path == url
        assert ref.owned is False
        assert not upload_dir.exists()

    @pytest.mark.parametrize("url", ["not a url", "/relative/path.png", "ftp://example.com/a.png", "http://"])
    async def test_invalid_url_is_validation_error(self, asset_store, url):
        with pytest.raises(ValidationError) as exc_info:
            await asset_store.store(RemoteImageReference(url), "back", "back_image")

        assert exc_info.value.details["field"] == "back_image"


class TestDirectoryProvisioning:

    async def test_directory_is_created_lazily(self, asset_store, upload_dir, png_upload):
        assert not upload_dir.exists()

        await asset_store.store(png_upload(), "front")

        assert upload_dir.is_dir()

    async def test_directory_that_cannot_be_created(self, tmp_path, png_upload):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = AssetStore(str(blocker / "uploads"))

        with pytest.raises(StorageUnavailableError):
            await store.store(png_upload(), "front")

    async def test_writability_is_rechecked_on_every_write(self, asset_store, png_upload, monkeypatch):
        await asset_store.store(png_upload(), "front")

        monkeypatch.setattr("cardshare.domain.asset.service.os.access", lambda *args: False)
        with pytest.raises(StorageUnavailableError):
            await asset_store.store(png_upload(), "front")

    async def test_is_available_reports_state(self, asset_store, monkeypatch):
        assert asset_store.is_available() is True

        monkeypatch.setattr("cardshare.domain.asset.service.os.access", lambda *args: False)
        assert asset_store.is_available() is False

import logging
import os
import re
import secrets
import time
from pathlib import Path
from typing import Iterable, Optional

import aiofiles

from cardshare.core.exceptions.base import StorageUnavailableError, ValidationError
from cardshare.core.exceptions.domain import (
    AssetTooLargeError,
    AssetWriteError,
    UnsupportedAssetTypeError,
    UploadTransportError,
)

from .models import AssetRef, ImageSource, RemoteImageReference, UploadedImage, UploadStatus, is_absolute_url

CONTENT_TYPE_EXTENSIONS = {"image/jpeg": "jpg", "image/jpg": "jpg", "image/png": "png"}


class AssetStore:
    """
    Validates inbound images and persists uploads into a flat managed directory.

    Remote URLs are accepted as unowned references and never fetched.
    """

    def __init__(
        self,
        upload_dir: str,
        url_prefix: str = "uploads",
        max_bytes: int = 5_000_000,
        allowed_content_types: Iterable[str] = ("image/jpeg", "image/png", "image/jpg"),
        allowed_url_schemes: Iterable[str] = ("http", "https"),
    ):
        """
        Initialize the AssetStore.

        Args:
            upload_dir (str): Directory the uploaded files are written to.
            url_prefix (str): Public path prefix recorded in stored references.
            max_bytes (int): Largest accepted declared upload size.
            allowed_content_types (Iterable[str]): Accepted declared content types.
            allowed_url_schemes (Iterable[str]): Accepted schemes for remote references.
        """
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.strip("/")
        self.max_bytes = max_bytes
        self.allowed_content_types = [t.lower() for t in allowed_content_types]
        self.allowed_url_schemes = tuple(s.lower() for s in allowed_url_schemes)
        self.logger = logging.getLogger(__name__)
        self._provisioned = False

    def validate(self, source: ImageSource, field: str = "image") -> None:
        """
        Check an image source without touching the filesystem.

        Raises:
            UploadTransportError: If the upload did not arrive intact.
            AssetTooLargeError: If the declared size exceeds the limit.
            UnsupportedAssetTypeError: If the declared content type is not accepted.
            ValidationError: If a remote reference is not an absolute URL.
        """
        if isinstance(source, RemoteImageReference):
            if not is_absolute_url(source.url, self.allowed_url_schemes):
                self.logger.warning(f"Invalid URL for {field}: {source.url}")
                raise ValidationError(f"Invalid URL for {field}", field, {"value": source.url})
            return

        if source.status is not UploadStatus.OK:
            self.logger.warning(f"Upload transport failure for {field}: {source.status.name}")
            raise UploadTransportError(source.status.name, field)

        if source.size > self.max_bytes:
            self.logger.warning(f"File size exceeds limit for {field}: {source.size}")
            raise AssetTooLargeError(source.size, self.max_bytes)

        content_type = (source.content_type or "").lower()
        if content_type not in self.allowed_content_types:
            self.logger.warning(f"Invalid file type for {field}: {source.content_type}")
            raise UnsupportedAssetTypeError(source.content_type, self.allowed_content_types)

    async def store(self, source: ImageSource, name_prefix: str, field: Optional[str] = None) -> AssetRef:
        """
        Validate and persist an image source.

        Args:
            source (ImageSource): Uploaded bytes or a remote URL reference.
            name_prefix (str): Prefix of the generated filename.
            field (str, optional): Submission field name used in errors.

        Returns:
            AssetRef: Owned relative path for uploads, the URL unchanged for references.
        """
        field = field or name_prefix
        self.validate(source, field)

        if isinstance(source, RemoteImageReference):
            self.logger.info(f"Using URL for {field}: {source.url}")
            return AssetRef(path=source.url, owned=False)

        return await self._write_upload(source, name_prefix)

    async def _write_upload(self, upload: UploadedImage, name_prefix: str) -> AssetRef:
        self._ensure_directory()
        self._check_writable()

        filename = self._generate_filename(upload, name_prefix)
        destination = self.upload_dir / filename

        try:
            # "xb" refuses to clobber an existing file
            async with aiofiles.open(destination, mode="xb") as file:
                await file.write(upload.content)
        except OSError as e:
            self.logger.error(f"Failed to write uploaded file to {destination}: {e}")
            raise AssetWriteError(str(destination), str(e))

        path = f"{self.url_prefix}/{filename}" if self.url_prefix else filename
        self.logger.info(f"Successfully uploaded {upload.filename} to {destination}")
        return AssetRef(path=path, owned=True)

    def _generate_filename(self, upload: UploadedImage, name_prefix: str) -> str:
        ext = re.sub(r"[^a-z0-9]", "", Path(upload.filename).suffix.lower())
        if not ext:
            ext = CONTENT_TYPE_EXTENSIONS.get((upload.content_type or "").lower(), "bin")
        return f"{name_prefix}_{int(time.time())}_{secrets.token_hex(6)}.{ext}"

    def _ensure_directory(self) -> None:
        """Create the upload directory on first use."""
        if self._provisioned:
            return
        if not self.upload_dir.is_dir():
            try:
                self.upload_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self.logger.error(f"Failed to create uploads directory {self.upload_dir}: {e}")
                raise StorageUnavailableError(str(self.upload_dir), "directory could not be created")
            self.logger.info(f"Created uploads directory: {self.upload_dir}")
        self._provisioned = True

    def _check_writable(self) -> None:
        if not self.upload_dir.is_dir() or not os.access(self.upload_dir, os.W_OK):
            self.logger.error(f"Uploads directory is not writable: {self.upload_dir}")
            raise StorageUnavailableError(str(self.upload_dir), "directory is not writable")

    def is_available(self) -> bool:
        """Whether an upload could be written right now."""
        try:
            self._ensure_directory()
            self._check_writable()
        except StorageUnavailableError:
            return False
        return True

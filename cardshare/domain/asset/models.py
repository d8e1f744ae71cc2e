from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from urllib.parse import urlparse


class UploadStatus(Enum):
    """Transport outcome of an upload, set by whoever received the bytes."""

    OK = "ok"
    SIZE_LIMIT = "size_limit"
    PARTIAL = "partial"
    NO_FILE = "no_file"
    NO_TMP_DIR = "no_tmp_dir"
    CANT_WRITE = "cant_write"
    EXTENSION = "extension"


@dataclass
class UploadedImage:
    filename: str
    content_type: Optional[str]
    content: bytes = b""
    size: Optional[int] = None
    status: UploadStatus = UploadStatus.OK

    def __post_init__(self):
        if self.size is None:
            self.size = len(self.content)

    @property
    def is_present(self) -> bool:
        return bool(self.filename) and self.status is not UploadStatus.NO_FILE


@dataclass
class RemoteImageReference:
    url: str


ImageSource = Union[UploadedImage, RemoteImageReference]


@dataclass
class AssetRef:
    """Resolved image reference: an owned relative path or an external URL."""

    path: str
    owned: bool


@dataclass
class ImageInput:
    """One image field of a submission; an upload wins over a URL."""

    upload: Optional[UploadedImage] = None
    url: Optional[str] = None

    def source(self) -> Optional[ImageSource]:
        if self.upload is not None and self.upload.is_present:
            return self.upload
        if self.url and self.url.strip():
            return RemoteImageReference(self.url.strip())
        return None


def is_absolute_url(value: str, schemes=("http", "https")) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme.lower() in schemes and bool(parsed.netloc) and not any(c.isspace() for c in value)

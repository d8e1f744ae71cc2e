from typing import Dict, List, Optional

from .base import AppError, ResourceNotFoundError


class AssetError(AppError):
    """Base class for image upload errors"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, "ASSET_ERROR", details)


class UploadTransportError(AssetError):
    """Raised when the upload itself did not arrive intact"""

    MESSAGES = {
        "SIZE_LIMIT": "File size exceeds server limit",
        "PARTIAL": "File was only partially uploaded",
        "NO_FILE": "No file was uploaded",
        "NO_TMP_DIR": "Missing temporary directory",
        "CANT_WRITE": "Failed to write file to disk",
        "EXTENSION": "An extension stopped the file upload",
    }

    def __init__(self, reason: str, field: Optional[str] = None):
        details = {"reason": reason}
        if field:
            details["field"] = field
        super().__init__(self.MESSAGES.get(reason, "Unknown upload error"), details)


class AssetTooLargeError(AssetError):
    """Raised when the declared upload size exceeds the limit"""

    def __init__(self, size: int, limit: int):
        super().__init__(f"File size exceeds {limit} byte limit", {"size": size, "limit": limit})


class UnsupportedAssetTypeError(AssetError):
    """Raised when the declared content type is not an accepted image type"""

    def __init__(self, content_type: Optional[str], allowed: List[str]):
        super().__init__(
            "Only JPG, PNG, and JPEG files are allowed",
            {"content_type": content_type, "allowed": list(allowed)},
        )


class AssetWriteError(AssetError):
    """Raised when an accepted upload cannot be persisted"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to store uploaded file: {reason}", {"path": path, "reason": reason})


class MissingAssetError(AppError):
    """Raised when an image field has neither an upload nor a URL"""

    def __init__(self, field: str):
        super().__init__(f"No {field} provided", "MISSING_ASSET", {"field": field})


class CorruptStoreError(AppError):
    """Raised when the card document exists but cannot be parsed"""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Card document {path} is corrupt: {reason}",
            "CORRUPT_STORE",
            {"path": path, "reason": reason},
        )


class CardNotFoundError(ResourceNotFoundError):
    """Raised when no card carries the requested id"""

    def __init__(self, card_id: str):
        super().__init__("Card", card_id)


class DuplicateIdError(AppError):
    """Raised when adding a card whose id is already stored"""

    def __init__(self, card_id: str):
        super().__init__(f"Card id already exists: {card_id}", "DUPLICATE_ID", {"card_id": card_id})

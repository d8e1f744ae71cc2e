import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from cardshare.api.models.models import CardActionResponse, CardRecord
from cardshare.core.container import DependencyContainer, get_ingest_service, get_repository
from cardshare.core.error_handling import ErrorMapping, handle_exceptions
from cardshare.core.exceptions.base import StorageUnavailableError, ValidationError
from cardshare.core.exceptions.domain import (
    AssetError,
    AssetTooLargeError,
    AssetWriteError,
    CardNotFoundError,
    CorruptStoreError,
    DuplicateIdError,
    MissingAssetError,
    UnsupportedAssetTypeError,
)
from cardshare.domain.asset.models import ImageInput, UploadedImage
from cardshare.domain.card.service import CardSubmission, IngestService
from cardshare.repositories.card_repository import CardRepositoryInterface

logger = logging.getLogger(__name__)
router = APIRouter()

CARD_ERROR_MAPPING: ErrorMapping = {
    ValidationError: (400, "Invalid card submission"),
    MissingAssetError: (400, "Missing image"),
    AssetError: (400, "Image upload rejected"),
    AssetTooLargeError: (413, "Image too large"),
    UnsupportedAssetTypeError: (415, "Unsupported image type"),
    AssetWriteError: (500, "Failed to store image"),
    CardNotFoundError: (404, "Card not found"),
    DuplicateIdError: (409, "Card already exists"),
    StorageUnavailableError: (503, "Storage unavailable"),
    CorruptStoreError: (500, "Card store is corrupt"),
}


async def read_upload(file: Optional[UploadFile]) -> Optional[UploadedImage]:
    """
    Convert a multipart upload into an UploadedImage.

    Bodies declared larger than the limit are not read; the declared size is
    enough for the asset store to reject them.
    """
    if file is None or not file.filename:
        return None

    declared_size = file.size
    if declared_size is not None and declared_size > DependencyContainer.get_settings().max_upload_bytes:
        return UploadedImage(filename=file.filename, content_type=file.content_type, size=declared_size)

    content = await file.read()
    return UploadedImage(
        filename=file.filename,
        content_type=file.content_type,
        content=content,
        size=declared_size if declared_size is not None else len(content),
    )


async def card_submission(
    card_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    back_details: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    image_file: Optional[UploadFile] = File(None),
    image_url: Optional[str] = Form(None),
    back_image_file: Optional[UploadFile] = File(None),
    back_image_url: Optional[str] = Form(None),
) -> CardSubmission:
    """Collect the card form fields into a submission."""
    return CardSubmission(
        name=card_name,
        description=description,
        back_details=back_details,
        price=price,
        front_image=ImageInput(upload=await read_upload(image_file), url=image_url),
        back_image=ImageInput(upload=await read_upload(back_image_file), url=back_image_url),
    )


@router.post("/cards", response_model=CardActionResponse, status_code=201)
@handle_exceptions(CARD_ERROR_MAPPING, log_level=logging.WARNING)
async def add_card(
    submission: CardSubmission = Depends(card_submission),
    ingest_service: IngestService = Depends(get_ingest_service),
) -> CardActionResponse:
    """
    Create a card from a multipart form.

    Each image is given either as a file (image_file, back_image_file) or as a
    URL (image_url, back_image_url).
    """
    card = await ingest_service.add_card(submission)
    return CardActionResponse(message="Card created", card_id=card.id)


@router.put("/cards/{card_id}", response_model=CardActionResponse)
@handle_exceptions(CARD_ERROR_MAPPING, log_level=logging.WARNING)
async def edit_card(
    card_id: str,
    submission: CardSubmission = Depends(card_submission),
    ingest_service: IngestService = Depends(get_ingest_service),
) -> CardActionResponse:
    """Replace a card. Text fields and price are required again; omitted images are kept."""
    card = await ingest_service.edit_card(card_id, submission)
    return CardActionResponse(message="Card updated", card_id=card.id)


@router.delete("/cards/{card_id}", response_model=CardActionResponse)
@handle_exceptions(CARD_ERROR_MAPPING, log_level=logging.WARNING)
async def delete_card(
    card_id: str,
    ingest_service: IngestService = Depends(get_ingest_service),
) -> CardActionResponse:
    """Delete a card. Unknown ids succeed."""
    await ingest_service.delete_card(card_id)
    return CardActionResponse(message="Card deleted", card_id=card_id)


@router.get("/cards", response_model=List[CardRecord])
@handle_exceptions(CARD_ERROR_MAPPING)
async def list_cards(repository: CardRepositoryInterface = Depends(get_repository)):
    cards = await repository.list_cards()
    return [card.to_dict() for card in cards]


@router.get("/cards/{card_id}", response_model=CardRecord)
@handle_exceptions(CARD_ERROR_MAPPING)
async def get_card(card_id: str, repository: CardRepositoryInterface = Depends(get_repository)):
    card = await repository.find(card_id)
    return card.to_dict()


@router.post("/upload", response_model=CardActionResponse)
@handle_exceptions(CARD_ERROR_MAPPING, log_level=logging.WARNING)
async def upload(
    action: str = Form(""),
    card_id: Optional[str] = Form(None),
    submission: CardSubmission = Depends(card_submission),
    ingest_service: IngestService = Depends(get_ingest_service),
) -> CardActionResponse:
    """
    Single form endpoint dispatching on ``action`` (add, edit or delete).

    Args:
        action (str): Operation to perform
        card_id (str, optional): Target card for edit and delete
        submission (CardSubmission): Card form fields
        ingest_service (IngestService): Ingest service instance

    Returns:
        CardActionResponse: Outcome of the action
    """
    logger.info(f"Received action: {action}")

    if action == "add":
        card = await ingest_service.add_card(submission)
        return CardActionResponse(message="Card created", card_id=card.id)
    if action == "edit":
        card = await ingest_service.edit_card(card_id or "", submission)
        return CardActionResponse(message="Card updated", card_id=card.id)
    if action == "delete":
        await ingest_service.delete_card(card_id or "")
        return CardActionResponse(message="Card deleted", card_id=card_id)

    raise ValidationError("Invalid action", "action", {"value": action})

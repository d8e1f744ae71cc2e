import html
import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from cardshare.core.exceptions.base import ValidationError
from cardshare.core.exceptions.domain import MissingAssetError
from cardshare.domain.asset.models import ImageInput, ImageSource
from cardshare.domain.asset.service import AssetStore
from cardshare.repositories.card_repository import CardRepositoryInterface

from .models import Card, generate_card_id

IMAGE_FIELDS = (("front_image", "front"), ("back_image", "back"))


@dataclass
class CardSubmission:
    """Raw form input for adding or editing a card."""

    name: Optional[str] = None
    description: Optional[str] = None
    back_details: Optional[str] = None
    price: Union[str, float, int, None] = None
    front_image: ImageInput = field(default_factory=ImageInput)
    back_image: ImageInput = field(default_factory=ImageInput)


def sanitize_text(value: Optional[str]) -> str:
    """Strip and escape text so it carries no markup semantics."""
    return html.escape((value or "").strip(), quote=True)


def parse_price(value: Union[str, float, int, None]) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError("Price is required", "price")
    try:
        price = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError("Price must be a number", "price", {"value": str(value)})
    if not math.isfinite(price) or price <= 0:
        raise ValidationError("Price must be greater than 0", "price", {"value": price})
    return price


class IngestService:
    """
    Turns card submissions into stored cards.

    Text fields and price are checked before any image is touched, and both
    images are validated before either is written, so a rejected submission
    leaves neither files nor a partial card behind. The repository write is
    the only commit point.
    """

    def __init__(self, repository: CardRepositoryInterface, asset_store: AssetStore):
        self.repository = repository
        self.asset_store = asset_store
        self.logger = logging.getLogger(__name__)

    def validate_fields(self, submission: CardSubmission) -> Tuple[str, str, str, float]:
        """
        Sanitize and validate the text fields and price.

        Returns:
            Tuple[str, str, str, float]: name, description, back details and price.

        Raises:
            ValidationError: Naming the first offending field.
        """
        values = {}
        for name in ("name", "description", "back_details"):
            values[name] = sanitize_text(getattr(submission, name))
            if not values[name]:
                self.logger.warning(f"Missing or invalid form field: {name}")
                raise ValidationError(f"{name} is required", name)

        price = parse_price(submission.price)
        return values["name"], values["description"], values["back_details"], price

    async def add_card(self, submission: CardSubmission) -> Card:
        """
        Validate a submission, store its images and append the new card.

        Raises:
            ValidationError: If a field is empty, the price is not positive or a URL is invalid.
            MissingAssetError: If an image has neither an upload nor a URL.
            AssetError: If an upload is rejected.
            CorruptStoreError: If the card document cannot be parsed; no upload is written.
        """
        name, description, back_details, price = self.validate_fields(submission)

        sources = {}
        for field_name, _ in IMAGE_FIELDS:
            source = getattr(submission, field_name).source()
            if source is None:
                self.logger.warning(f"No {field_name} provided")
                raise MissingAssetError(field_name)
            sources[field_name] = source

        # A broken store must fail before any upload is written
        await self.repository.check_writable()
        paths = await self._store_images(sources)

        card = Card(
            id=generate_card_id(),
            name=name,
            image=paths["front_image"],
            back_image=paths["back_image"],
            description=description,
            back_details=back_details,
            price=price,
        )
        return await self.repository.add(card)

    async def edit_card(self, card_id: str, submission: CardSubmission) -> Card:
        """
        Replace every field of an existing card.

        Text fields and price must be resupplied. An image field with neither an
        upload nor a URL keeps the currently stored reference.

        Raises:
            CardNotFoundError: If no card has this id.
        """
        if not card_id:
            raise ValidationError("No card ID provided", "card_id")

        name, description, back_details, price = self.validate_fields(submission)
        existing = await self.repository.find(card_id)
        await self.repository.check_writable()

        sources = {}
        for field_name, _ in IMAGE_FIELDS:
            source = getattr(submission, field_name).source()
            if source is not None:
                sources[field_name] = source

        paths = await self._store_images(sources)

        card = Card(
            id=card_id,
            name=name,
            image=paths.get("front_image", existing.image),
            back_image=paths.get("back_image", existing.back_image),
            description=description,
            back_details=back_details,
            price=price,
        )
        return await self.repository.edit(card_id, card)

    async def delete_card(self, card_id: str) -> bool:
        if not card_id:
            self.logger.warning("No card_id provided for delete")
            raise ValidationError("No card ID provided", "card_id")
        return await self.repository.delete(card_id)

    async def _store_images(self, sources: dict[str, ImageSource]) -> dict[str, str]:
        # Validate everything first so a bad back image cannot orphan a stored front image
        for field_name, source in sources.items():
            self.asset_store.validate(source, field_name)

        paths = {}
        for field_name, prefix in IMAGE_FIELDS:
            if field_name in sources:
                ref = await self.asset_store.store(sources[field_name], prefix, field_name)
                paths[field_name] = ref.path
        return paths

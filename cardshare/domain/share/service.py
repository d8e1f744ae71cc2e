import logging
from typing import Iterable
from urllib.parse import quote_plus

from cardshare.domain.asset.models import is_absolute_url
from cardshare.repositories.card_repository import CardRepositoryInterface

from .models import PublicCardView

logger = logging.getLogger(__name__)


class ShareResolver:
    """Builds the public, fully-qualified view of a stored card. Never writes."""

    def __init__(self, repository: CardRepositoryInterface, url_schemes: Iterable[str] = ("http", "https")):
        self.repository = repository
        self.url_schemes = tuple(url_schemes)

    def absolute_url(self, reference: str, base_url: str) -> str:
        if is_absolute_url(reference, self.url_schemes):
            return reference
        return f"{base_url.rstrip('/')}/{reference.lstrip('/')}"

    @staticmethod
    def share_link(card_id: str, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/share?view={quote_plus(card_id)}"

    async def resolve(self, card_id: str, base_url: str) -> PublicCardView:
        """
        Resolve a card into its public view.

        Args:
            card_id (str): Card identifier
            base_url (str): Scheme and host the view is served from

        Returns:
            PublicCardView: View with absolute image URLs and a share link

        Raises:
            CardNotFoundError: If no card has this id
        """
        card = await self.repository.find(card_id)
        view = PublicCardView(
            id=card.id,
            name=card.name,
            description=card.description,
            back_details=card.back_details,
            price=card.price,
            share_link=self.share_link(card.id, base_url),
            images=[self.absolute_url(card.image, base_url), self.absolute_url(card.back_image, base_url)],
            upload_time=card.upload_time,
        )
        logger.info(f"Share link generated: {view.share_link}")
        return view

from .domain.asset.service import AssetStore
from .domain.card.models import Card
from .domain.card.service import CardSubmission, IngestService
from .domain.share.service import ShareResolver
from .repositories.card_repository import CardRepositoryInterface, JSONCardRepository

__all__ = [
    'AssetStore',
    'Card',
    'CardRepositoryInterface',
    'CardSubmission',
    'IngestService',
    'JSONCardRepository',
    'ShareResolver',
]

import logging
from typing import Optional

from cardshare.core.config import Settings, settings
from cardshare.domain.asset.service import AssetStore
from cardshare.domain.card.service import IngestService
from cardshare.domain.share.service import ShareResolver
from cardshare.repositories.card_repository import CardRepositoryInterface, JSONCardRepository

logger = logging.getLogger(__name__)


class DependencyContainer:
    """Process-wide holder of the card services; one repository per document."""

    _settings: Settings = settings
    _repository: Optional[CardRepositoryInterface] = None
    _asset_store: Optional[AssetStore] = None
    _ingest_service: Optional[IngestService] = None
    _share_resolver: Optional[ShareResolver] = None

    @classmethod
    def configure(cls, new_settings: Settings) -> None:
        """Swap settings and drop every built instance."""
        cls._settings = new_settings
        cls._repository = None
        cls._asset_store = None
        cls._ingest_service = None
        cls._share_resolver = None

    @classmethod
    def get_settings(cls) -> Settings:
        return cls._settings

    @classmethod
    def get_repository(cls) -> CardRepositoryInterface:
        if cls._repository is None:
            cls._repository = JSONCardRepository(
                str(cls._settings.cards_path), lock_timeout=cls._settings.lock_timeout
            )
            logger.info(f"Created card repository for {cls._settings.cards_path}")
        return cls._repository

    @classmethod
    def get_asset_store(cls) -> AssetStore:
        if cls._asset_store is None:
            cls._asset_store = AssetStore(
                upload_dir=cls._settings.upload_dir,
                url_prefix=cls._settings.upload_url_prefix,
                max_bytes=cls._settings.max_upload_bytes,
                allowed_content_types=cls._settings.allowed_content_types,
                allowed_url_schemes=cls._settings.allowed_url_schemes,
            )
            logger.info(f"Created asset store for {cls._settings.upload_dir}")
        return cls._asset_store

    @classmethod
    def get_ingest_service(cls) -> IngestService:
        if cls._ingest_service is None:
            cls._ingest_service = IngestService(cls.get_repository(), cls.get_asset_store())
        return cls._ingest_service

    @classmethod
    def get_share_resolver(cls) -> ShareResolver:
        if cls._share_resolver is None:
            cls._share_resolver = ShareResolver(cls.get_repository(), cls._settings.allowed_url_schemes)
        return cls._share_resolver


# FastAPI dependencies
async def get_repository() -> CardRepositoryInterface:
    """Dependency for getting the card repository."""
    return DependencyContainer.get_repository()


async def get_asset_store() -> AssetStore:
    """Dependency for getting the asset store."""
    return DependencyContainer.get_asset_store()


async def get_ingest_service() -> IngestService:
    """Dependency for getting the ingest service."""
    return DependencyContainer.get_ingest_service()


async def get_share_resolver() -> ShareResolver:
    """Dependency for getting the share resolver."""
    return DependencyContainer.get_share_resolver()


# Application lifecycle management
async def init_dependencies():
    """Initialize application dependencies."""
    try:
        logger.info("Initializing application dependencies...")
        DependencyContainer.get_ingest_service()
        DependencyContainer.get_share_resolver()
        logger.info("Dependencies initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize dependencies: {e}")
        raise


async def cleanup_dependencies():
    """Cleanup application dependencies."""
    logger.info("Cleaning up application dependencies...")
    DependencyContainer.configure(DependencyContainer.get_settings())
    logger.info("Dependencies cleaned up successfully")

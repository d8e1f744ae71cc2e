from dataclasses import asdict, dataclass

from fastapi.responses import JSONResponse

from cardshare.core.exceptions.base import AppError
from cardshare.domain.asset.service import AssetStore
from cardshare.repositories.card_repository import CardRepositoryInterface


@dataclass
class ServiceHealth:
    card_store: bool
    asset_store: bool


class HealthCheck:
    """Health check for the card document and the upload directory"""

    def __init__(self, repository: CardRepositoryInterface, asset_store: AssetStore):
        self.repository = repository
        self.asset_store = asset_store

    async def _check_card_store(self) -> bool:
        """The document is readable and parses."""
        try:
            await self.repository.load()
            return True
        except AppError:
            return False

    def _check_asset_store(self) -> bool:
        return self.asset_store.is_available()

    async def check_services(self) -> ServiceHealth:
        return ServiceHealth(card_store=await self._check_card_store(), asset_store=self._check_asset_store())

    async def get_health(self) -> JSONResponse:
        health_check = asdict(await self.check_services())
        status = "healthy" if all(health_check.values()) else "unhealthy"
        return JSONResponse(
            content={"status": status, "services": health_check}, status_code=200 if status == "healthy" else 503
        )

from fastapi import APIRouter, Depends

from cardshare.core.container import get_asset_store, get_repository
from cardshare.domain.asset.service import AssetStore
from cardshare.monitoring.health import HealthCheck
from cardshare.repositories.card_repository import CardRepositoryInterface

router = APIRouter()


@router.get("/health")
async def health_check(
    repository: CardRepositoryInterface = Depends(get_repository),
    asset_store: AssetStore = Depends(get_asset_store),
):
    """
    Perform system health check.

    Returns:
        JSONResponse: 200 when the card document and upload directory are usable, 503 otherwise
    """
    return await HealthCheck(repository, asset_store).get_health()

import html
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from cardshare.api.models.models import ShareCard, ShareResponse
from cardshare.core.container import DependencyContainer, get_share_resolver
from cardshare.core.error_handling import handle_exceptions
from cardshare.core.exceptions.base import StorageUnavailableError, ValidationError
from cardshare.core.exceptions.domain import CardNotFoundError, CorruptStoreError
from cardshare.domain.share.service import ShareResolver

logger = logging.getLogger(__name__)
router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))
# Stored text is already escaped; undo it so autoescaping applies exactly once
templates.env.filters["unescape"] = html.unescape


def request_base_url(request: Request) -> str:
    configured = DependencyContainer.get_settings().public_base_url
    return (configured or str(request.base_url)).rstrip("/")


@router.get("/share")
@handle_exceptions(
    {
        ValidationError: (400, "No card ID provided"),
        CardNotFoundError: (404, "Card not found"),
        StorageUnavailableError: (503, "Storage unavailable"),
        CorruptStoreError: (500, "Card store is corrupt"),
    },
    log_level=logging.WARNING,
)
async def share(
    request: Request,
    id: Optional[str] = Query(None, description="Card id; returns the share view as JSON"),
    view: Optional[str] = Query(None, description="Card id; renders the share page"),
    resolver: ShareResolver = Depends(get_share_resolver),
):
    """
    Share a card.

    ``?id=`` returns the JSON share view, ``?view=`` renders the public page.
    """
    base_url = request_base_url(request)

    if view:
        try:
            card_view = await resolver.resolve(view, base_url)
        except CardNotFoundError:
            logger.warning(f"Failed to find card ID: {view}")
            return HTMLResponse("Card not found.", status_code=404)
        return templates.TemplateResponse(
            request,
            "share.html",
            {"view": card_view, "shared_on": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S %Z")},
        )

    if id:
        card_view = await resolver.resolve(id, base_url)
        data = card_view.to_dict()
        return ShareResponse(share_link=data["shareLink"], card=ShareCard(**data["card"]))

    raise ValidationError("No card ID provided", "id")

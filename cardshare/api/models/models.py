from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CardRecord(BaseModel):
    """A stored card, with the field names used in the card document"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    image: str
    back_image: str = Field(..., alias="backImage")
    description: str
    back_details: str = Field(..., alias="backDetails")
    price: float
    upload_time: str = Field(..., alias="uploadTime")


class CardActionResponse(BaseModel):
    """Response schema for add, edit and delete"""

    success: bool = True
    message: str
    card_id: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"success": True, "message": "Card created", "card_id": "card-5f0c3b1e9d8a4c2b8e7f6a5d4c3b2a19"}
        }
    )


class ShareCard(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str
    back_details: str = Field(..., alias="backDetails")
    price: float
    images: List[str]
    first_image: str = Field(..., alias="firstImage")
    upload_time: str = Field(..., alias="uploadTime")


class ShareResponse(BaseModel):
    """Response schema for the share view"""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    share_link: str = Field(..., alias="shareLink")
    card: ShareCard

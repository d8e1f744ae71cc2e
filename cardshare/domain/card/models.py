import math
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from cardshare.core.exceptions.base import ValidationError

# Persisted field order; external tools read the document directly
FIELD_NAMES = ("id", "name", "image", "backImage", "description", "backDetails", "price", "uploadTime")


def generate_card_id() -> str:
    return f"card-{uuid.uuid4().hex}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class Card:
    """Domain model representing a published card."""

    id: str
    name: str
    image: str
    back_image: str
    description: str
    back_details: str
    price: float
    upload_time: str = field(default_factory=now_iso)

    def __post_init__(self):
        """Validate card data after initialization."""
        if not isinstance(self.id, str) or not self.id:
            raise ValidationError("Card id is required", "id")

        for name in ("name", "description", "back_details"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{name} is required", name)

        for name in ("image", "back_image"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{name} is required", name)

        if isinstance(self.price, bool) or not isinstance(self.price, (int, float)):
            raise ValidationError("Price must be a number", "price")
        self.price = float(self.price)
        if not math.isfinite(self.price) or self.price <= 0:
            raise ValidationError("Price must be greater than 0", "price", {"value": self.price})

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "id": data["id"],
            "name": data["name"],
            "image": data["image"],
            "backImage": data["back_image"],
            "description": data["description"],
            "backDetails": data["back_details"],
            "price": data["price"],
            "uploadTime": data["upload_time"],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        """
        Build a card from its persisted JSON shape.

        Raises:
            ValidationError: If a field is missing or invalid.
        """
        if not isinstance(data, dict):
            raise ValidationError("Card record must be an object", "card")

        missing = [name for name in FIELD_NAMES if name not in data]
        if missing:
            raise ValidationError(f"Card record is missing {', '.join(missing)}", missing[0])

        return cls(
            id=data["id"],
            name=data["name"],
            image=data["image"],
            back_image=data["backImage"],
            description=data["description"],
            back_details=data["backDetails"],
            price=data["price"],
            upload_time=data["uploadTime"],
        )

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class PublicCardView:
    """Publicly renderable expansion of a card."""

    id: str
    name: str
    description: str
    back_details: str
    price: float
    share_link: str
    images: List[str] = field(default_factory=list)
    upload_time: str = ""

    @property
    def first_image(self) -> str:
        return self.images[0] if self.images else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shareLink": self.share_link,
            "card": {
                "id": self.id,
                "name": self.name,
                "description": self.description,
                "backDetails": self.back_details,
                "price": self.price,
                "images": list(self.images),
                "firstImage": self.first_image,
                "uploadTime": self.upload_time,
            },
        }

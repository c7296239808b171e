# ecostore_admin/models/product.py
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Optional, Dict, Any, List


class Category(str, Enum):
    STATIONERY = "Stationery"
    GIFT_SETS = "Gift Sets"
    PAPER = "Paper"
    CHITRAYAN = "Chitrayan"

    @classmethod
    def values(cls) -> List[str]:
        return [c.value for c in cls]


# draft attribute -> backend (wire) key
WIRE_NAMES: Dict[str, str] = {
    "title": "title",
    "description": "description",
    "original_price": "originalPrice",
    "discount_percent": "discountPercent",
    "stock": "stock",
    "category": "category",
    "tags": "tags",
    "is_top_pick": "isTopPick",
    "is_trending": "isTrending",
}

FLAG_FIELDS = ("is_top_pick", "is_trending")
NUMERIC_FIELDS = ("original_price", "discount_percent", "stock")


def to_bool(value: Any) -> bool:
    # form posts may send flags as strings
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "t", "on")
    if isinstance(value, (int, float)):
        return bool(value)
    return bool(value)


def normalize_tags(raw: Any) -> List[str]:
    """
    Split comma separated tag text into unique, trimmed, non-empty tags.
    First occurrence wins, so the admin's ordering is kept.
    """
    if raw is None:
        return []
    parts = raw if isinstance(raw, (list, tuple)) else str(raw).split(",")
    tags: List[str] = []
    for p in parts:
        t = str(p).strip()
        if t and t not in tags:
            tags.append(t)
    return tags


def _number_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _whole(value: float):
    return int(value) if float(value).is_integer() else value


@dataclass
class ProductDraft:
    """
    In-progress product form. Values are kept as the admin typed them
    (strings from inputs, or numbers from JSON clients); they are only coerced
    when the wire payload is built.
    """
    title: Any = ""
    description: Any = ""
    original_price: Any = ""
    discount_percent: Any = 0
    stock: Any = ""
    category: Any = ""
    tags: str = ""
    is_top_pick: bool = False
    is_trending: bool = False

    @classmethod
    def field_names(cls) -> List[str]:
        return list(WIRE_NAMES.keys())

    @classmethod
    def from_record(cls, record: "ProductRecord") -> "ProductDraft":
        return cls(
            title=record.title,
            description=record.description,
            original_price=record.original_price,
            discount_percent=record.discount_percent,
            stock=record.stock,
            category=record.category,
            tags=", ".join(record.tags),
            is_top_pick=record.is_top_pick,
            is_trending=record.is_trending,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def comparable(self) -> Dict[str, Any]:
        """Typed view of the draft, so "5" typed into a form equals a stored 5."""
        out: Dict[str, Any] = {}
        for name, value in asdict(self).items():
            if name in NUMERIC_FIELDS:
                n = _number_or_none(value)
                out[name] = n if n is not None else str(value or "").strip()
            elif name in FLAG_FIELDS:
                out[name] = to_bool(value)
            elif name == "tags":
                out[name] = normalize_tags(value)
            else:
                out[name] = str(value.value if isinstance(value, Enum) else (value or "")).strip()
        return out

    def to_payload(self) -> Dict[str, Any]:
        """Coerced camelCase body for create/update calls."""
        price = _number_or_none(self.original_price)
        discount = _number_or_none(self.discount_percent)
        stock = _number_or_none(self.stock)
        return {
            "title": str(self.title or "").strip(),
            "description": str(self.description or "").strip(),
            "originalPrice": price if price is not None else 0.0,
            "discountPercent": _whole(discount) if discount is not None else 0,
            "stock": int(stock) if stock is not None else 0,
            "category": str(self.category or ""),
            "tags": normalize_tags(self.tags),
            "isTopPick": to_bool(self.is_top_pick),
            "isTrending": to_bool(self.is_trending),
        }


@dataclass
class ProductRecord:
    """
    Product as returned by the storefront backend. The backend is loose about
    types, so these helpers convert to proper ones.
    """
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    original_price: float = 0.0
    discount_percent: float = 0.0
    stock: int = 0
    category: str = ""
    tags: List[str] = field(default_factory=list)
    is_top_pick: bool = False
    is_trending: bool = False
    images: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProductRecord":
        if not isinstance(d, dict):
            raise ValueError(f"Expected a product object, got {type(d).__name__}")
        # some endpoints wrap the document as {"product": {...}}
        if isinstance(d.get("product"), dict):
            d = d["product"]

        id_val = d.get("_id") or d.get("id") or None

        price = _number_or_none(d.get("originalPrice", d.get("price")))
        discount = _number_or_none(d.get("discountPercent"))
        stock = _number_or_none(d.get("stock"))

        images = d.get("images") or []
        if not isinstance(images, list):
            images = [images]

        return cls(
            id=str(id_val) if id_val is not None else None,
            title=str(d.get("title") or ""),
            description=str(d.get("description") or ""),
            original_price=price if price is not None else 0.0,
            discount_percent=discount if discount is not None else 0.0,
            stock=int(stock) if stock is not None else 0,
            category=str(d.get("category") or ""),
            tags=normalize_tags(d.get("tags")),
            is_top_pick=to_bool(d.get("isTopPick", False)),
            is_trending=to_bool(d.get("isTrending", False)),
            images=[str(i) for i in images if i],
            created_at=d.get("createdAt") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

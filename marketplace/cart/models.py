"""Cart models and the snapshot codec."""
import json
import math
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Union

from marketplace.errors import HydrationDecodeError, LineItemNotFoundError

Price = Union[int, float]


def _is_number(value) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class NewLineItem:
    """Product as supplied by the catalog, before it gets a quantity."""
    id: str
    title: str
    image_url: str
    price: Price

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("id must be a non-empty string")
        if not self.title or not isinstance(self.title, str):
            raise ValueError("title must be a non-empty string")
        if not isinstance(self.image_url, str):
            raise ValueError("image_url must be a string")
        if not _is_number(self.price) or self.price < 0:
            raise ValueError("price must be a non-negative number")


@dataclass(frozen=True)
class LineItem:
    """Single product entry in the cart."""
    id: str
    title: str
    image_url: str
    price: Price
    quantity: int = 1

    @classmethod
    def from_new(cls, item: NewLineItem) -> "LineItem":
        return cls(id=item.id, title=item.title, image_url=item.image_url, price=item.price)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """Create from dictionary, rejecting anything that breaks cart invariants."""
        if not isinstance(data, dict):
            raise HydrationDecodeError(f"Line item must be an object, got {type(data).__name__}")
        try:
            item_id = data["id"]
            title = data["title"]
            image_url = data.get("image_url", "")
            price = data["price"]
            quantity = data["quantity"]
        except KeyError as e:
            raise HydrationDecodeError(f"Line item is missing field {e}") from e

        if not isinstance(item_id, str) or not item_id:
            raise HydrationDecodeError("Line item id must be a non-empty string")
        if not isinstance(title, str) or not isinstance(image_url, str):
            raise HydrationDecodeError(f"Line item {item_id} has non-string display fields")
        if not _is_number(price):
            raise HydrationDecodeError(f"Line item {item_id} has a non-numeric price")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise HydrationDecodeError(f"Line item {item_id} has invalid quantity {quantity!r}")

        return cls(id=item_id, title=title, image_url=image_url, price=price, quantity=quantity)


@dataclass(frozen=True)
class Cart:
    """
    Ordered, id-keyed collection of line items.

    Carts are immutable: every transition returns a new Cart, so a
    snapshot handed to a listener or queued for persistence never changes
    underneath its holder.
    """
    items: Tuple[LineItem, ...] = field(default_factory=tuple)

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.quantity for item in self.items)

    def index_of(self, item_id: str) -> Optional[int]:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        return None

    def get(self, item_id: str) -> Optional[LineItem]:
        index = self.index_of(item_id)
        return None if index is None else self.items[index]

    def add(self, new_item: NewLineItem) -> "Cart":
        """Append the product with quantity 1, or bump the existing entry in place."""
        index = self.index_of(new_item.id)
        if index is None:
            return Cart(self.items + (LineItem.from_new(new_item),))
        return self._with_quantity(index, self.items[index].quantity + 1)

    def increment(self, item_id: str) -> "Cart":
        index = self.index_of(item_id)
        if index is None:
            raise LineItemNotFoundError(item_id)
        return self._with_quantity(index, self.items[index].quantity + 1)

    def decrement(self, item_id: str) -> "Cart":
        """Lower the quantity by one, dropping the entry when it reaches zero."""
        index = self.index_of(item_id)
        if index is None:
            raise LineItemNotFoundError(item_id)
        return self._with_quantity(index, self.items[index].quantity - 1)

    def _with_quantity(self, index: int, quantity: int) -> "Cart":
        if quantity <= 0:
            return Cart(self.items[:index] + self.items[index + 1:])
        updated = replace(self.items[index], quantity=quantity)
        return Cart(self.items[:index] + (updated,) + self.items[index + 1:])

    def to_list(self) -> list:
        return [item.to_dict() for item in self.items]

    @classmethod
    def from_list(cls, data: list) -> "Cart":
        if not isinstance(data, list):
            raise HydrationDecodeError(f"Cart snapshot must be a list, got {type(data).__name__}")
        items = tuple(LineItem.from_dict(entry) for entry in data)
        seen = set()
        for item in items:
            if item.id in seen:
                raise HydrationDecodeError(f"Duplicate line item id {item.id}")
            seen.add(item.id)
        return cls(items)


def encode_snapshot(cart: Cart) -> str:
    """Serialize the full ordered cart for storage."""
    return json.dumps(cart.to_list())


def decode_snapshot(raw: str) -> Cart:
    """Inverse of encode_snapshot; raises HydrationDecodeError on bad input."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise HydrationDecodeError(f"Cart snapshot is not valid JSON: {e}") from e
    return Cart.from_list(data)

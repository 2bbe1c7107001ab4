"""
Tests for cart models and the snapshot codec
"""

import json

import pytest

from marketplace.cart import Cart, LineItem, NewLineItem, decode_snapshot, encode_snapshot
from marketplace.errors import HydrationDecodeError, LineItemNotFoundError


class TestNewLineItem:
    """Tests for NewLineItem validation."""

    def test_create_new_line_item(self, shirt):
        assert shirt.id == "p1"
        assert shirt.price == 10
        assert not hasattr(shirt, "quantity")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"id": "", "title": "Shirt", "image_url": "", "price": 10},
            {"id": "p1", "title": "", "image_url": "", "price": 10},
            {"id": "p1", "title": "Shirt", "image_url": None, "price": 10},
            {"id": "p1", "title": "Shirt", "image_url": "", "price": -1},
            {"id": "p1", "title": "Shirt", "image_url": "", "price": "10"},
            {"id": "p1", "title": "Shirt", "image_url": "", "price": True},
            {"id": "p1", "title": "Shirt", "image_url": "", "price": float("nan")},
            {"id": "p1", "title": "Shirt", "image_url": "", "price": float("inf")},
        ],
    )
    def test_rejects_invalid_fields(self, kwargs):
        with pytest.raises(ValueError):
            NewLineItem(**kwargs)


class TestLineItem:
    """Tests for LineItem serialization."""

    def test_from_new_starts_at_one(self, shirt):
        item = LineItem.from_new(shirt)

        assert item.quantity == 1
        assert item.title == "Shirt"
        assert item.image_url == "https://cdn.example.com/shirt.png"

    def test_to_dict(self, shirt):
        data = LineItem.from_new(shirt).to_dict()

        assert data == {
            "id": "p1",
            "title": "Shirt",
            "image_url": "https://cdn.example.com/shirt.png",
            "price": 10,
            "quantity": 1,
        }

    def test_from_dict_defaults_missing_image(self):
        item = LineItem.from_dict({"id": "p1", "title": "Shirt", "price": 10, "quantity": 3})

        assert item.image_url == ""
        assert item.quantity == 3

    def test_price_passes_through_untouched(self):
        item = LineItem.from_dict({"id": "p1", "title": "Shirt", "price": 19.99, "quantity": 1})

        assert item.price == 19.99


class TestCart:
    """Tests for Cart transitions."""

    def test_empty_cart(self):
        cart = Cart()

        assert cart.items == ()
        assert cart.total_items == 0

    def test_add_appends_new_item(self, shirt, mug):
        cart = Cart().add(shirt).add(mug)

        assert [item.id for item in cart.items] == ["p1", "p2"]
        assert all(item.quantity == 1 for item in cart.items)

    def test_add_existing_keeps_position(self, shirt, mug):
        cart = Cart().add(shirt).add(mug).add(shirt)

        assert [(item.id, item.quantity) for item in cart.items] == [("p1", 2), ("p2", 1)]
        assert cart.total_items == 3

    def test_transitions_return_new_cart(self, shirt):
        before = Cart().add(shirt)
        after = before.increment("p1")

        assert before.items[0].quantity == 1
        assert after.items[0].quantity == 2

    def test_decrement_removes_at_zero(self, shirt, mug):
        cart = Cart().add(shirt).add(mug).decrement("p1")

        assert [item.id for item in cart.items] == ["p2"]

    def test_decrement_keeps_position_above_zero(self, shirt, mug):
        cart = Cart().add(shirt).add(shirt).add(mug).decrement("p1")

        assert [(item.id, item.quantity) for item in cart.items] == [("p1", 1), ("p2", 1)]

    @pytest.mark.parametrize("operation", ["increment", "decrement"])
    def test_missing_item_raises(self, shirt, operation):
        cart = Cart().add(shirt)

        with pytest.raises(LineItemNotFoundError) as exc_info:
            getattr(cart, operation)("missing")

        assert exc_info.value.item_id == "missing"
        assert exc_info.value.code == "NOT_FOUND"

    def test_get(self, shirt):
        cart = Cart().add(shirt)

        assert cart.get("p1").title == "Shirt"
        assert cart.get("p2") is None


class TestSnapshotCodec:
    """Tests for encode_snapshot / decode_snapshot."""

    def test_round_trip_preserves_order_and_quantities(self, shirt, mug):
        cart = Cart().add(mug).add(shirt).add(shirt)

        restored = decode_snapshot(encode_snapshot(cart))

        assert restored == cart

    def test_encode_is_json_list(self, shirt):
        data = json.loads(encode_snapshot(Cart().add(shirt)))

        assert isinstance(data, list)
        assert data[0]["quantity"] == 1

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"id": "p1"}',
            '["p1"]',
            '[{"id": "p1", "title": "Shirt", "price": 10}]',
            '[{"id": "p1", "title": "Shirt", "price": 10, "quantity": 0}]',
            '[{"id": "p1", "title": "Shirt", "price": 10, "quantity": 1.5}]',
            '[{"id": "p1", "title": "Shirt", "price": "10", "quantity": 1}]',
            '[{"id": "", "title": "Shirt", "price": 10, "quantity": 1}]',
            '[{"id": "p1", "title": "Shirt", "price": NaN, "quantity": 1}]',
            '[{"id": "p1", "title": "Shirt", "price": Infinity, "quantity": 1}]',
            '[{"id": "p1", "title": "A", "price": 1, "quantity": 1},'
            ' {"id": "p1", "title": "B", "price": 1, "quantity": 1}]',
        ],
    )
    def test_decode_rejects_malformed(self, raw):
        with pytest.raises(HydrationDecodeError):
            decode_snapshot(raw)

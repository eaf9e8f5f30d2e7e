# Overview: Service-layer operations for inventory; listing maintenance and stock reservation.

"""
Inventory Service

MULTI-TENANT: an InventoryItem belongs to exactly one Business. Every
maintenance call takes the owner's business_id and treats an item owned by
anyone else as absent (NotFoundError), never as forbidden.

PRICES: gen_price_cents and price_cents feed the pricing resolver after the
personalized price ledger; either may be None (unpriced).

DELETE: an item still referenced by a cart, a draft or a committed Sale or
Purchase line cannot be deleted (ConflictError). Its personalized prices go
with it.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, InsufficientStockError, NotFoundError
from ..extensions import db
from ..models import (
    CartItem, DraftOrderLine, InventoryItem, PersonalizedPrice, PurchaseLine, SaleLine,
)


INVENTORY_MUTABLE_FIELDS = {
    "name", "description", "qty", "unit", "price_cents", "cgst", "sgst", "gst", "image_url",
}


def apply_inventory_patch(item: InventoryItem, patch: dict) -> None:
    for k, v in patch.items():
        if k not in INVENTORY_MUTABLE_FIELDS:
            continue
        setattr(item, k, v)


def list_inventory(business_id: str) -> list[InventoryItem]:
    return (
        db.session.query(InventoryItem)
        .filter(InventoryItem.business_id == business_id)
        .order_by(InventoryItem.name.asc(), InventoryItem.id.asc())
        .all()
    )


def get_owned_item(business_id: str, item_id: str) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None or item.business_id != business_id:
        raise NotFoundError("Product not found", details={"product_id": item_id})
    return item


def add_item(business_id: str, name: str, qty: int = 0, gen_price_cents: int | None = None, **patch) -> InventoryItem:
    """List a new product for business_id."""
    item = InventoryItem(business_id=business_id, name=name, qty=qty, gen_price_cents=gen_price_cents)
    apply_inventory_patch(item, patch)
    db.session.add(item)
    db.session.commit()
    current_app.logger.info("Inventory item %s added by %s", item.id, business_id)
    return item


def update_item(business_id: str, item_id: str, patch: dict) -> InventoryItem:
    """Set stock, list price or descriptive fields. Absent keys are left alone."""
    item = get_owned_item(business_id, item_id)
    apply_inventory_patch(item, patch)
    db.session.commit()
    current_app.logger.info(
        "Inventory item %s updated by %s: %s", item_id, business_id, ", ".join(sorted(patch))
    )
    return item


def set_generalized_price(business_id: str, item_id: str, gen_price_cents: int | None) -> InventoryItem:
    """Default price for buyers without a negotiated one. None unsets it."""
    item = get_owned_item(business_id, item_id)
    item.gen_price_cents = gen_price_cents
    db.session.commit()
    current_app.logger.info("Generalized price of %s set to %s by %s", item_id, gen_price_cents, business_id)
    return item


def _referenced_by(item_id: str) -> list[str]:
    references = []
    for label, model in (
        ("carts", CartItem),
        ("draft orders", DraftOrderLine),
        ("sales", SaleLine),
        ("purchases", PurchaseLine),
    ):
        if db.session.query(model.id).filter(model.product_id == item_id).first() is not None:
            references.append(label)
    return references


def delete_item(business_id: str, item_id: str) -> None:
    item = get_owned_item(business_id, item_id)

    references = _referenced_by(item_id)
    if references:
        raise ConflictError(
            "Product is still referenced and cannot be deleted",
            details={"product_id": item_id, "referenced_by": references},
        )

    db.session.query(PersonalizedPrice).filter(
        PersonalizedPrice.product_id == item_id
    ).delete(synchronize_session=False)
    db.session.delete(item)
    db.session.commit()
    current_app.logger.info("Inventory item %s deleted by %s", item_id, business_id)


def reserve_stock(lines: list[dict], *, seller_id: str) -> None:
    """
    Decrement stock for every line inside the caller's transaction.

    Each decrement is a single conditional UPDATE (qty >= requested), so two
    concurrent confirmations can never drive qty below zero. Lines are
    {product_id, quantity}. Raises InsufficientStockError listing every short
    product; the caller's transaction rolls back any decrement already made.
    """
    if not current_app.config.get("ENFORCE_STOCK", True):
        return

    requested: dict[str, int] = {}
    for line in lines:
        requested[line["product_id"]] = requested.get(line["product_id"], 0) + line["quantity"]

    short = []
    # Sorted so concurrent reservations lock rows in the same order
    for product_id in sorted(requested):
        quantity = requested[product_id]
        updated = (
            db.session.query(InventoryItem)
            .filter(
                InventoryItem.id == product_id,
                InventoryItem.business_id == seller_id,
                InventoryItem.qty >= quantity,
            )
            .update({InventoryItem.qty: InventoryItem.qty - quantity}, synchronize_session="fetch")
        )
        if updated:
            continue

        item = db.session.query(InventoryItem).filter_by(id=product_id, business_id=seller_id).first()
        if item is None:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        short.append({
            "product_id": product_id,
            "requested_quantity": quantity,
            "on_hand": item.qty,
        })

    if short:
        raise InsufficientStockError("Insufficient stock to confirm order", details={"items": short})

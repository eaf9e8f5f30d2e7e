# Overview: Catalog pricing resolver and personalized price ledger upserts.

"""
Pricing Service - effective unit price per (seller, customer, product)

WHY: A seller negotiates rates with the counterparties it trades with. The
latest negotiated rate is remembered in the personalized price ledger and
wins over the product's default prices on every later catalog view, cart add
and seller-drafted order for that customer.

PRECEDENCE (first one that is set wins):
1. PersonalizedPrice for (business, customer shadow, product)
2. InventoryItem.gen_price_cents (generalized price)
3. InventoryItem.price_cents (list price)
Products with none of the three are unpriced and left out of priced listings.

LEDGER: rows are keyed by (business, customer, product) and upserted in
place with a YYYYMMDD effective date, so same-day edits overwrite and only
the current price survives.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.dialects import postgresql, sqlite

from ..extensions import db
from ..ids import new_id
from ..models import InventoryItem, PersonalizedPrice
from tradelink.time_utils import effective_date_today


def default_price(product: InventoryItem) -> int | None:
    """Generalized price, else list price, else None."""
    if product.gen_price_cents is not None:
        return product.gen_price_cents
    return product.price_cents


def get_personalized_price(business_id: str, customer_id: str, product_id: str) -> PersonalizedPrice | None:
    return (
        db.session.query(PersonalizedPrice)
        .filter_by(business_id=business_id, customer_id=customer_id, product_id=product_id)
        .first()
    )


def resolve_price(business_id: str, customer_id: str | None, product_id: str) -> int | None:
    """
    Effective unit price in cents, or None if the product is unpriced.

    customer_id is the Customer shadow id in business_id's books; None
    (unregistered or first-time buyer) skips the ledger lookup entirely.
    Returns None as well when the product does not belong to business_id.
    """
    product = (
        db.session.query(InventoryItem)
        .filter_by(id=product_id, business_id=business_id)
        .first()
    )
    if product is None:
        return None

    if customer_id is not None:
        row = get_personalized_price(business_id, customer_id, product_id)
        if row is not None:
            return row.price_cents

    return default_price(product)


def resolve_prices(business_id: str, customer_id: str | None, products: list[InventoryItem]) -> dict[str, int]:
    """
    Batched resolve_price for products already loaded.

    Issues a single ledger query for the whole set. Returns
    {product_id: price_cents} for priced products only.
    """
    personalized: dict[str, int] = {}
    product_ids = [p.id for p in products]
    if customer_id is not None and product_ids:
        rows = (
            db.session.query(PersonalizedPrice.product_id, PersonalizedPrice.price_cents)
            .filter(
                PersonalizedPrice.business_id == business_id,
                PersonalizedPrice.customer_id == customer_id,
                PersonalizedPrice.product_id.in_(product_ids),
            )
            .all()
        )
        personalized = {product_id: price for product_id, price in rows}

    prices: dict[str, int] = {}
    for product in products:
        if product.id in personalized:
            prices[product.id] = personalized[product.id]
            continue
        price = default_price(product)
        if price is not None:
            prices[product.id] = price
    return prices


def priced_catalog(business_id: str, customer_id: str | None, search: str | None = None) -> list[dict]:
    """
    business_id's inventory as seen by one customer, unpriced items excluded.

    Each entry is the product's summary plus qty and the resolved price_cents.
    """
    query = db.session.query(InventoryItem).filter(InventoryItem.business_id == business_id)
    if search:
        query = query.filter(InventoryItem.name.ilike(f"%{search.strip()}%"))
    products = query.order_by(InventoryItem.name.asc()).all()

    prices = resolve_prices(business_id, customer_id, products)
    return [
        {**product.summary(), "qty": product.qty, "price_cents": prices[product.id]}
        for product in products
        if product.id in prices
    ]


def _upsert_statement(dialect_name: str, values: dict):
    insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
    stmt = insert(PersonalizedPrice).values(**values)
    excluded = stmt.excluded
    return stmt.on_conflict_do_update(
        index_elements=["business_id", "customer_id", "product_id"],
        set_={
            "price_cents": excluded.price_cents,
            "effective_date": excluded.effective_date,
            "updated_at": func.now(),
        },
        # Re-applying an identical price is a no-op on the stored row
        where=or_(
            PersonalizedPrice.price_cents != excluded.price_cents,
            PersonalizedPrice.effective_date != excluded.effective_date,
        ),
    )


def upsert_personalized_prices(
    business_id: str,
    customer_id: str,
    lines: list[dict],
    effective_date: str | None = None,
) -> int:
    """
    Record the negotiated price of every line for one customer shadow.

    lines: [{product_id, price_cents, ...}]. Runs inside the caller's
    transaction and never commits. Returns the number of lines applied.
    """
    effective_date = effective_date or effective_date_today()
    dialect_name = db.engine.dialect.name

    for line in lines:
        values = {
            "business_id": business_id,
            "customer_id": customer_id,
            "product_id": line["product_id"],
            "price_cents": line["price_cents"],
            "effective_date": effective_date,
        }

        if dialect_name in ("sqlite", "postgresql"):
            db.session.execute(_upsert_statement(dialect_name, {"id": new_id(), **values}))
            continue

        # Other backends: locked read, then write, inside the same transaction
        row = (
            db.session.query(PersonalizedPrice)
            .filter_by(business_id=business_id, customer_id=customer_id, product_id=line["product_id"])
            .with_for_update()
            .first()
        )
        if row is None:
            db.session.add(PersonalizedPrice(**values))
        elif (row.price_cents, row.effective_date) != (line["price_cents"], effective_date):
            row.price_cents = line["price_cents"]
            row.effective_date = effective_date
        db.session.flush()

    current_app.logger.info(
        "Personalized prices upserted business=%s customer=%s lines=%d date=%s",
        business_id, customer_id, len(lines), effective_date,
    )
    return len(lines)

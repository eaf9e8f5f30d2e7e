# Overview: Order confirmation engine; drafts, checkout, commit, rejection and ledgers.

"""
Order Service - draft orders and the Sale/Purchase confirmation engine

WHY: A confirmed trade touches several tables at once (Sale, Purchase, the
source Cart or DraftOrder, the personalized price ledger, the notification,
stock). Readers must never see a Sale without its Purchase, or a consumed
draft without its Sale, so every entry point below that writes more than one
row runs as ONE bounded transaction via concurrency.atomic().

STATES:
    Cart | DraftOrder (uncommitted) -> Sale + Purchase (committed, terminal)
    DraftOrder -> rejected or withdrawn (deleted, notification flipped, terminal)

WRITE SEQUENCE inside a confirmation:
    stock -> Sale -> Purchase -> source delete -> price ledger -> notification

PRECONDITIONS (empty cart, unknown order, not a party, bad input) are checked
before the transaction opens. Inside the transaction the source document is
re-read under lock; if it is already gone the caller lost a race and gets
ConflictError ("already processed").
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    Business,
    Cart,
    Customer,
    DraftOrder,
    DraftOrderLine,
    InventoryItem,
    Notification,
    Purchase,
    PurchaseLine,
    Sale,
    SaleLine,
)
from ..models.notifications import ORDER_CONFIRMED, ORDER_RECEIVED, ORDER_REJECTED, REF_ORDER, REF_PURCHASE
from ..models.orders import (
    BUYER_TYPE_BUSINESS,
    BUYER_TYPE_CUSTOMER,
    DEFAULT_PAYMENT_METHOD,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    STATUS_PAID,
    TRANSACTION_ONLINE,
    TRANSACTION_TYPES,
)
from . import customer_service, inventory_service, notification_service, pricing_service
from .concurrency import atomic, lock_for_update


@dataclass(frozen=True)
class OrderTerms:
    transaction_type: str
    status: str
    payment_method: str | None


# Cart checkout and draft commit do not take caller-supplied terms
ONLINE_PREPAID = OrderTerms(TRANSACTION_ONLINE, STATUS_PAID, DEFAULT_PAYMENT_METHOD)


def _line_total(lines: list[dict]) -> int:
    return sum(line["price_cents"] * line["quantity"] for line in lines)


def _snapshot(items) -> list[dict]:
    """Freeze cart items or draft lines into plain line dicts."""
    return [
        {"product_id": item.product_id, "quantity": item.quantity, "price_cents": item.price_cents}
        for item in items
    ]


def _check_products_owned(seller_id: str, product_ids: list[str]) -> dict[str, InventoryItem]:
    products = (
        db.session.query(InventoryItem)
        .filter(InventoryItem.id.in_(product_ids))
        .all()
    )
    by_id = {p.id: p for p in products}
    missing = [pid for pid in product_ids if pid not in by_id]
    if missing:
        raise NotFoundError("Product not found", details={"product_ids": missing})
    foreign = [pid for pid in product_ids if by_id[pid].business_id != seller_id]
    if foreign:
        raise ValidationError("Products must belong to the seller", details={"product_ids": foreign})
    return by_id


# ---------------------------------------------------------------------------
# Write steps (run inside atomic(); flush, never commit)
# ---------------------------------------------------------------------------

def _record_sale(seller_id: str, buyer_type: str, buyer_id: str, lines: list[dict], terms: OrderTerms) -> Sale:
    sale = Sale(
        seller_id=seller_id,
        buyer_type=buyer_type,
        buyer_id=buyer_id,
        total_amount_cents=_line_total(lines),
        transaction_type=terms.transaction_type,
        status=terms.status,
        payment_method=terms.payment_method,
    )
    for position, line in enumerate(lines):
        sale.lines.append(SaleLine(
            product_id=line["product_id"],
            quantity=line["quantity"],
            price_cents=line["price_cents"],
            line_total_cents=line["price_cents"] * line["quantity"],
            position=position,
        ))
    db.session.add(sale)
    db.session.flush()
    return sale


def _record_purchase(sale: Sale) -> Purchase:
    """Buyer-side mirror of a Business-to-Business sale."""
    purchase = Purchase(
        sale_id=sale.id,
        buyer_id=sale.buyer_id,
        seller_id=sale.seller_id,
        total_amount_cents=sale.total_amount_cents,
        transaction_type=sale.transaction_type,
        status=sale.status,
        payment_method=sale.payment_method,
    )
    for line in sale.lines:
        purchase.lines.append(PurchaseLine(
            product_id=line.product_id,
            quantity=line.quantity,
            price_cents=line.price_cents,
            line_total_cents=line.line_total_cents,
            position=line.position,
        ))
    db.session.add(purchase)
    db.session.flush()
    return purchase


def _consume_source(document) -> None:
    # version_id_col turns a concurrent delete into StaleDataError, which
    # atomic() retries; the retry then finds the source gone.
    db.session.delete(document)
    db.session.flush()


def _confirm_notification(draft_id: str, counterparty_id: str, purchase: Purchase, actor_id: str) -> Notification:
    notification = notification_service.find_for_draft(draft_id, lock=True)
    if notification is None:
        return notification_service.new_notification(
            initiator_id=actor_id,
            recipient_id=counterparty_id,
            order_type=REF_PURCHASE,
            order_id=purchase.id,
            type=ORDER_CONFIRMED,
        )

    notification.swap_parties()
    notification.type = ORDER_CONFIRMED
    notification.order_type = REF_PURCHASE
    notification.order_id = purchase.id
    notification.is_read = False
    db.session.flush()
    return notification


# ---------------------------------------------------------------------------
# Entry point 1: direct checkout from cart
# ---------------------------------------------------------------------------

def checkout_cart(buyer_id: str) -> tuple[Sale, Purchase]:
    """
    Convert the buyer's whole cart into a Sale + Purchase pair.

    Terms are fixed (Online, Paid, UPI). No personalized prices are written
    on this path.
    """
    cart = db.session.query(Cart).filter_by(buyer_id=buyer_id).first()
    if cart is None or not cart.items:
        raise ValidationError("Cart is empty")
    cart_id = cart.id

    def _txn():
        cart = lock_for_update(db.session.query(Cart).filter_by(id=cart_id)).first()
        if cart is None or not cart.items:
            raise ConflictError("Cart already processed", details={"cart_id": cart_id})

        seller_id = cart.seller_id
        lines = _snapshot(cart.items)

        inventory_service.reserve_stock(lines, seller_id=seller_id)
        sale = _record_sale(seller_id, BUYER_TYPE_BUSINESS, buyer_id, lines, ONLINE_PREPAID)
        purchase = _record_purchase(sale)
        _consume_source(cart)
        return sale, purchase

    sale, purchase = atomic(_txn, label="place order from cart")
    current_app.logger.info(
        "Cart checkout committed buyer=%s sale=%s purchase=%s total=%s",
        buyer_id, sale.id, purchase.id, sale.total_amount_cents,
    )
    return sale, purchase


# ---------------------------------------------------------------------------
# Entry point 2: negotiated draft orders
# ---------------------------------------------------------------------------

def get_draft_order(order_id: str, business_id: str) -> DraftOrder:
    """Draft visible to its two parties only; anyone else gets 404."""
    draft = db.session.get(DraftOrder, order_id)
    if draft is None or not draft.is_party(business_id):
        raise NotFoundError("Order not found")
    return draft


def _build_draft(seller_id: str, buyer_id: str, created_by_id: str, lines: list[dict]) -> DraftOrder:
    draft = DraftOrder(
        business_id=seller_id,
        customer_id=buyer_id,
        created_by_id=created_by_id,
        total_amount_cents=_line_total(lines),
    )
    for position, line in enumerate(lines):
        draft.lines.append(DraftOrderLine(
            product_id=line["product_id"],
            quantity=line["quantity"],
            price_cents=line["price_cents"],
            position=position,
        ))
    db.session.add(draft)
    db.session.flush()
    return draft


def create_draft_from_cart(buyer_id: str) -> tuple[DraftOrder, Notification]:
    """
    Turn the buyer's cart into a draft proposal for the seller.

    Emits ORDER_RECEIVED (buyer -> seller) and deletes the cart.
    """
    cart = db.session.query(Cart).filter_by(buyer_id=buyer_id).first()
    if cart is None or not cart.items:
        raise ValidationError("Cart is empty")
    cart_id = cart.id

    def _txn():
        cart = lock_for_update(db.session.query(Cart).filter_by(id=cart_id)).first()
        if cart is None or not cart.items:
            raise ConflictError("Cart already processed", details={"cart_id": cart_id})

        seller_id = cart.seller_id
        draft = _build_draft(seller_id, buyer_id, buyer_id, _snapshot(cart.items))
        notification = notification_service.new_notification(
            initiator_id=buyer_id,
            recipient_id=seller_id,
            order_type=REF_ORDER,
            order_id=draft.id,
            type=ORDER_RECEIVED,
        )
        _consume_source(cart)
        return draft, notification

    draft, notification = atomic(_txn, label="create draft order")
    current_app.logger.info("Draft order %s created from cart of %s", draft.id, buyer_id)
    return draft, notification


def _price_lines_for_buyer(seller_id: str, buyer: Business, lines: list[dict], existing: dict[str, int] | None = None) -> list[dict]:
    """Fill in missing line prices: existing draft price, else the resolver."""
    existing = existing or {}
    missing = [line for line in lines if line["price_cents"] is None and line["product_id"] not in existing]
    resolved: dict[str, int] = {}
    if missing:
        shadow = customer_service.find_customer_shadow(seller_id, buyer)
        products = db.session.query(InventoryItem).filter(
            InventoryItem.id.in_([line["product_id"] for line in missing])
        ).all()
        resolved = pricing_service.resolve_prices(seller_id, shadow.id if shadow else None, products)

    priced = []
    for line in lines:
        price = line["price_cents"]
        if price is None:
            price = existing.get(line["product_id"], resolved.get(line["product_id"]))
        if price is None:
            raise ValidationError("Product has no price", details={"product_id": line["product_id"]})
        priced.append({**line, "price_cents": price})
    return priced


def create_draft_for_buyer(seller_id: str, buyer_id: str, lines: list[dict]) -> tuple[DraftOrder, Notification]:
    """
    Seller proposes an order directly to a registered buyer.

    Emits ORDER_RECEIVED (seller -> buyer). Lines without price_cents take
    the buyer's resolved price.
    """
    if buyer_id == seller_id:
        raise ValidationError("Cannot draft an order to yourself")
    buyer = db.session.get(Business, buyer_id)
    if buyer is None:
        raise NotFoundError("Buyer not found")
    _check_products_owned(seller_id, [line["product_id"] for line in lines])
    lines = _price_lines_for_buyer(seller_id, buyer, lines)

    def _txn():
        draft = _build_draft(seller_id, buyer_id, seller_id, lines)
        notification = notification_service.new_notification(
            initiator_id=seller_id,
            recipient_id=buyer_id,
            order_type=REF_ORDER,
            order_id=draft.id,
            type=ORDER_RECEIVED,
        )
        return draft, notification

    draft, notification = atomic(_txn, label="create draft order")
    current_app.logger.info("Draft order %s created by seller %s for %s", draft.id, seller_id, buyer_id)
    return draft, notification


def update_draft_order(order_id: str, business_id: str, lines: list[dict]) -> DraftOrder:
    """
    Replace the draft's line items and total.

    Side effect: every line's price is upserted into the seller's price
    ledger for the buyer's Customer shadow, dated today. Without a shadow
    the ledger write is skipped (logged), never an error.
    """
    draft = get_draft_order(order_id, business_id)
    seller_id = draft.business_id
    buyer = draft.customer
    _check_products_owned(seller_id, [line["product_id"] for line in lines])
    current_prices = {line.product_id: line.price_cents for line in draft.lines}
    lines = _price_lines_for_buyer(seller_id, buyer, lines, existing=current_prices)

    def _txn():
        draft = lock_for_update(db.session.query(DraftOrder).filter_by(id=order_id)).first()
        if draft is None:
            raise ConflictError("Order already processed", details={"order_id": order_id})

        # Update lines in place; products are unique per draft
        by_product = {line.product_id: line for line in draft.lines}
        wanted = {line["product_id"] for line in lines}
        for product_id, line in by_product.items():
            if product_id not in wanted:
                draft.lines.remove(line)
        for position, line in enumerate(lines):
            current = by_product.get(line["product_id"])
            if current is None:
                draft.lines.append(DraftOrderLine(
                    product_id=line["product_id"],
                    quantity=line["quantity"],
                    price_cents=line["price_cents"],
                    position=position,
                ))
            else:
                current.quantity = line["quantity"]
                current.price_cents = line["price_cents"]
                current.position = position
        draft.total_amount_cents = _line_total(lines)
        db.session.flush()

        shadow = customer_service.find_customer_shadow(seller_id, buyer)
        if shadow is None:
            current_app.logger.info(
                "No customer shadow for buyer %s in %s; skipping price ledger for draft %s",
                buyer.id, seller_id, order_id,
            )
        else:
            pricing_service.upsert_personalized_prices(seller_id, shadow.id, lines)
        return draft

    return atomic(_txn, label="update draft order")


def place_draft_order(order_id: str, business_id: str) -> tuple[Sale, Purchase, Notification]:
    """
    Commit a draft into a Sale + Purchase pair.

    Either party may commit. Terms are fixed (Online, Paid, UPI); the total
    is recomputed from the frozen lines. The buyer's Customer shadow is
    reused or created and every line's price goes into the ledger. The
    originating notification is flipped to ORDER_CONFIRMED, parties
    swapped, retargeted at the Purchase and marked unread.
    """
    draft = get_draft_order(order_id, business_id)
    if not draft.lines:
        raise ValidationError("Order has no items")

    def _txn():
        draft = lock_for_update(db.session.query(DraftOrder).filter_by(id=order_id)).first()
        if draft is None:
            raise ConflictError("Order already processed", details={"order_id": order_id})

        seller_id = draft.business_id
        buyer = draft.customer
        lines = _snapshot(draft.lines)

        inventory_service.reserve_stock(lines, seller_id=seller_id)
        sale = _record_sale(seller_id, BUYER_TYPE_BUSINESS, buyer.id, lines, ONLINE_PREPAID)
        purchase = _record_purchase(sale)
        counterparty_id = draft.counterparty_of(business_id)
        shadow = customer_service.get_or_create_customer_shadow(seller_id, buyer)
        _consume_source(draft)
        pricing_service.upsert_personalized_prices(seller_id, shadow.id, lines)
        notification = _confirm_notification(order_id, counterparty_id, purchase, business_id)
        return sale, purchase, notification

    sale, purchase, notification = atomic(_txn, label="place order from draft")
    current_app.logger.info(
        "Draft %s committed sale=%s purchase=%s total=%s",
        order_id, sale.id, purchase.id, sale.total_amount_cents,
    )
    return sale, purchase, notification


# ---------------------------------------------------------------------------
# Entry point 3: direct (manual) order creation
# ---------------------------------------------------------------------------

def _validate_terms(transaction_type, status, payment_method) -> OrderTerms:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError(
            "transaction_type must be one of: " + ", ".join(TRANSACTION_TYPES),
            details={"field": "transaction_type"},
        )
    if status not in PAYMENT_STATUSES:
        raise ValidationError(
            "status must be one of: " + ", ".join(PAYMENT_STATUSES),
            details={"field": "status"},
        )
    if payment_method is None:
        if status == STATUS_PAID:
            raise ValidationError("payment_method is required for paid orders", details={"field": "payment_method"})
    elif payment_method not in PAYMENT_METHODS:
        raise ValidationError(
            "payment_method must be one of: " + ", ".join(PAYMENT_METHODS),
            details={"field": "payment_method"},
        )
    return OrderTerms(transaction_type, status, payment_method)


def create_order(
    seller_id: str,
    customer_id: str,
    lines: list[dict],
    transaction_type: str,
    status: str,
    payment_method: str | None = None,
) -> tuple[Sale, Purchase | None]:
    """
    Record a manual sale (walk-in or offline trade).

    customer_id naming a registered Business -> buyer_type "Business": a
    Purchase mirror is written and the seller's shadow for that business is
    reused or created. Otherwise it must be a Customer the seller owns ->
    buyer_type "Customer", Sale only. Either way every line's price is
    upserted into the ledger for that customer record.
    """
    terms = _validate_terms(transaction_type, status, payment_method)
    _check_products_owned(seller_id, [line["product_id"] for line in lines])

    buyer_business = db.session.get(Business, customer_id)
    if buyer_business is not None:
        if buyer_business.id == seller_id:
            raise ValidationError("Cannot create an order to yourself")
        buyer_type = BUYER_TYPE_BUSINESS
    elif customer_service.get_owned_customer(seller_id, customer_id) is not None:
        buyer_type = BUYER_TYPE_CUSTOMER
    else:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})

    def _txn():
        inventory_service.reserve_stock(lines, seller_id=seller_id)
        sale = _record_sale(seller_id, buyer_type, customer_id, lines, terms)
        purchase = None
        if buyer_type == BUYER_TYPE_BUSINESS:
            purchase = _record_purchase(sale)
            shadow_id = customer_service.get_or_create_customer_shadow(seller_id, buyer_business).id
        else:
            shadow_id = customer_id
        pricing_service.upsert_personalized_prices(seller_id, shadow_id, lines)
        return sale, purchase

    sale, purchase = atomic(_txn, label="create order")
    current_app.logger.info(
        "Order created seller=%s buyer=%s:%s sale=%s",
        seller_id, buyer_type, customer_id, sale.id,
    )
    return sale, purchase


# ---------------------------------------------------------------------------
# Entry point 4: rejection and withdrawal
# ---------------------------------------------------------------------------

def _close_draft_notification(notification_id: str, business_id: str, *, role: str, label: str) -> Notification:
    """
    Delete the draft a notification announces and flip it to ORDER_REJECTED.

    One transaction. role is "recipient" (reject: parties swapped so the
    proposer is told) or "initiator" (withdraw: parties kept so the
    counterparty is told). Either way the reference is cleared and the
    notification is unread again.
    """
    if role == "recipient":
        notification = notification_service.get_for_recipient(notification_id, business_id)
    else:
        notification = notification_service.get_for_initiator(notification_id, business_id)
    if notification.order_type != REF_ORDER:
        raise ConflictError("Order already processed", details={"notification_id": notification_id})

    def _txn():
        notification = lock_for_update(
            db.session.query(Notification).filter_by(id=notification_id)
        ).first()
        if notification is None or notification.order_type != REF_ORDER:
            raise ConflictError("Order already processed", details={"notification_id": notification_id})
        acting_id = notification.recipient_id if role == "recipient" else notification.initiator_id
        if acting_id != business_id:
            raise ConflictError("Order already processed", details={"notification_id": notification_id})

        draft = lock_for_update(
            db.session.query(DraftOrder).filter_by(id=notification.order_id)
        ).first()
        if draft is not None:
            _consume_source(draft)

        if role == "recipient":
            notification.swap_parties()
        notification.type = ORDER_REJECTED
        notification.order_type = None
        notification.order_id = None
        notification.is_read = False
        db.session.flush()
        return notification

    return atomic(_txn, label=label)


def reject_order_notification(notification_id: str, business_id: str) -> Notification:
    """Recipient declines the proposed draft; the draft is deleted."""
    notification = _close_draft_notification(notification_id, business_id, role="recipient", label="reject order")
    current_app.logger.info("Notification %s rejected by %s", notification_id, business_id)
    return notification


def withdraw_order_notification(notification_id: str, business_id: str) -> Notification:
    """Initiator takes back its own proposal; the draft is deleted."""
    notification = _close_draft_notification(notification_id, business_id, role="initiator", label="withdraw order")
    current_app.logger.info("Notification %s withdrawn by %s", notification_id, business_id)
    return notification


# ---------------------------------------------------------------------------
# Ledger reads
# ---------------------------------------------------------------------------

def resolve_buyer(sale: Sale) -> dict | None:
    """Load a Sale's buyer by its tag (Business or seller-owned Customer)."""
    if sale.buyer_type == BUYER_TYPE_BUSINESS:
        buyer = db.session.get(Business, sale.buyer_id)
    elif sale.buyer_type == BUYER_TYPE_CUSTOMER:
        buyer = db.session.get(Customer, sale.buyer_id)
    else:
        raise ValueError(f"Invalid buyer type: {sale.buyer_type}")
    return buyer.summary() if buyer is not None else None


def list_sales(seller_id: str) -> list[Sale]:
    return (
        db.session.query(Sale)
        .filter(Sale.seller_id == seller_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )


def list_purchases(buyer_id: str) -> list[Purchase]:
    return (
        db.session.query(Purchase)
        .filter(Purchase.buyer_id == buyer_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
        .all()
    )


def get_order(order_id: str, business_id: str) -> Sale | Purchase:
    """A committed Sale (tried first) or Purchase the caller is party to."""
    sale = db.session.get(Sale, order_id)
    if sale is not None and (
        sale.seller_id == business_id
        or (sale.buyer_type == BUYER_TYPE_BUSINESS and sale.buyer_id == business_id)
    ):
        return sale

    purchase = db.session.get(Purchase, order_id)
    if purchase is not None and business_id in (purchase.buyer_id, purchase.seller_id):
        return purchase

    raise NotFoundError("Order not found")

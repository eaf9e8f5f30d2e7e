# Overview: Service-layer operations for the buyer cart aggregate.

"""
Cart Service - one pending cart per buyer Business

INVARIANTS:
- A buyer has at most one cart (carts.buyer_id is unique).
- cart.seller_id is set iff the cart has items, and every item belongs to
  that seller. Adding another seller's product is refused (409).
- Adding a product already in the cart REPLACES its quantity (last write
  wins); it never sums.

Mutations are short single-row-group writes guarded by the cart's
version_id and retried on conflict. Checkout is not here: it belongs to the
order confirmation engine (order_service.checkout_cart).
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Business, Cart, CartItem, InventoryItem
from . import customer_service, pricing_service
from .concurrency import run_with_retry


def get_cart(buyer_id: str) -> Cart | None:
    return db.session.query(Cart).filter_by(buyer_id=buyer_id).first()


def is_empty(buyer_id: str) -> bool:
    """True when the buyer has no cart or a cart without items."""
    cart = get_cart(buyer_id)
    return cart is None or not cart.items


def _resolve_cart_price(buyer_id: str, product: InventoryItem) -> int:
    buyer = db.session.get(Business, buyer_id)
    shadow = customer_service.find_customer_shadow(product.business_id, buyer) if buyer else None
    price = pricing_service.resolve_price(product.business_id, shadow.id if shadow else None, product.id)
    if price is None:
        raise ValidationError("Product has no price", details={"product_id": product.id})
    return price


def add_item(buyer_id: str, product_id: str, quantity: int, price_cents: int | None = None) -> Cart:
    """
    Add product to the buyer's cart, or replace its quantity if present.

    price_cents omitted: the pricing resolver supplies the buyer's effective
    price. The line price is re-captured on every add.
    """
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")

    product = db.session.get(InventoryItem, product_id)
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    if product.business_id == buyer_id:
        raise ValidationError("Cannot add your own product to the cart")

    if price_cents is None:
        price_cents = _resolve_cart_price(buyer_id, product)

    def _op():
        cart = get_cart(buyer_id)
        if cart is None:
            cart = Cart(buyer_id=buyer_id, seller_id=product.business_id)
            db.session.add(cart)
        elif cart.items and cart.seller_id != product.business_id:
            raise ConflictError(
                "Cart already holds products from another seller",
                details={
                    "reason": "CART_SELLER_MISMATCH",
                    "cart_seller_id": cart.seller_id,
                    "product_seller_id": product.business_id,
                },
            )

        item = cart.find_item(product_id)
        if item is not None:
            item.quantity = quantity
            item.price_cents = price_cents
        else:
            position = max((i.position for i in cart.items), default=-1) + 1
            cart.items.append(CartItem(
                product_id=product_id,
                quantity=quantity,
                price_cents=price_cents,
                position=position,
            ))
            cart.seller_id = product.business_id

        db.session.commit()
        return cart

    cart = run_with_retry(_op)
    current_app.logger.info("Cart item set buyer=%s product=%s qty=%s", buyer_id, product_id, quantity)
    return cart


def remove_item(buyer_id: str, product_id: str) -> Cart:
    """
    Take one unit of product out of the cart.

    The line is dropped when its quantity reaches zero, and the seller is
    cleared once the cart is empty. A product not in the cart is a no-op.
    """
    def _op():
        cart = get_cart(buyer_id)
        if cart is None:
            raise NotFoundError("Cart not found")

        item = cart.find_item(product_id)
        if item is not None:
            item.quantity -= 1
            if item.quantity <= 0:
                cart.items.remove(item)

        if not cart.items:
            cart.seller_id = None

        db.session.commit()
        return cart

    return run_with_retry(_op)


def clear(buyer_id: str) -> None:
    """Delete the buyer's cart entirely."""
    cart = get_cart(buyer_id)
    if cart is None:
        raise NotFoundError("Cart not found")
    db.session.delete(cart)
    db.session.commit()
    current_app.logger.info("Cart cleared buyer=%s", buyer_id)

# Overview: Customer shadow records a Business keeps for its counterparties.

"""
MULTI-TENANT: every Customer row is owned by one Business (business_id) and
is only ever read or written in that owner's scope.

A shadow of a registered Business carries linked_business_id. Older rows
created by name only are matched on business name and linked on first reuse.
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Business, Customer


def find_customer_shadow(owner_business_id: str, counterparty: Business) -> Customer | None:
    """The owner's Customer record for a registered counterparty, if any."""
    shadow = (
        db.session.query(Customer)
        .filter_by(business_id=owner_business_id, linked_business_id=counterparty.id)
        .first()
    )
    if shadow is not None:
        return shadow

    return (
        db.session.query(Customer)
        .filter(
            Customer.business_id == owner_business_id,
            Customer.linked_business_id.is_(None),
            Customer.name == counterparty.business_name,
        )
        .order_by(Customer.created_at.asc())
        .first()
    )


def get_or_create_customer_shadow(owner_business_id: str, counterparty: Business) -> Customer:
    """
    Reuse or create the owner's shadow of counterparty.

    Runs inside the caller's transaction (flushes, never commits).
    """
    shadow = find_customer_shadow(owner_business_id, counterparty)
    if shadow is None:
        shadow = Customer(
            business_id=owner_business_id,
            name=counterparty.business_name,
            contact=counterparty.contact,
            address=counterparty.location,
            linked_business_id=counterparty.id,
        )
        db.session.add(shadow)
        db.session.flush()
        current_app.logger.info(
            "Customer shadow created owner=%s counterparty=%s customer=%s",
            owner_business_id, counterparty.id, shadow.id,
        )
    elif shadow.linked_business_id is None:
        shadow.linked_business_id = counterparty.id
        db.session.flush()
    return shadow


def get_owned_customer(owner_business_id: str, customer_id: str) -> Customer | None:
    return (
        db.session.query(Customer)
        .filter_by(id=customer_id, business_id=owner_business_id)
        .first()
    )


def find_customer_by_name(owner_business_id: str, name: str) -> Customer | None:
    return (
        db.session.query(Customer)
        .filter_by(business_id=owner_business_id, name=name)
        .order_by(Customer.created_at.asc())
        .first()
    )


def add_customer(owner_business_id: str, name: str, contact: str | None = None, address: str | None = None) -> Customer:
    """Register a walk-in (unregistered) customer."""
    if db.session.get(Business, owner_business_id) is None:
        raise NotFoundError("Business not found")

    customer = Customer(
        business_id=owner_business_id,
        name=name,
        contact=contact,
        address=address,
    )
    db.session.add(customer)
    db.session.commit()
    return customer


def _subsequence_pattern(term: str) -> str:
    escaped = []
    for char in term:
        if char in "%_\\":
            char = "\\" + char
        escaped.append(char)
    return "%" + "%".join(escaped) + "%"


def search_customers(owner_business_id: str, term: str = "") -> list[Customer]:
    """
    Owner's customers whose name contains the letters of term in order.

    "abc" matches "A Big Company". Case-insensitive; sorted by name.
    """
    query = db.session.query(Customer).filter(Customer.business_id == owner_business_id)
    term = (term or "").strip()
    if term:
        query = query.filter(Customer.name.ilike(_subsequence_pattern(term), escape="\\"))
    return query.order_by(Customer.name.asc()).all()

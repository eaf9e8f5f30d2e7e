# Overview: Business registration and phone/OTP login.

"""
Authentication Service

WHY: A Business is identified by its verified phone number (contact). There
are no passwords: signup and login both prove control of the phone through
the IdentityVerifier capability, then receive a session token pair.

MULTI-TENANT: the Business created here is the tenant root; every other
row is scoped by its id.
"""

import re

from flask import current_app

from ..capabilities import get_capabilities
from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Business


PHONE_RE = re.compile(r"^\+?[0-9]{7,15}$")


def normalize_phone(phone) -> str:
    if not isinstance(phone, str):
        raise ValidationError("phone is required")
    normalized = re.sub(r"[\s\-()]", "", phone)
    if not PHONE_RE.match(normalized):
        raise ValidationError("Invalid phone number", details={"field": "phone"})
    return normalized


def get_business_by_phone(phone: str) -> Business | None:
    return db.session.query(Business).filter_by(contact=phone).first()


def create_business(
    contact: str,
    business_name: str,
    owner_name: str,
    gstin: str,
    location: str,
    business_type: str | None = None,
    owner_image: str | None = None,
    business_image: str | None = None,
) -> Business:
    """Insert a Business for an already-verified phone. Phone is unique."""
    contact = normalize_phone(contact)
    if get_business_by_phone(contact) is not None:
        raise ConflictError("A business with this phone already exists", details={"field": "phone"})

    business = Business(
        contact=contact,
        business_name=business_name,
        owner_name=owner_name,
        gstin=gstin,
        location=location,
        business_type=business_type,
        owner_image=owner_image,
        business_image=business_image,
    )
    db.session.add(business)
    db.session.commit()
    current_app.logger.info("Business %s registered", business.id)
    return business


def signup(phone, otp, profile: dict) -> Business:
    """Verify phone ownership and register a new Business."""
    phone = normalize_phone(phone)
    if get_business_by_phone(phone) is not None:
        raise ConflictError("A business with this phone already exists", details={"field": "phone"})

    verified_phone = normalize_phone(get_capabilities().identity_verifier.verify(phone, str(otp or "")))
    return create_business(contact=verified_phone, **profile)


def login(phone, otp) -> Business:
    """Verify phone ownership of an existing Business."""
    phone = normalize_phone(phone)
    business = get_business_by_phone(phone)
    if business is None:
        raise NotFoundError("No business registered with this phone")

    get_capabilities().identity_verifier.verify(phone, str(otp or ""))
    current_app.logger.info("Business %s logged in", business.id)
    return business

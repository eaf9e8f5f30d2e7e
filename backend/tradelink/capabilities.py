# Overview: Process-wide external collaborators (identity, storage, PDF) behind narrow interfaces.

"""
Capabilities are built once in create_app() and stored on
app.extensions["capabilities"]. Services fetch them with get_capabilities()
instead of constructing clients, so tests can pass fakes to
create_app(capabilities=...).

- IdentityVerifier.verify(phone, otp) -> verified phone
- ObjectStorage.put(key, data, content_type) -> retrievable URL
- InvoiceRenderer.render(invoice_data) -> PDF bytes

Failures of the real collaborators surface as ExternalServiceError.
"""

from __future__ import annotations

import io
import os
from dataclasses import dataclass
from typing import Protocol

import httpx
from flask import current_app
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .errors import AuthenticationError, ExternalServiceError


class IdentityVerifier(Protocol):
    def verify(self, phone: str, otp: str) -> str: ...


class ObjectStorage(Protocol):
    def put(self, key: str, data: bytes, content_type: str) -> str: ...


class InvoiceRenderer(Protocol):
    def render(self, invoice_data: dict) -> bytes: ...


class HttpIdentityVerifier:
    """
    Phone/OTP check against an external verification endpoint.

    POSTs {"phone", "otp"}; expects 200 {"verified": true, "phone": ...}.
    A 4xx or verified=false means a wrong code; anything else is an
    upstream failure.
    """

    def __init__(self, url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def verify(self, phone: str, otp: str) -> str:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, json={"phone": phone, "otp": otp})
        except httpx.HTTPError as exc:
            raise ExternalServiceError(
                "Identity verification unavailable",
                details={"upstream": str(exc)},
            ) from exc

        if 400 <= response.status_code < 500:
            raise AuthenticationError("Invalid verification code")
        if response.status_code != 200:
            raise ExternalServiceError(
                "Identity verification failed",
                details={"upstream_status": response.status_code, "upstream": response.text[:200]},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceError("Identity verification returned invalid JSON") from exc

        if not payload.get("verified"):
            raise AuthenticationError("Invalid verification code")
        return payload.get("phone") or phone


class DevIdentityVerifier:
    """Accepts one fixed code (DEV_OTP_CODE). Development and tests only."""

    def __init__(self, code: str):
        self.code = code

    def verify(self, phone: str, otp: str) -> str:
        if otp != self.code:
            raise AuthenticationError("Invalid verification code")
        return phone


class LocalObjectStorage:
    """Writes objects under a directory and serves them from base_url."""

    def __init__(self, root: str, base_url: str):
        self.root = root
        self.base_url = base_url.rstrip("/")

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = os.path.join(self.root, *key.split("/"))
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise ExternalServiceError("Failed to store object", details={"key": key, "upstream": str(exc)}) from exc
        return f"{self.base_url}/{key}"


def _money(cents: int) -> str:
    return f"{cents // 100:,}.{cents % 100:02d}"


class ReportLabInvoiceRenderer:
    """Single-page A4 invoice: parties, line table and total."""

    def render(self, invoice_data: dict) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=56,
            leftMargin=56,
            topMargin=56,
            bottomMargin=56,
            title=f"Invoice {invoice_data['invoice_number']}",
        )
        styles = getSampleStyleSheet()
        seller = invoice_data["seller"]
        buyer = invoice_data["buyer"]

        elements = [
            Paragraph(f"INVOICE #{invoice_data['invoice_number']}", styles["Heading1"]),
            Paragraph(f"Date: {invoice_data['date']}", styles["Normal"]),
            Spacer(1, 16),
            Paragraph(f"From: {seller.get('business_name') or seller.get('name', '')}", styles["Normal"]),
            Paragraph(f"GSTIN: {seller.get('gstin') or '-'}", styles["Normal"]),
            Paragraph(f"To: {buyer.get('business_name') or buyer.get('name', '')}", styles["Normal"]),
            Spacer(1, 16),
        ]

        rows = [["Item", "Qty", "Unit Price", "Amount"]]
        for line in invoice_data["items"]:
            rows.append([
                line["name"],
                str(line["quantity"]),
                _money(line["price_cents"]),
                _money(line["line_total_cents"]),
            ])
        rows.append(["", "", "Total", _money(invoice_data["total_amount_cents"])])

        table = Table(rows, colWidths=[220, 60, 100, 100])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
            ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("GRID", (0, 0), (-1, -2), 0.5, colors.black),
        ]))
        elements.append(table)

        elements.append(Spacer(1, 16))
        elements.append(Paragraph(
            f"Payment: {invoice_data['status']} via {invoice_data.get('payment_method') or '-'} "
            f"({invoice_data['transaction_type']})",
            styles["Normal"],
        ))

        doc.build(elements)
        return buffer.getvalue()


@dataclass
class Capabilities:
    identity_verifier: IdentityVerifier
    object_storage: ObjectStorage
    invoice_renderer: InvoiceRenderer


def build_capabilities(config) -> Capabilities:
    """Default collaborators for a config mapping."""
    if config.get("IDENTITY_VERIFY_URL"):
        verifier = HttpIdentityVerifier(config["IDENTITY_VERIFY_URL"], timeout=config["IDENTITY_VERIFY_TIMEOUT"])
    else:
        verifier = DevIdentityVerifier(config["DEV_OTP_CODE"])

    return Capabilities(
        identity_verifier=verifier,
        object_storage=LocalObjectStorage(config["INVOICE_STORAGE_DIR"], config["INVOICE_BASE_URL"]),
        invoice_renderer=ReportLabInvoiceRenderer(),
    )


def get_capabilities() -> Capabilities:
    return current_app.extensions["capabilities"]

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from invoicepdf.models.party import Freelancer, Party
from invoicepdf.utils.validators import (
    validate_date,
    validate_money,
    validate_non_negative_money,
    validate_quantity,
    validate_required,
)


def _pick(d: dict, key: str, alias: str | None = None, default: Any = None) -> Any:
    """Read *key* from *d*, falling back to its camelCase *alias*."""
    if key in d:
        return d[key]
    if alias is not None and alias in d:
        return d[alias]
    return default


@dataclass(frozen=True)
class ProjectSummary:
    id: str
    title: str
    description: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> ProjectSummary:
        return cls(
            id=str(d.get("id", "")),
            title=validate_required(d.get("title"), "project.title"),
            description=str(d.get("description") or ""),
        )


@dataclass(frozen=True)
class LineItem:
    """One billable unit. ``total`` is rendered as given, never recomputed."""

    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal

    @classmethod
    def from_dict(cls, d: dict) -> LineItem:
        return cls(
            description=validate_required(d.get("description"), "item.description"),
            quantity=validate_quantity(d.get("quantity", 0)),
            unit_price=validate_non_negative_money(
                _pick(d, "unit_price", "unitPrice"), "item.unit_price"
            ),
            total=validate_money(d.get("total"), "item.total"),
        )


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    total: Decimal
    tax: Decimal | None = None
    tax_rate: Decimal | None = None  # percentage, e.g. 10 for 10%

    @property
    def shows_tax(self) -> bool:
        """Tax row is rendered only when both tax and rate are non-zero."""
        return bool(self.tax) and bool(self.tax_rate)

    @classmethod
    def from_dict(cls, d: dict) -> Totals:
        tax = d.get("tax")
        tax_rate = _pick(d, "tax_rate", "taxRate")
        return cls(
            subtotal=validate_money(d.get("subtotal"), "subtotal"),
            total=validate_money(d.get("total"), "total"),
            tax=validate_money(tax, "tax") if tax is not None else None,
            tax_rate=validate_money(tax_rate, "tax_rate") if tax_rate is not None else None,
        )


@dataclass(frozen=True)
class InvoiceRecord:
    """Everything needed to render one invoice. Read-only during composition."""

    id: str
    invoice_number: str
    created_at: date
    transaction_id: str
    transaction_hash: str
    amount: Decimal
    currency: str
    status: str
    client: Party
    freelancer: Freelancer
    project: ProjectSummary
    totals: Totals
    items: tuple[LineItem, ...] = field(default_factory=tuple)
    due_date: date | None = None

    @classmethod
    def from_dict(cls, d: dict) -> InvoiceRecord:
        """Create a record from a YAML/JSON-loaded dict.

        Totals may be nested under ``totals`` or given flat at the top level.
        Raises ValueError (or KeyError for a missing party/project section)
        on malformed input.
        """
        due = _pick(d, "due_date", "dueDate")
        totals = d.get("totals") or d
        return cls(
            id=validate_required(d.get("id"), "id"),
            invoice_number=validate_required(
                _pick(d, "invoice_number", "invoiceNumber"), "invoice_number"
            ),
            created_at=validate_date(_pick(d, "created_at", "createdAt"), "created_at"),
            due_date=validate_date(due, "due_date") if due else None,
            transaction_id=validate_required(
                _pick(d, "transaction_id", "transactionId"), "transaction_id"
            ),
            transaction_hash=str(_pick(d, "transaction_hash", "transactionHash") or ""),
            amount=validate_money(d.get("amount", totals.get("total")), "amount"),
            currency=str(d.get("currency") or ""),
            status=str(d.get("status") or ""),
            client=Party.from_dict(d["client"]),
            freelancer=Freelancer.from_dict(d["freelancer"]),
            project=ProjectSummary.from_dict(d["project"]),
            items=tuple(LineItem.from_dict(i) for i in d.get("items") or ()),
            totals=Totals.from_dict(totals),
        )

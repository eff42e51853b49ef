from __future__ import annotations

from dataclasses import dataclass

from invoicepdf.utils.validators import validate_required


@dataclass(frozen=True)
class Party:
    """Client (payer) of an invoice."""

    id: str
    name: str
    email: str
    address: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Party:
        """Create a Party from a YAML-loaded dict; ``address`` is optional."""
        return cls(
            id=str(d.get("id", "")),
            name=validate_required(d.get("name"), "name"),
            email=validate_required(d.get("email"), "email"),
            address=d.get("address") or None,
        )


@dataclass(frozen=True)
class Freelancer(Party):
    """Freelancer (payee), optionally with the wallet receiving the payment."""

    wallet_address: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Freelancer:
        return cls(
            id=str(d.get("id", "")),
            name=validate_required(d.get("name"), "name"),
            email=validate_required(d.get("email"), "email"),
            address=d.get("address") or None,
            wallet_address=d.get("wallet_address") or d.get("walletAddress") or None,
        )

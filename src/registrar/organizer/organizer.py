"""Organizer aggregate: the tenant selling courses, events and memberships."""

import re
from datetime import UTC, datetime
from decimal import Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from registrar.domain import registrar
from registrar.pricing.money import to_rate

_PREFIX = re.compile(r"^[A-Z0-9]{2,10}$")


@registrar.event(part_of="Organizer")
class OrganizerRegistered:
    __version__ = 1

    organizer_id = Identifier(required=True)
    name = String(required=True)
    invoice_prefix = String(required=True)
    registered_at = DateTime(required=True)


@registrar.aggregate
class Organizer:
    name = String(required=True, max_length=200)
    invoice_prefix = String(required=True, max_length=10)
    contact_email = String(max_length=254)
    mva_reporting_required = Boolean(default=False)
    mva_rate = String(max_length=10, default="0")
    ledger_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def invoice_prefix_format(self):
        if self.invoice_prefix and not _PREFIX.match(self.invoice_prefix):
            raise ValidationError({"invoice_prefix": ["Use 2-10 uppercase letters or digits"]})

    @invariant.post
    def mva_rate_is_a_percentage(self):
        to_rate(self.mva_rate or "0")

    @classmethod
    def register(cls, name, invoice_prefix, ledger_id=None, mva_reporting_required=False, mva_rate="0", contact_email=None):
        now = datetime.now(UTC)
        organizer = cls(
            name=name,
            invoice_prefix=invoice_prefix,
            contact_email=contact_email,
            mva_reporting_required=mva_reporting_required,
            mva_rate=mva_rate,
            ledger_id=ledger_id,
            created_at=now,
            updated_at=now,
        )
        organizer.raise_(
            OrganizerRegistered(
                organizer_id=str(organizer.id),
                name=name,
                invoice_prefix=invoice_prefix,
                registered_at=now,
            )
        )
        return organizer

    def update_billing(self, invoice_prefix=None, mva_reporting_required=None, mva_rate=None) -> None:
        if invoice_prefix is not None:
            self.invoice_prefix = invoice_prefix
        if mva_reporting_required is not None:
            self.mva_reporting_required = mva_reporting_required
        if mva_rate is not None:
            self.mva_rate = mva_rate
        self.updated_at = datetime.now(UTC)

    def effective_mva_rate(self) -> Decimal:
        """The rate to charge, 0 unless the organizer reports MVA."""
        if not self.mva_reporting_required:
            return Decimal(0)
        return to_rate(self.mva_rate or "0")

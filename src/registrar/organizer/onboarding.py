"""Organizer onboarding and billing settings."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from registrar.access import get_gate
from registrar.domain import registrar
from registrar.organizer.ledger import NumberLedger
from registrar.organizer.organizer import Organizer

logger = structlog.get_logger(__name__)


@registrar.command(part_of="Organizer")
class RegisterOrganizer:
    actor_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    invoice_prefix = String(required=True, max_length=10)
    contact_email = String(max_length=254)
    mva_reporting_required = Boolean(default=False)
    mva_rate = String(max_length=10, default="0")


@registrar.command(part_of="Organizer")
class UpdateOrganizerBilling:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    invoice_prefix = String(max_length=10)
    mva_reporting_required = Boolean()
    mva_rate = String(max_length=10)


@registrar.command_handler(part_of=Organizer)
class OrganizerCommandHandler:
    @handle(RegisterOrganizer)
    def register_organizer(self, command):
        get_gate().assert_admin(command.actor_id)

        organizer = Organizer.register(
            name=command.name,
            invoice_prefix=command.invoice_prefix,
            contact_email=command.contact_email,
            mva_reporting_required=command.mva_reporting_required,
            mva_rate=command.mva_rate or "0",
        )
        ledger = NumberLedger.open(organizer.id)
        organizer.ledger_id = ledger.id

        current_domain.repository_for(NumberLedger).add(ledger)
        current_domain.repository_for(Organizer).add(organizer)

        logger.info("Organizer registered", organizer_id=str(organizer.id), ledger_id=str(ledger.id))
        return str(organizer.id)

    @handle(UpdateOrganizerBilling)
    def update_billing(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)

        repo = current_domain.repository_for(Organizer)
        organizer = repo.get(command.organizer_id)
        organizer.update_billing(
            invoice_prefix=command.invoice_prefix,
            mva_reporting_required=command.mva_reporting_required,
            mva_rate=command.mva_rate,
        )
        repo.add(organizer)

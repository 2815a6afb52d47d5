"""Domain events for waitlist entries."""

from protean.fields import DateTime, Identifier, Integer

from registrar.domain import registrar


@registrar.event(part_of="WaitlistEntry")
class OfferExtended:
    __version__ = 1

    entry_id = Identifier(required=True)
    registration_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    person_id = Identifier(required=True)
    track_id = Identifier(required=True)
    hours_valid = Integer(required=True)
    offered_until = DateTime(required=True)
    offered_at = DateTime(required=True)


@registrar.event(part_of="WaitlistEntry")
class OfferExpired:
    __version__ = 1

    entry_id = Identifier(required=True)
    registration_id = Identifier(required=True)
    expired_at = DateTime(required=True)


@registrar.event(part_of="WaitlistEntry")
class OfferAccepted:
    __version__ = 1

    entry_id = Identifier(required=True)
    registration_id = Identifier(required=True)
    person_id = Identifier(required=True)
    accepted_at = DateTime(required=True)


@registrar.event(part_of="WaitlistEntry")
class WaitlistEntryRemoved:
    __version__ = 1

    entry_id = Identifier(required=True)
    registration_id = Identifier(required=True)
    removed_at = DateTime(required=True)

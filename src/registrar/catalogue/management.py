"""Staff commands that publish periods, tracks, events and membership tiers."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Date, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from registrar.access import get_gate
from registrar.catalogue.catalogue import CoursePeriod, CourseTrack, Event, MembershipTier
from registrar.domain import registrar


@registrar.command(part_of="CoursePeriod")
class CreateCoursePeriod:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    starts_on = Date()
    ends_on = Date()


@registrar.command(part_of="CourseTrack")
class AddCourseTrack:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    period_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    price_single_cents = Integer(required=True, min_value=0)
    price_pair_cents = Integer(min_value=0)
    capacity = Integer(min_value=1)


@registrar.command(part_of="Event")
class PublishEvent:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    price_cents = Integer(required=True, min_value=0)
    member_price_cents = Integer(min_value=0)
    capacity = Integer(min_value=1)
    sales_open_at = DateTime()
    sales_close_at = DateTime()
    starts_at = DateTime()


@registrar.command(part_of="MembershipTier")
class CreateMembershipTier:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    price_cents = Integer(required=True, min_value=0)
    validation_required = Boolean(default=False)
    mva_enabled = Boolean(default=False)
    validity_months = Integer(default=12, min_value=1)


@registrar.command_handler(part_of=CoursePeriod)
class CoursePeriodCommandHandler:
    @handle(CreateCoursePeriod)
    def create_period(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)
        if command.starts_on and command.ends_on and command.starts_on > command.ends_on:
            raise ValidationError({"ends_on": ["Period cannot end before it starts"]})

        period = CoursePeriod(
            organizer_id=command.organizer_id,
            name=command.name,
            starts_on=command.starts_on,
            ends_on=command.ends_on,
        )
        current_domain.repository_for(CoursePeriod).add(period)
        return str(period.id)


@registrar.command_handler(part_of=CourseTrack)
class CourseTrackCommandHandler:
    @handle(AddCourseTrack)
    def add_track(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)
        period = current_domain.repository_for(CoursePeriod).get(command.period_id)
        if str(period.organizer_id) != str(command.organizer_id):
            raise ObjectNotFoundError(f"CoursePeriod with id {command.period_id} does not exist")

        track = CourseTrack(
            organizer_id=command.organizer_id,
            period_id=command.period_id,
            title=command.title,
            price_single_cents=command.price_single_cents,
            price_pair_cents=command.price_pair_cents,
            capacity=command.capacity,
        )
        current_domain.repository_for(CourseTrack).add(track)
        return str(track.id)


@registrar.command_handler(part_of=Event)
class EventCommandHandler:
    @handle(PublishEvent)
    def publish_event(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)
        event = Event(
            organizer_id=command.organizer_id,
            title=command.title,
            price_cents=command.price_cents,
            member_price_cents=command.member_price_cents,
            capacity=command.capacity,
            sales_open_at=command.sales_open_at,
            sales_close_at=command.sales_close_at,
            starts_at=command.starts_at,
        )
        current_domain.repository_for(Event).add(event)
        return str(event.id)


@registrar.command_handler(part_of=MembershipTier)
class MembershipTierCommandHandler:
    @handle(CreateMembershipTier)
    def create_tier(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)
        tier = MembershipTier(
            organizer_id=command.organizer_id,
            name=command.name,
            price_cents=command.price_cents,
            validation_required=command.validation_required,
            mva_enabled=command.mva_enabled,
            validity_months=command.validity_months,
        )
        current_domain.repository_for(MembershipTier).add(tier)
        return str(tier.id)

"""Organizer staff commands for defining and revising discount rules."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from registrar.access import get_gate
from registrar.catalogue.catalogue import CoursePeriod
from registrar.discount.rule import DiscountRule
from registrar.domain import registrar

logger = structlog.get_logger(__name__)


@registrar.command(part_of="DiscountRule")
class CreateDiscountRule:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    period_id = Identifier(required=True)
    code = String(required=True, max_length=20)
    name = String(required=True, max_length=200)
    priority = Integer(required=True)
    rule_type = String(required=True, max_length=50)
    config = Text(required=True)  # JSON object
    enabled = Boolean(default=True)


@registrar.command(part_of="DiscountRule")
class UpdateDiscountRule:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    rule_id = Identifier(required=True)
    name = String(max_length=200)
    priority = Integer()
    rule_type = String(max_length=50)
    config = Text()


@registrar.command(part_of="DiscountRule")
class SetDiscountRuleEnabled:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    rule_id = Identifier(required=True)
    enabled = Boolean(required=True)


def _rule_of_organizer(rule_id, organizer_id) -> DiscountRule:
    rule = current_domain.repository_for(DiscountRule).get(rule_id)
    if str(rule.organizer_id) != str(organizer_id):
        raise ObjectNotFoundError(f"DiscountRule with id {rule_id} does not exist")
    return rule


@registrar.command_handler(part_of=DiscountRule)
class DiscountRuleCommandHandler:
    @handle(CreateDiscountRule)
    def create_rule(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)

        period = current_domain.repository_for(CoursePeriod).get(command.period_id)
        if str(period.organizer_id) != str(command.organizer_id):
            raise ObjectNotFoundError(f"CoursePeriod with id {command.period_id} does not exist")

        repo = current_domain.repository_for(DiscountRule)
        existing = repo._dao.query.filter(period_id=str(command.period_id)).all().items
        if any(rule.code == command.code for rule in existing):
            raise ValidationError({"code": [f"Code '{command.code}' is already used in this period"]})

        rule = DiscountRule.define(
            organizer_id=command.organizer_id,
            period_id=command.period_id,
            code=command.code,
            name=command.name,
            priority=command.priority,
            rule_type=command.rule_type,
            config=command.config,
            sequence=max((rule.sequence or 0 for rule in existing), default=0) + 1,
            enabled=command.enabled,
        )
        repo.add(rule)

        logger.info("Discount rule created", rule_id=str(rule.id), code=rule.code, period_id=str(rule.period_id))
        return str(rule.id)

    @handle(UpdateDiscountRule)
    def update_rule(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)

        rule = _rule_of_organizer(command.rule_id, command.organizer_id)
        rule.revise(
            name=command.name,
            priority=command.priority,
            rule_type=command.rule_type,
            config=command.config,
        )
        current_domain.repository_for(DiscountRule).add(rule)

    @handle(SetDiscountRuleEnabled)
    def set_enabled(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)

        rule = _rule_of_organizer(command.rule_id, command.organizer_id)
        rule.set_enabled(command.enabled)
        current_domain.repository_for(DiscountRule).add(rule)

"""Person: someone who buys courses, event seats or memberships."""

from datetime import UTC, datetime

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from registrar.domain import registrar


@registrar.aggregate
class Person:
    email = String(required=True, max_length=254)
    first_name = String(required=True, max_length=100)
    last_name = String(max_length=100)
    user_id = Identifier()
    created_at = DateTime(default=lambda: datetime.now(UTC))

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@registrar.command(part_of="Person")
class RegisterPerson:
    email = String(required=True, max_length=254)
    first_name = String(required=True, max_length=100)
    last_name = String(max_length=100)
    user_id = Identifier()


@registrar.command_handler(part_of=Person)
class PersonCommandHandler:
    @handle(RegisterPerson)
    def register_person(self, command):
        person = Person(
            email=command.email.strip().lower(),
            first_name=command.first_name,
            last_name=command.last_name,
            user_id=command.user_id,
        )
        current_domain.repository_for(Person).add(person)
        return str(person.id)

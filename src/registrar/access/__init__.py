"""Access gate registry plus the ownership checks of self-service flows."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from registrar.access.grants import GrantTable
from registrar.access.port import AccessGate
from registrar.errors import AccessDenied

_current_gate: AccessGate | None = None


def get_gate() -> AccessGate:
    global _current_gate
    if _current_gate is None:
        _current_gate = GrantTable()
    return _current_gate


def set_gate(gate: AccessGate) -> None:
    global _current_gate
    _current_gate = gate


def reset_gate() -> None:
    global _current_gate
    _current_gate = None


def assert_owner(actor_person_id: str | None, owner_person_id, resource: str = "Resource") -> None:
    # Same message for foreign and missing resources
    if not actor_person_id or str(actor_person_id) != str(owner_person_id):
        raise AccessDenied(f"{resource} not found or access denied")


def load_owned(aggregate_cls, identifier, actor_person_id: str | None, owner_field: str = "person_id"):
    """Fetch an aggregate the acting person owns, or raise ``AccessDenied``."""
    resource = aggregate_cls.__name__
    if not actor_person_id:
        raise AccessDenied("Authentication required")
    try:
        record = current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        raise AccessDenied(f"{resource} not found or access denied") from None
    assert_owner(actor_person_id, getattr(record, owner_field), resource)
    return record

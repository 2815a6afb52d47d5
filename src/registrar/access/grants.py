"""In-memory grant table used as the default access gate."""

from collections import defaultdict

from registrar.access.port import AccessGate
from registrar.errors import AccessDenied


class GrantTable(AccessGate):
    def __init__(self) -> None:
        self.admins: set[str] = set()
        self.organizer_staff: dict[str, set[str]] = defaultdict(set)

    def grant_admin(self, actor_id: str) -> None:
        self.admins.add(actor_id)

    def grant_organizer(self, actor_id: str, organizer_id: str) -> None:
        self.organizer_staff[actor_id].add(organizer_id)

    def revoke_all(self, actor_id: str) -> None:
        self.admins.discard(actor_id)
        self.organizer_staff.pop(actor_id, None)

    def assert_admin(self, actor_id: str | None) -> None:
        if not actor_id or actor_id not in self.admins:
            raise AccessDenied("Administrator access required")

    def assert_organizer_access(self, actor_id: str | None, organizer_id: str) -> None:
        if not actor_id:
            raise AccessDenied("Authentication required")
        if actor_id in self.admins:
            return
        if organizer_id not in self.organizer_staff.get(actor_id, set()):
            raise AccessDenied("No access to this organizer")

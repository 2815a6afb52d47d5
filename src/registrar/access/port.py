"""Authorization gate port.

Callers are identified by an opaque actor id. Checks raise
:class:`registrar.errors.AccessDenied` and return nothing on success.
"""

from abc import ABC, abstractmethod


class AccessGate(ABC):
    @abstractmethod
    def assert_organizer_access(self, actor_id: str | None, organizer_id: str) -> None: ...

    @abstractmethod
    def assert_admin(self, actor_id: str | None) -> None: ...

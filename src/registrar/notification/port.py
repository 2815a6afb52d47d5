"""Transactional notification port.

Templates are rendered by the sender; this side only picks the slug and
supplies the variables.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class NotificationSender(ABC):
    @abstractmethod
    def send_transactional(self, template_slug: str, recipient_email: str, variables: dict) -> DeliveryResult: ...

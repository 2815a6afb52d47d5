"""Notification sender that records messages in memory."""

from uuid import uuid4

from registrar.notification.port import DeliveryResult, NotificationSender


class FakeNotificationSender(NotificationSender):
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.should_succeed = True
        self.raise_error = False
        self.failure_reason = "Delivery failed"

    def configure(
        self,
        should_succeed: bool = True,
        raise_error: bool = False,
        failure_reason: str = "Delivery failed",
    ) -> None:
        self.should_succeed = should_succeed
        self.raise_error = raise_error
        self.failure_reason = failure_reason

    def reset(self) -> None:
        self.sent.clear()
        self.configure()

    def send_transactional(self, template_slug: str, recipient_email: str, variables: dict) -> DeliveryResult:
        if self.raise_error:
            raise ConnectionError(self.failure_reason)
        if not self.should_succeed:
            return DeliveryResult(success=False, error=self.failure_reason)

        message_id = f"msg-{uuid4().hex[:12]}"
        self.sent.append(
            {
                "message_id": message_id,
                "template_slug": template_slug,
                "recipient_email": recipient_email,
                "variables": dict(variables),
            }
        )
        return DeliveryResult(success=True, message_id=message_id)

"""Best-effort delivery of transactional notifications."""

import structlog

from registrar.notification import get_sender

logger = structlog.get_logger(__name__)


def notify(template_slug: str, recipient_email: str | None, variables: dict) -> bool:
    """Send one notification. Failures are logged and reported as ``False``."""
    if not recipient_email:
        logger.warning("Notification skipped, no recipient", template=template_slug)
        return False

    try:
        result = get_sender().send_transactional(template_slug, recipient_email, variables)
    except Exception as e:
        logger.error(
            "Notification send raised",
            template=template_slug,
            recipient=recipient_email,
            error=str(e),
        )
        return False

    if not result.success:
        logger.warning(
            "Notification not delivered",
            template=template_slug,
            recipient=recipient_email,
            error=result.error,
        )
        return False

    logger.info("Notification sent", template=template_slug, message_id=result.message_id)
    return True

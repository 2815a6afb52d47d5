"""Registrar bounded context: course, event and membership sales.

Owns pricing, the order lifecycle, fulfillment of paid orders into
tickets, memberships and invoices, and the waitlist offer cycle. A single
domain keeps fulfillment inside one unit of work across all aggregates.
"""

from protean.domain import Domain

from registrar.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

registrar = Domain(name="registrar")

"""Application settings read from the environment."""

import os

OFFER_HOURS = int(os.environ.get("REGISTRAR_OFFER_HOURS", "48"))
INVOICE_DUE_DAYS = int(os.environ.get("REGISTRAR_INVOICE_DUE_DAYS", "14"))
CURRENCY = os.environ.get("REGISTRAR_CURRENCY", "NOK")
PAYMENT_PROVIDER = os.environ.get("REGISTRAR_PAYMENT_PROVIDER", "STRIPE")

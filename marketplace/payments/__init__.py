"""
Module 'payments' (feature-first): point d'entrée public.
Réunit le payload de commande en attente, le client Paystack, la file de réconciliation et les services.
"""

from .metadata import build_pending_order, serialize_order_data, make_transaction_metadata, extract_order_data
from .service import VerificationResult, initiate_payment, verify_payment
from .callback import CallbackStatus, CallbackOutcome, PaymentCallbackHandler

__all__ = [
    # metadata
    "build_pending_order",
    "serialize_order_data",
    "make_transaction_metadata",
    "extract_order_data",
    # services
    "VerificationResult",
    "initiate_payment",
    "verify_payment",
    # callback
    "CallbackStatus",
    "CallbackOutcome",
    "PaymentCallbackHandler",
]

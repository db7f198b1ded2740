"""
Accès aux données pour la feature 'payments'.
Table payment_reconciliations: file de réconciliation manuelle des paiements
confirmés sans commande (anomalie payé-mais-sans-commande).
"""
from typing import Any, Dict, Optional
import logging

import marketplace.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module marketplace.payments.repository
def insert_reconciliation(
    *,
    reference: str,
    customer_id: Optional[str],
    amount: Optional[int],
    payload: Optional[Dict[str, Any]],
    error: str,
) -> Optional[dict]:
    """
    Enregistre une anomalie 'open' via service-role (bypass RLS).
    Retourne la ligne créée, ou None si l'écriture échoue (loggée).
    """
    row = {
        "reference": reference,
        "customer_id": customer_id,
        "amount": amount,
        "payload": payload,
        "error": error,
        "status": "open",
    }
    try:
        res = supabase_client.get_service_supabase().table("payment_reconciliations").insert(row).execute()
        rows = res.data or []
        return rows[0] if isinstance(rows, list) and rows else row
    except Exception:
        logger.exception("payments.repository.insert_reconciliation failed reference=%s", reference)
        return None

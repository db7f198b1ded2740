"""
Adaptateur Paystack: centralise les appels HTTP et la configuration de la passerelle.
- initialize_transaction: POST /transaction/initialize
- verify_transaction: GET /transaction/verify/{reference}
Chaque appel est une requête awaitable; aucune relance automatique.
"""
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote
import logging

import httpx

from marketplace import config

logger = logging.getLogger(__name__)

# module marketplace.payments.paystack_client
def require_paystack() -> str:
    """Retourne la clé secrète Paystack; RuntimeError si absente (config serveur incomplète)."""
    if not config.PAYSTACK_SECRET_KEY:
        raise RuntimeError("PAYSTACK_SECRET_KEY environment variable is required")
    return config.PAYSTACK_SECRET_KEY

def _headers() -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {require_paystack()}",
        "Content-Type": "application/json",
    }

def make_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Client HTTP de la passerelle (transport injectable pour les tests)."""
    return httpx.AsyncClient(
        base_url=config.PAYSTACK_BASE_URL,
        timeout=config.PAYSTACK_TIMEOUT_SECONDS,
        transport=transport,
    )

def _json_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"status": False, "message": response.text or f"HTTP {response.status_code}"}
    return body if isinstance(body, dict) else {"status": False, "message": str(body)}

async def initialize_transaction(
    *,
    amount: int,
    email: str,
    reference: str,
    callback_url: str,
    metadata: Dict[str, Any],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[bool, Dict[str, Any]]:
    """
    Ouvre une transaction Paystack.
    Retour: (ok, body) où ok = HTTP 2xx et body.status vrai. Lève httpx.HTTPError sur échec réseau.
    """
    payload = {
        "amount": amount,
        "email": email,
        "reference": reference,
        "callback_url": callback_url,
        "metadata": metadata,
    }
    async with make_client(transport) as client:
        response = await client.post("/transaction/initialize", json=payload, headers=_headers())
    body = _json_body(response)
    logger.info("paystack.initialize reference=%s http=%s status=%s", reference, response.status_code, body.get("status"))
    return (response.is_success and bool(body.get("status"))), body

async def verify_transaction(
    reference: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[bool, Dict[str, Any]]:
    """
    Interroge Paystack sur le statut final d'une référence.
    Retour: (ok, body); body["data"]["status"] vaut "success" pour un paiement encaissé.
    """
    async with make_client(transport) as client:
        response = await client.get(f"/transaction/verify/{quote(reference, safe='')}", headers=_headers())
    body = _json_body(response)
    logger.info("paystack.verify reference=%s http=%s status=%s", reference, response.status_code, body.get("status"))
    return (response.is_success and bool(body.get("status"))), body

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from marketplace import config
from marketplace.errors import MarketplaceError
from marketplace.utils.security import require_user
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.payments import service as payments_service
from marketplace.payments.callback import PaymentCallbackHandler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])
callback_router = APIRouter(tags=["Payments callback"])

NO_STORE = {"Cache-Control": "no-store"}


def request_origin(request: Request) -> str:
    """Origine du client (en-tête Origin), sinon l'URL de base du serveur."""
    origin = request.headers.get("origin")
    return origin.rstrip("/") if origin else str(request.base_url).rstrip("/")

async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}

# module marketplace.payments.views
@router.post("/initialize", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def initialize_payment(request: Request):
    """
    Ouvre une transaction passerelle.
    - Entrée JSON: {amount (kobo), email, reference, orderData}
    - 200: {authorization_url, access_code, reference}
    - 400: {error, details?} (validation ou refus passerelle); 500: erreur serveur
    """
    body = await _json_body(request)
    try:
        data = await payments_service.initiate_payment(body, origin=request_origin(request))
        return JSONResponse(data)
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("payments.initialize unexpected error")
        return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(e)})

@router.post("/verify")
async def verify_payment(request: Request):
    """
    Vérifie une référence et crée la commande payée.
    - Entrée JSON: {reference}
    - Toujours 200 {status, message, order_id?} pour les issues logiques; 400 si référence absente.
    """
    body = await _json_body(request)
    try:
        result = await payments_service.verify_payment(body.get("reference"))
        return JSONResponse(result.to_response())
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("payments.verify unexpected error")
        return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(e)})

@callback_router.get(config.PAYMENT_CALLBACK_PATH)
async def payment_callback(request: Request, reference: str = "", user: Dict[str, Any] = Depends(require_user)):
    """
    Page de retour de la passerelle (forme JSON).
    Une seule vérification par requête; succès -> redirection vers la confirmation de commande.
    Le panier serveur est déjà vidé par la vérification, pas de vue locale à vider ici.
    """
    handler = PaymentCallbackHandler(
        payments_service.verify_payment,
        redirect_delay=config.CALLBACK_REDIRECT_DELAY_SECONDS,
    )
    outcome = await handler.handle(reference or request.query_params.get("trxref"))
    return JSONResponse(outcome.to_response(), headers=NO_STORE)

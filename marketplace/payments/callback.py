"""
Retour navigateur après la page hébergée de la passerelle.
Machine à états: loading -> success | failed (terminaux, pas de relance automatique).
"""
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
import inspect
import logging

from pydantic import BaseModel, Field

from .service import VerificationResult

logger = logging.getLogger(__name__)

NO_REFERENCE_MESSAGE = "No payment reference found"
SUPPORT_MESSAGE = "Failed to verify payment. Please contact support."
FAILURE_NAVIGATION = ["/cart", "/orders"]


class CallbackStatus(str, Enum):
    loading = "loading"
    success = "success"
    failed = "failed"


class CallbackOutcome(BaseModel):
    status: CallbackStatus
    message: str = ""
    reference: Optional[str] = None
    order_id: Optional[str] = None
    redirect_to: Optional[str] = None
    redirect_after: Optional[int] = None
    navigation: List[str] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class PaymentCallbackHandler:
    """
    Pilote une seule vérification par référence.
    - verify: coroutine reference -> VerificationResult
    - clear_cart: vidage de la vue panier locale (idempotent), sync ou async
    """

    def __init__(
        self,
        verify: Callable[[str], Awaitable[VerificationResult]],
        clear_cart: Optional[Callable[[], Any]] = None,
        redirect_delay: int = 3,
    ):
        self._verify = verify
        self._clear_cart = clear_cart
        self.redirect_delay = redirect_delay
        self.outcome = CallbackOutcome(status=CallbackStatus.loading)

    @property
    def status(self) -> CallbackStatus:
        return self.outcome.status

    @property
    def is_terminal(self) -> bool:
        return self.outcome.status != CallbackStatus.loading

    def _failed(self, message: str, reference: Optional[str]) -> CallbackOutcome:
        return CallbackOutcome(
            status=CallbackStatus.failed,
            message=message,
            reference=reference,
            navigation=list(FAILURE_NAVIGATION),
        )

    async def _clear_local_cart(self) -> None:
        if self._clear_cart is None:
            return
        try:
            result = self._clear_cart()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning("payments.callback local cart clear failed error=%s", e)

    async def handle(self, reference: Optional[str]) -> CallbackOutcome:
        if self.is_terminal:
            return self.outcome

        reference = (reference or "").strip() or None
        if not reference:
            self.outcome = self._failed(NO_REFERENCE_MESSAGE, None)
            return self.outcome

        try:
            result = await self._verify(reference)
        except Exception:
            logger.exception("payments.callback verification error reference=%s", reference)
            self.outcome = self._failed(SUPPORT_MESSAGE, reference)
            return self.outcome

        if result.status == "success" and result.order_id:
            await self._clear_local_cart()
            self.outcome = CallbackOutcome(
                status=CallbackStatus.success,
                message=result.message,
                reference=reference,
                order_id=result.order_id,
                redirect_to=f"/orders/{result.order_id}",
                redirect_after=self.redirect_delay,
            )
        else:
            self.outcome = self._failed(result.message or SUPPORT_MESSAGE, reference)
        logger.info("payments.callback reference=%s status=%s", reference, self.outcome.status.value)
        return self.outcome

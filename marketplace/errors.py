"""
Taxonomie d'erreurs du flux checkout -> paiement -> commande.

- ValidationError: entrée absente/malformée, levée avant tout appel externe.
- GatewayError: la passerelle de paiement a refusé ou échoué la requête.
- PersistenceError: le data store a rejeté une écriture.
- AnomalyError: paiement confirmé par la passerelle mais commande non persistée.
"""
from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(MarketplaceError):
    """Entrée invalide. `details` porte éventuellement la carte champ -> message."""


class GatewayError(MarketplaceError):
    """La passerelle a répondu en échec; `details` reprend son message."""


class PersistenceError(MarketplaceError):
    pass


class AnomalyError(MarketplaceError):
    """
    Argent encaissé sans commande correspondante.
    Conserve la référence et le payload pour la réconciliation manuelle.
    """

    def __init__(self, message: str, reference: str, payload: Optional[Dict[str, Any]] = None, details: Any = None):
        super().__init__(message, details)
        self.reference = reference
        self.payload = payload

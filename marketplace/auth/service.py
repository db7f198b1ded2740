"""
Identité (fournisseur de session Supabase Auth).
Normalise l'utilisateur courant en {id, email, role, metadata} pour les dépendances require_user/require_admin.
"""
from typing import Dict, Any
from .repository import get_user_from_access_token as _repo_get_user_from_token

ROLES = ("admin", "vendor", "customer")

def determine_role(metadata: Dict[str, Any] | None) -> str:
    role_lower = str((metadata or {}).get("role", "")).lower()
    if role_lower in ROLES:
        return role_lower
    return "customer"

def get_user_from_token(token: str) -> Dict[str, Any]:
    raw = _repo_get_user_from_token(token)
    metadata = raw.get("user_metadata") or {}
    return {
        "id": raw.get("id"),
        "email": raw.get("email"),
        "role": determine_role(metadata),
        "metadata": metadata,
    }

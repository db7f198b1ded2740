"""
Validation du formulaire de checkout (livraison / contact).
Pure: aucun effet de bord. Le paiement n'est jamais initié avec des données de livraison malformées.
"""
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from marketplace.errors import ValidationError

# Noms envoyés par le client web (camelCase) -> champs du modèle
FIELD_ALIASES = {
    "firstName": "first_name",
    "lastName": "last_name",
}

# Messages par (champ, type d'erreur pydantic)
MESSAGES = {
    ("first_name", "string_too_short"): "First name is required",
    ("first_name", "string_too_long"): "First name must be less than 50 characters",
    ("last_name", "string_too_short"): "Last name is required",
    ("last_name", "string_too_long"): "Last name must be less than 50 characters",
    ("phone", "string_too_short"): "Phone number must be at least 10 digits",
    ("phone", "string_too_long"): "Phone number must be less than 15 digits",
    ("address", "string_too_short"): "Address must be at least 10 characters",
    ("address", "string_too_long"): "Address must be less than 500 characters",
    ("city", "string_too_short"): "City is required",
    ("city", "string_too_long"): "City must be less than 100 characters",
    ("state", "string_too_short"): "State is required",
    ("state", "string_too_long"): "State must be less than 100 characters",
    ("notes", "string_too_long"): "Notes must be less than 1000 characters",
}

REQUIRED_MESSAGES = {
    "first_name": "First name is required",
    "last_name": "Last name is required",
    "email": "Invalid email address",
    "phone": "Phone number must be at least 10 digits",
    "address": "Address must be at least 10 characters",
    "city": "City is required",
    "state": "State is required",
}


class CheckoutForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    phone: str = Field(min_length=10, max_length=15)
    address: str = Field(min_length=10, max_length=500)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("email", mode="before")
    @classmethod
    def _email_length(cls, v: Any) -> Any:
        if isinstance(v, str) and len(v.strip()) > 255:
            raise ValueError("Email must be less than 255 characters")
        return v

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def delivery_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state}"


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {FIELD_ALIASES.get(k, k): v for k, v in (data or {}).items()}


def _message_for(field: str, err: Dict[str, Any]) -> str:
    kind = err.get("type", "")
    if kind == "missing":
        return REQUIRED_MESSAGES.get(field, f"{field} is required")
    if field == "email":
        msg = str(err.get("msg") or "")
        return "Email must be less than 255 characters" if "255" in msg else "Invalid email address"
    return MESSAGES.get((field, kind)) or str(err.get("msg") or "Invalid value")


def validate_checkout_form(data: Dict[str, Any]) -> Tuple[Optional[CheckoutForm], Dict[str, str]]:
    """
    Valide les champs saisis par l'acheteur.
    Retour: (formulaire normalisé, {}) si valide, sinon (None, {champ: premier message d'erreur}).
    """
    try:
        return CheckoutForm.model_validate(_normalize_keys(data)), {}
    except PydanticValidationError as e:
        errors: Dict[str, str] = {}
        for err in e.errors():
            loc = err.get("loc") or ("form",)
            field = str(loc[0])
            # Premier message par champ, comme l'affichage sous chaque input
            errors.setdefault(field, _message_for(field, err))
        return None, errors


def require_valid_checkout_form(data: Dict[str, Any]) -> CheckoutForm:
    form, errors = validate_checkout_form(data)
    if form is None:
        raise ValidationError("Invalid checkout form", details=errors)
    return form

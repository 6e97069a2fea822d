# ============================================
# Contact Detail Validation
# ============================================
"""
Validate patient contact details entered with a scan upload.

Failures are returned as a {field: message} dict so every problem can be
shown next to its input. Nothing here performs I/O.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional


PHONE_PATTERN = re.compile(r"^[+]?[1-9]\d{1,14}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationError(ValueError):
    """Raised when input fails validation. errors maps field -> message."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


@dataclass
class PatientDetails:
    """Contact details collected alongside a scan upload."""
    name: str
    phone: str
    email: str
    age: Optional[int] = None
    gender: Optional[str] = None
    address: str = ""


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(PHONE_SEPARATORS.sub("", phone)))


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def validate_patient_details(details: PatientDetails) -> Dict[str, str]:
    """
    Check name, phone and email.

    Returns:
        Empty dict when valid, otherwise field -> error message
    """
    errors = {}

    if not (details.name or "").strip():
        errors["name"] = "Patient name is required"

    phone = (details.phone or "").strip()
    if not phone:
        errors["phone"] = "Phone number is required"
    elif not is_valid_phone(phone):
        errors["phone"] = "Please enter a valid phone number"

    email = (details.email or "").strip()
    if not email:
        errors["email"] = "Email is required"
    elif not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    return errors

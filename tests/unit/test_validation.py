# ============================================
# Unit Tests for Contact Detail Validation
# ============================================
"""
Tests for patient name, phone and email checks.
"""

import pytest

from mediscan.validation import (
    PatientDetails,
    ValidationError,
    is_valid_email,
    is_valid_phone,
    validate_patient_details,
)


class TestPhone:
    """Tests for phone number validation."""

    @pytest.mark.parametrize("phone", [
        "+15550100",
        "+1 (555) 010-0999",
        "20 7946 0958",
        "919876543210",
    ])
    def test_valid(self, phone):
        assert is_valid_phone(phone)

    @pytest.mark.parametrize("phone", [
        "0123456",
        "abc",
        "+",
        "1",
        "+1234567890123456",
    ])
    def test_invalid(self, phone):
        assert not is_valid_phone(phone)


class TestEmail:
    @pytest.mark.parametrize("email,valid", [
        ("jane@example.com", True),
        ("a.b+c@clinic.co.uk", True),
        ("jane@example", False),
        ("jane example@x.com", False),
        ("@example.com", False),
    ])
    def test_email(self, email, valid):
        assert is_valid_email(email) is valid


class TestValidatePatientDetails:
    """Tests for the combined field check."""

    def test_valid_details(self):
        details = PatientDetails(name="Jane Roe", phone="+1 555 0100", email="jane@example.com")

        assert validate_patient_details(details) == {}

    def test_missing_fields(self):
        errors = validate_patient_details(PatientDetails(name="  ", phone="", email=""))

        assert errors == {
            "name": "Patient name is required",
            "phone": "Phone number is required",
            "email": "Email is required",
        }

    def test_malformed_fields(self):
        errors = validate_patient_details(PatientDetails(name="Jane", phone="12ab", email="nope"))

        assert errors == {
            "phone": "Please enter a valid phone number",
            "email": "Please enter a valid email address",
        }


class TestValidationError:
    def test_message_lists_fields(self):
        error = ValidationError({"phone": "bad", "email": "worse"})

        assert error.errors == {"phone": "bad", "email": "worse"}
        assert str(error) == "phone: bad; email: worse"
        assert isinstance(error, ValueError)

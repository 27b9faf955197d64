"""Tests for the customer directory and shared validators."""

import pytest

from glam_booking.domain.customers.schemas import CustomerCreate
from glam_booking.domain.customers.service import CustomerService
from glam_booking.shared.validators import parse_hhmm, validate_email, validate_phone
from glam_booking.utils.sanitization import validate_and_sanitize_input


class TestFindOrCreate:
    def test_creates_on_first_booking(self, db):
        customer = CustomerService(db).find_or_create(
            CustomerCreate(firstName="Lina", lastName="Martin", email="Lina@Example.com")
        )

        assert customer.id is not None
        assert customer.email == "lina@example.com"

    def test_reuses_by_email_and_fills_missing_phone(self, db, customer):
        found = CustomerService(db).find_or_create(
            CustomerCreate(
                firstName="Awa", lastName="D.", email="AWA@example.com", phone="+44 20 7946 0958"
            )
        )

        assert found.id == customer.id
        assert found.last_name == "Diallo"
        assert found.phone == "+442079460958"

    def test_blank_name_is_rejected(self):
        with pytest.raises(ValueError):
            CustomerCreate(firstName="  ", lastName="Martin", email="lina@example.com")

    @pytest.mark.parametrize("email", ["", "  "])
    def test_blank_email_is_rejected(self, email):
        with pytest.raises(ValueError, match="Email is required"):
            CustomerCreate(firstName="Lina", lastName="Martin", email=email)


class TestValidators:
    def test_french_phone_is_normalized(self):
        assert validate_phone("06.12.34.56.78") == "+33612345678"

    def test_short_phone_is_rejected(self):
        with pytest.raises(ValueError):
            validate_phone("12345")

    def test_email_is_lowercased(self):
        assert validate_email(" Awa@Example.COM ") == "awa@example.com"

    @pytest.mark.parametrize("value", ["9:00", "09h00", "24:00", None])
    def test_parse_hhmm_rejects(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)

    def test_notes_are_escaped(self):
        assert validate_and_sanitize_input("<b>allergie</b>") == "&lt;b&gt;allergie&lt;/b&gt;"

    def test_empty_notes_become_none(self):
        assert validate_and_sanitize_input("   ") is None

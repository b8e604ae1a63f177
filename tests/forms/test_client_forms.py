"""Tests for client form validation."""

import pytest
from pydantic import ValidationError

from src.forms.clients import ClientCreateForm, ClientUpdateForm
from src.forms.errors import field_errors_from_validation


def test_tax_id_normalized_to_digits() -> None:
    form = ClientCreateForm(name="  Acme Logistics ", tax_id="12.345.678/0001-90")

    assert form.name == "Acme Logistics"
    assert form.tax_id == "12345678000190"


@pytest.mark.parametrize("tax_id", ["1234567800019", "123456780001901", "", "abc"])
def test_tax_id_must_have_14_digits(tax_id: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        ClientCreateForm(name="Acme", tax_id=tax_id)
    assert field_errors_from_validation(excinfo.value)["tax_id"] == "Tax ID must have 14 digits"


def test_optional_fields_blank_to_none() -> None:
    form = ClientCreateForm(
        name="Acme",
        tax_id="12345678000190",
        trade_name=" ",
        email="",
        phone="",
        address="",
    )

    assert form.trade_name is None
    assert form.email is None
    assert form.phone is None
    assert form.address is None


def test_email_validated_and_lowercased() -> None:
    form = ClientCreateForm(name="Acme", tax_id="12345678000190", email="Ops@Acme.COM")
    assert form.email == "ops@acme.com"

    with pytest.raises(ValidationError) as excinfo:
        ClientCreateForm(name="Acme", tax_id="12345678000190", email="not-an-email")
    assert "email" in field_errors_from_validation(excinfo.value)


@pytest.mark.parametrize(
    ("field", "length"),
    [("name", 201), ("trade_name", 201), ("phone", 21), ("address", 301)],
)
def test_length_limits(field: str, length: int) -> None:
    payload = {"name": "Acme", "tax_id": "12345678000190", field: "x" * length}
    with pytest.raises(ValidationError) as excinfo:
        ClientCreateForm(**payload)
    assert field in field_errors_from_validation(excinfo.value)


def test_name_required() -> None:
    with pytest.raises(ValidationError):
        ClientCreateForm(name="   ", tax_id="12345678000190")


def test_update_form_has_no_tax_id() -> None:
    form = ClientUpdateForm(phone="11 5555-0000")
    assert form.model_dump(exclude_unset=True) == {"phone": "11 5555-0000"}
    assert "tax_id" not in ClientUpdateForm.model_fields

"""Person field validation."""
from datetime import date

import pytest

from salon.shared.validators import (
    validate_birth_date,
    validate_email,
    validate_name,
    validate_password,
    validate_phone,
)


def test_name_is_trimmed_and_needs_two_characters():
    assert validate_name("  Ana ") == "Ana"
    with pytest.raises(ValueError):
        validate_name(" A ")


def test_email_is_lowercased():
    assert validate_email(" Ana@Salon.COM ") == "ana@salon.com"
    with pytest.raises(ValueError):
        validate_email("ana@salon")


def test_phone_needs_eight_digits_in_any_format():
    assert validate_phone("(11) 9999-8888") == "(11) 9999-8888"
    with pytest.raises(ValueError):
        validate_phone("123-456")


@pytest.mark.parametrize("password", ["short#1", "no-digits-here", "NoSpecial123"])
def test_weak_passwords_are_rejected(password):
    with pytest.raises(ValueError):
        validate_password(password)


def test_strong_password_passes():
    assert validate_password("Secret#123") == "Secret#123"


def test_birth_date_must_be_iso():
    assert validate_birth_date("1990-05-17") == date(1990, 5, 17)
    assert validate_birth_date("") is None
    with pytest.raises(ValueError):
        validate_birth_date("17/05/1990")

# -*- coding: utf-8 -*-
"""
Tests de normalización de teléfonos a E.164.
"""

import pytest

from app.shared.utils.phone_utils import (
    InvalidPhoneNumber,
    normalize_phone_number,
    phone_region,
    to_e164,
)


@pytest.mark.parametrize(
    "country, phone, expected",
    [
        ("US", "(415) 555-0100", "+14155550100"),
        ("US", "1 415 555 0100", "+14155550100"),
        ("US", "334 555 0100", "+13345550100"),
        ("us", "650-555-0100", "+16505550100"),
        ("GB", "07700 900123", "+447700900123"),
        ("GB", "+44 (0)7700 900123", "+447700900123"),
        ("GB", "0044 7700 900123", "+447700900123"),
        ("AU", "0412 345 678", "+61412345678"),
        ("AU", "0011 61 412 345 678", "+61412345678"),
        ("IT", "06 1234 5678", "+390612345678"),
        ("DE", "030 123456", "+4930123456"),
        ("BR", "11 91234-5678", "+5511912345678"),
        ("ZA", "082 123 4567", "+27821234567"),
        ("JP", "090-1234-5678", "+819012345678"),
        ("US", "011 44 7700 900123", "+447700900123"),
        ("ZZ", "415 555 0100", "+14155550100"),
        (None, "415 555 0100", "+14155550100"),
    ],
)
def test_to_e164(country, phone, expected):
    assert to_e164(country, phone) == expected


@pytest.mark.parametrize("phone", ["not a phone", "12", ""])
def test_to_e164_rejects_unusable_numbers(phone):
    with pytest.raises(InvalidPhoneNumber):
        to_e164("US", phone)


def test_unknown_country_uses_default_region():
    assert phone_region("ZZ") == "US"
    assert phone_region(None) == "US"
    assert phone_region(" gb ") == "GB"


def test_normalize_phone_number_keeps_digits():
    assert normalize_phone_number("+1 (415) 555-0100") == "14155550100"
    assert normalize_phone_number("") == ""

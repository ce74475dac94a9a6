from __future__ import annotations

from datetime import date

import pytest

from nik_codec import Gender, ParsedNik, decode_nik, encode_nik, resolve_birth_year


def test_encode_male_keeps_day():
    nik = encode_nik(Gender.MALE, date(1990, 1, 15), "32", "01", "01", 1)
    assert nik == "3201011501900001"
    assert nik[6:8] == "15"
    assert nik[8:10] == "01"
    assert nik[10:12] == "90"


def test_encode_female_adds_forty_to_day():
    nik = encode_nik("female", date(1990, 1, 15), "32", "01", "01", 1)
    assert nik == "3201015501900001"


def test_encode_pads_serial_and_last_day_of_month():
    assert encode_nik("female", date(2004, 12, 31), "36", "74", "03", 42) == "3674037112040042"


@pytest.mark.parametrize("kwargs", [
    {"province_code": "3"},
    {"regency_code": "1a"},
    {"district_code": "001"},
    {"serial": 10000},
    {"serial": -1},
    {"gender": "other"},
])
def test_encode_rejects_malformed_parts(kwargs):
    args = {
        "gender": "male",
        "birth_date": date(1990, 1, 15),
        "province_code": "32",
        "regency_code": "01",
        "district_code": "01",
        "serial": 1,
    }
    args.update(kwargs)
    with pytest.raises(ValueError):
        encode_nik(**args)


def test_decode_male():
    parsed = decode_nik("3201011501900001", current_year=2025)
    assert parsed.is_valid
    assert parsed.province_code == "32"
    assert parsed.regency_code == "01"
    assert parsed.district_code == "01"
    assert parsed.gender is Gender.MALE
    assert parsed.serial_number == "0001"
    assert parsed.birth_date == date(1990, 1, 15)


def test_decode_female_removes_offset():
    parsed = decode_nik("3201015501900001", current_year=2025)
    assert parsed.is_valid
    assert parsed.gender is Gender.FEMALE
    assert parsed.birth_date == date(1990, 1, 15)


@pytest.mark.parametrize("nik, expected", [
    ("3201011501100001", date(2010, 1, 15)),
    ("3201011501850001", date(1985, 1, 15)),
    ("3201011501050001", date(2005, 1, 15)),
])
def test_decode_birth_years(nik, expected):
    assert decode_nik(nik, current_year=2025).birth_date == expected


def test_century_boundary_sits_at_current_year():
    assert resolve_birth_year(25, 2025) == 2025
    assert resolve_birth_year(26, 2025) == 1926
    assert resolve_birth_year(99, 2025) == 1999
    assert resolve_birth_year(0, 2025) == 2000


def test_same_nik_decodes_differently_as_years_pass():
    nik = "3201011501250001"
    assert decode_nik(nik, current_year=2025).birth_date == date(2025, 1, 15)
    assert decode_nik(nik, current_year=2024).birth_date == date(1925, 1, 15)


@pytest.mark.parametrize("nik", [
    "3201013201900001",  # 32 January
    "3201011500900001",  # month 00
    "3201011513900001",  # month 13
    "3201010001900001",  # day 00
    "3201014001900001",  # raw day 40 is a male day 40
    "3201017201900001",  # female day 32
    "3201012900000001",  # month 00
    "3201012902010001",  # 29 February 2001
    "3201013104900001",  # 31 April
])
def test_decode_rejects_impossible_dates(nik):
    assert decode_nik(nik, current_year=2025) == ParsedNik.invalid()


def test_decode_leap_day_2000():
    parsed = decode_nik("3201012902000001", current_year=2025)
    assert parsed.is_valid
    assert parsed.birth_date == date(2000, 2, 29)


@pytest.mark.parametrize("nik", [
    "",
    "123",
    "12345678901234567",
    "abcd1234567890ab",
    "1234567890123456a",
    "3201 11501900001",
    "320101150190000١",  # Arabic-Indic digit one
    None,
    3201011501900001,
])
def test_decode_rejects_bad_format_and_resets_fields(nik):
    parsed = decode_nik(nik, current_year=2025)
    assert parsed.is_valid is False
    assert parsed.province_code == ""
    assert parsed.regency_code == ""
    assert parsed.district_code == ""
    assert parsed.birth_date is None
    assert parsed.gender is None
    assert parsed.serial_number == ""


@pytest.mark.parametrize("gender", [Gender.MALE, Gender.FEMALE])
@pytest.mark.parametrize("birth_date", [date(1990, 1, 1), date(1999, 12, 31), date(2000, 2, 29), date(2025, 12, 31)])
def test_round_trip(gender, birth_date):
    nik = encode_nik(gender, birth_date, "34", "71", "14", 9999)
    parsed = decode_nik(nik, current_year=2025)
    assert parsed.is_valid
    assert (parsed.gender, parsed.birth_date) == (gender, birth_date)
    assert (parsed.province_code, parsed.regency_code, parsed.district_code) == ("34", "71", "14")
    assert parsed.serial_number == "9999"


def test_decode_without_year_uses_today():
    assert decode_nik("3201011501900001").birth_date == date(1990, 1, 15)


def test_parsed_to_dict():
    assert decode_nik("3201015501900001", current_year=2025).to_dict() == {
        "province_code": "32",
        "regency_code": "01",
        "district_code": "01",
        "birth_date": "1990-01-15",
        "gender": "female",
        "serial_number": "0001",
        "is_valid": True,
    }
    assert ParsedNik.invalid().to_dict()["birth_date"] is None

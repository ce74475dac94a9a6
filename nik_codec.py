# nik_codec.py
"""
Encode and decode the 16-digit Indonesian NIK (Nomor Induk Kependudukan).

Layout, left to right::

    PP RR DD dd MM YY SSSS
    |  |  |  |  |  |  +-- serial (0000-9999)
    |  |  |  |  |  +----- birth year, last two digits
    |  |  |  |  +-------- birth month (01-12)
    |  |  |  +----------- birth day, +40 for women (01-31 / 41-71)
    |  |  +-------------- district (kecamatan) code
    |  +----------------- regency/city (kabupaten/kota) code
    +-------------------- province code

Pure functions only; no region lookups happen here.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Union

NIK_LENGTH = 16
FEMALE_DAY_OFFSET = 40
MAX_SERIAL = 9999

# ASCII only: \d would also accept other Unicode digits
NIK_RE = re.compile(r'[0-9]{16}')
_CODE_RE = re.compile(r'[0-9]{2}')


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class ParsedNik:
    """Fields recovered from a NIK string.

    An invalid parse keeps every string field empty and leaves birth_date and
    gender as None.
    """
    province_code: str
    regency_code: str
    district_code: str
    birth_date: Optional[date]
    gender: Optional[Gender]
    serial_number: str
    is_valid: bool

    @classmethod
    def invalid(cls) -> "ParsedNik":
        return cls("", "", "", None, None, "", False)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view: ISO date string and plain gender value."""
        return {
            "province_code": self.province_code,
            "regency_code": self.regency_code,
            "district_code": self.district_code,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "gender": self.gender.value if self.gender else None,
            "serial_number": self.serial_number,
            "is_valid": self.is_valid,
        }


def _check_code(label: str, value: str) -> str:
    if not isinstance(value, str) or not _CODE_RE.fullmatch(value):
        raise ValueError(f"{label} must be a two-digit string, got {value!r}")
    return value


def encode_nik(
    gender: Union[Gender, str],
    birth_date: date,
    province_code: str,
    regency_code: str,
    district_code: str,
    serial: int,
) -> str:
    """Build a NIK from its parts.

    Raises:
        ValueError: a code is not two digits, the serial is outside 0-9999, or
            gender is not 'male'/'female'.
    """
    gender = Gender(gender)
    location = (
        _check_code("province_code", province_code)
        + _check_code("regency_code", regency_code)
        + _check_code("district_code", district_code)
    )
    if not 0 <= serial <= MAX_SERIAL:
        raise ValueError(f"serial must be within 0-{MAX_SERIAL}, got {serial}")

    day = birth_date.day + (FEMALE_DAY_OFFSET if gender is Gender.FEMALE else 0)
    dob = f"{day:02d}{birth_date.month:02d}{birth_date.year % 100:02d}"
    return f"{location}{dob}{serial:04d}"


def resolve_birth_year(two_digit_year: int, current_year: int) -> int:
    """Expand a two-digit year around ``current_year``.

    Years up to ``current_year % 100`` land in the current century, anything
    above in the previous one. With current_year=2025, 25 -> 2025 and 26 -> 1926.
    The result therefore shifts as the calendar advances.
    """
    century = current_year // 100 * 100
    if two_digit_year > current_year % 100:
        return century - 100 + two_digit_year
    return century + two_digit_year


def decode_nik(nik: Any, current_year: Optional[int] = None) -> ParsedNik:
    """Parse a NIK without ever raising.

    Anything that is not exactly 16 ASCII digits, or whose date part is not a real
    calendar date once the female offset is removed, yields ``ParsedNik.invalid()``.

    Args:
        nik: Candidate string (non-strings are simply invalid).
        current_year: Reference year for the century rule; defaults to today's.
    """
    if not isinstance(nik, str) or NIK_RE.fullmatch(nik) is None:
        return ParsedNik.invalid()

    province_code, regency_code, district_code = nik[0:2], nik[2:4], nik[4:6]
    day, month, yy = int(nik[6:8]), int(nik[8:10]), int(nik[10:12])
    serial_number = nik[12:16]

    if day > FEMALE_DAY_OFFSET:
        gender = Gender.FEMALE
        day -= FEMALE_DAY_OFFSET
    else:
        gender = Gender.MALE

    if current_year is None:
        current_year = date.today().year
    year = resolve_birth_year(yy, current_year)

    try:
        # date() refuses day 0/32, month 0/13 and Feb 29 outside leap years
        birth_date = date(year, month, day)
    except ValueError:
        return ParsedNik.invalid()

    return ParsedNik(
        province_code=province_code,
        regency_code=regency_code,
        district_code=district_code,
        birth_date=birth_date,
        gender=gender,
        serial_number=serial_number,
        is_valid=True,
    )

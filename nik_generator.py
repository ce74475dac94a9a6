# nik_generator.py
"""
Generate and validate NIKs against the administrative region table.

Two flavours of each operation:

  - ``generate`` / ``validate`` (async): consult the region store for regencies
    and districts, so generated codes are real and validation covers all three
    levels.
  - ``generate_offline`` / ``validate_format`` (sync): never load region
    segments. Offline generation invents regency/district codes; format
    validation only checks the province. Both are weaker guarantees.

Module-level helpers (generate_nik, validate_nik, ...) run against a shared
generator over the bundled dataset.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from nik_codec import Gender, ParsedNik, decode_nik, encode_nik, MAX_SERIAL
from nik_errors import InvalidLocationError, RegionLookupError
from region_repository import RegionRepository
from region_sources import RegionEntry

logger = logging.getLogger(__name__)

BIRTH_DATE_MIN = date(1990, 1, 1)
BIRTH_DATE_MAX = date(2025, 12, 31)


@dataclass(frozen=True)
class NikOptions:
    """Optional overrides for generation; anything left as None is picked at random."""
    gender: Optional[Union[Gender, str]] = None
    birth_date: Optional[date] = None
    province_code: Optional[str] = None
    regency_code: Optional[str] = None
    district_code: Optional[str] = None
    serial: Optional[int] = None


def _has_code(entries: List[RegionEntry], code: str) -> bool:
    return any(e.code == code for e in entries)


class NIKGenerator:
    """Generate, parse, and validate NIKs.

    Args:
        regions: Region store used for province/regency/district codes.
        rng: Random source; pass a seeded ``random.Random`` for reproducible output.
        today: Clock for the two-digit-year century rule when parsing.
    """

    def __init__(
        self,
        regions: Optional[RegionRepository] = None,
        rng: Optional[random.Random] = None,
        today: Callable[[], date] = date.today,
    ):
        self.regions = regions if regions is not None else RegionRepository()
        self.rng = rng if rng is not None else random.Random()
        self.today = today

    # -----------------------
    # Random pickers
    # -----------------------
    def _pick_gender(self, gender: Optional[Union[Gender, str]]) -> Gender:
        if gender is not None:
            return Gender(gender)
        return Gender.MALE if self.rng.random() < 0.5 else Gender.FEMALE

    def _pick_birth_date(self, birth_date: Optional[date]) -> date:
        if birth_date is not None:
            return birth_date
        span = (BIRTH_DATE_MAX - BIRTH_DATE_MIN).days
        return BIRTH_DATE_MIN + timedelta(days=self.rng.randint(0, span))

    def _pick_serial(self, serial: Optional[int]) -> int:
        return serial if serial is not None else self.rng.randint(0, MAX_SERIAL)

    def _pick_province(self, province_code: Optional[str]) -> str:
        if province_code is not None:
            if not self.regions.has_province(province_code):
                raise InvalidLocationError(province_code)
            return province_code
        provinces = self.regions.list_provinces()
        if not provinces:
            raise InvalidLocationError("", message="No provinces available.")
        return self.rng.choice(provinces).code

    # -----------------------
    # Generation
    # -----------------------
    async def generate(self, options: Optional[NikOptions] = None) -> str:
        """Generate a NIK whose location codes exist in the region table.

        Raises:
            InvalidLocationError: the supplied (or resolved) province, regency, or
                district does not exist under its parent.
            RegionDataError: the region data for a listed province or regency is
                unavailable.
        """
        opts = options or NikOptions()
        gender = self._pick_gender(opts.gender)
        birth_date = self._pick_birth_date(opts.birth_date)
        province_code = self._pick_province(opts.province_code)

        regencies = await self.regions.list_regencies(province_code)
        if opts.regency_code is not None:
            regency_code = opts.regency_code
            if not _has_code(regencies, regency_code):
                raise InvalidLocationError(province_code, regency_code, opts.district_code)
        elif regencies:
            regency_code = self.rng.choice(regencies).code
        else:
            raise InvalidLocationError(province_code)

        districts = await self.regions.list_districts(province_code, regency_code)
        if opts.district_code is not None:
            district_code = opts.district_code
        elif districts:
            district_code = self.rng.choice(districts).code
        else:
            raise InvalidLocationError(province_code, regency_code)

        if not _has_code(districts, district_code):
            raise InvalidLocationError(province_code, regency_code, district_code)

        nik = encode_nik(
            gender, birth_date, province_code, regency_code, district_code, self._pick_serial(opts.serial)
        )
        logger.debug("Generated NIK for %s.%s.%s", province_code, regency_code, district_code)
        return nik

    def generate_offline(self, options: Optional[NikOptions] = None) -> str:
        """Generate a NIK without loading regency/district data.

        The province comes from the province table, but regency and district codes
        (when not supplied) are random numbers 01-99. The result is well-formed and
        decodes cleanly, yet is NOT guaranteed to name a real regency or district.

        Raises:
            InvalidLocationError: the supplied province code does not exist.
        """
        opts = options or NikOptions()
        gender = self._pick_gender(opts.gender)
        birth_date = self._pick_birth_date(opts.birth_date)
        province_code = self._pick_province(opts.province_code)
        regency_code = opts.regency_code
        if regency_code is None:
            regency_code = f"{self.rng.randint(1, 99):02d}"
        district_code = opts.district_code
        if district_code is None:
            district_code = f"{self.rng.randint(1, 99):02d}"
        return encode_nik(
            gender, birth_date, province_code, regency_code, district_code, self._pick_serial(opts.serial)
        )

    # -----------------------
    # Parsing & validation
    # -----------------------
    def parse(self, nik: Any) -> ParsedNik:
        return decode_nik(nik, current_year=self.today().year)

    async def validate(self, nik: Any) -> bool:
        """Full validation: format, calendar date, and all three region levels.

        Checks province, then regency under that province, then district under that
        (province, regency), returning False at the first miss.

        Raises:
            RegionLookupError: region data could not be loaded while checking; the
                underlying error (normally a RegionDataError) is chained as
                ``__cause__``.
        """
        parsed = self.parse(nik)
        if not parsed.is_valid:
            return False
        if not self.regions.has_province(parsed.province_code):
            return False

        try:
            regencies = await self.regions.list_regencies(parsed.province_code)
            if not _has_code(regencies, parsed.regency_code):
                return False
            districts = await self.regions.list_districts(parsed.province_code, parsed.regency_code)
        except Exception as e:
            logger.warning("Region lookup failed while validating NIK: %r", e)
            raise RegionLookupError(nik) from e
        return _has_code(districts, parsed.district_code)

    def validate_format(self, nik: Any) -> bool:
        """Format-only validation: well-formed NIK, real date, known province.

        Regency and district codes are NOT checked, so this accepts NIKs that
        ``validate`` rejects. Never raises.
        """
        parsed = self.parse(nik)
        return parsed.is_valid and self.regions.has_province(parsed.province_code)

    async def describe(self, nik: Any) -> Optional[Dict[str, Any]]:
        """Parsed fields plus region names, or None when the NIK does not parse."""
        parsed = self.parse(nik)
        if not parsed.is_valid:
            return None
        out = parsed.to_dict()
        out["region"] = await self.regions.describe(
            parsed.province_code, parsed.regency_code, parsed.district_code
        )
        return out


# -----------------------
# Module-level API over the bundled dataset
# -----------------------
_default_generator: Optional[NIKGenerator] = None


def get_default_generator() -> NIKGenerator:
    global _default_generator
    if _default_generator is None:
        _default_generator = NIKGenerator()
    return _default_generator


async def generate_nik(options: Optional[NikOptions] = None) -> str:
    return await get_default_generator().generate(options)


def generate_nik_sync(options: Optional[NikOptions] = None) -> str:
    return get_default_generator().generate_offline(options)


def parse_nik(nik: Any) -> ParsedNik:
    return get_default_generator().parse(nik)


async def validate_nik(nik: Any) -> bool:
    return await get_default_generator().validate(nik)


def validate_nik_sync(nik: Any) -> bool:
    return get_default_generator().validate_format(nik)


def get_provinces() -> List[RegionEntry]:
    return get_default_generator().regions.list_provinces()


async def get_regencies(province_code: str) -> List[RegionEntry]:
    return await get_default_generator().regions.list_regencies(province_code)


async def get_districts(province_code: str, regency_code: str) -> List[RegionEntry]:
    return await get_default_generator().regions.list_districts(province_code, regency_code)

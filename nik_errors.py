# nik_errors.py

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional


class NIKError(Exception):
    """Base error for NIK generation, validation, and region lookups.

    Callers can catch this single type, or one of the subclasses below when they
    need to tell a bad location apart from missing reference data.
    """

    def __init__(self, code: str, message: str, *, context: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "context": dict(self.context)}


class InvalidLocationError(NIKError):
    """Raised when a generated NIK would point at a region that does not exist."""

    def __init__(
        self,
        province_code: str,
        regency_code: Optional[str] = None,
        district_code: Optional[str] = None,
        message: str = "Kode wilayah tidak valid.",
    ) -> None:
        super().__init__(
            "INVALID_LOCATION",
            message,
            context={
                "province_code": province_code,
                "regency_code": regency_code,
                "district_code": district_code,
            },
        )
        self.province_code = province_code
        self.regency_code = regency_code
        self.district_code = district_code


class RegionDataKind(str, Enum):
    REGENCY_NOT_FOUND = "REGENCY_NOT_FOUND"
    DISTRICT_NOT_FOUND = "DISTRICT_NOT_FOUND"


class RegionDataError(NIKError):
    """Reference data for a province (or province/regency pair) could not be loaded."""

    def __init__(self, kind: RegionDataKind, province_code: str, regency_code: Optional[str] = None) -> None:
        if kind is RegionDataKind.REGENCY_NOT_FOUND:
            message = f"Failed to load regency data for province {province_code}"
        else:
            message = f"Failed to load district data for regency {province_code}.{regency_code}"
        super().__init__(
            kind.value,
            message,
            context={"province_code": province_code, "regency_code": regency_code},
        )
        self.kind = kind
        self.province_code = province_code
        self.regency_code = regency_code


class RegionLookupError(NIKError):
    """Full validation could not consult the region store.

    The underlying RegionDataError is chained as ``__cause__``.
    """

    def __init__(self, nik: str, message: str = "Error validating NIK") -> None:
        super().__init__("VALIDATION_ERROR", message, context={"nik": nik})
        self.nik = nik

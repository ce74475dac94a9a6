from __future__ import annotations

import random
from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Tuple

import pytest

from nik_generator import NIKGenerator
from region_repository import RegionRepository
from region_sources import RegionEntry

TODAY = date(2025, 6, 1)

PROVINCES = [("11", "ACEH"), ("31", "DKI JAKARTA")]
REGENCIES = {
    "11": [("01", "KABUPATEN ACEH SELATAN"), ("71", "KOTA BANDA ACEH")],
    "31": [("01", "KABUPATEN ADM. KEPULAUAN SERIBU"), ("71", "KOTA ADM. JAKARTA PUSAT")],
}
DISTRICTS = {
    ("11", "01"): [("01", "BAKONGAN"), ("02", "KLUET UTARA")],
    ("11", "71"): [("01", "MEURAXA"), ("02", "JAYA BARU")],
    ("31", "01"): [("01", "KEPULAUAN SERIBU UTARA"), ("02", "KEPULAUAN SERIBU SELATAN")],
    ("31", "71"): [("01", "GAMBIR"), ("06", "MENTENG")],
}


class FakeRegionSource:
    """In-memory region source that counts how often each segment is loaded."""

    def __init__(
        self,
        provinces: Optional[List[Tuple[str, str]]] = None,
        regencies: Optional[Dict[str, List[Tuple[str, str]]]] = None,
        districts: Optional[Dict[Tuple[str, str], List[Tuple[str, str]]]] = None,
    ):
        self.provinces = PROVINCES if provinces is None else provinces
        self.regencies = REGENCIES if regencies is None else regencies
        self.districts = DISTRICTS if districts is None else districts
        self.calls: Counter = Counter()

    def load_provinces(self) -> List[RegionEntry]:
        self.calls["provinces"] += 1
        return [RegionEntry(code, name) for code, name in self.provinces]

    def load_regencies(self, province_code: str) -> List[RegionEntry]:
        self.calls[("regencies", province_code)] += 1
        return [RegionEntry(code, name) for code, name in self.regencies[province_code]]

    def load_districts(self, province_code: str, regency_code: str) -> List[RegionEntry]:
        self.calls[("districts", province_code, regency_code)] += 1
        return [RegionEntry(code, name) for code, name in self.districts[(province_code, regency_code)]]

    def loaded(self, kind: str) -> int:
        return sum(n for key, n in self.calls.items() if isinstance(key, tuple) and key[0] == kind)


def make_generator(source: FakeRegionSource, seed: int = 1234) -> NIKGenerator:
    return NIKGenerator(RegionRepository(source), rng=random.Random(seed), today=lambda: TODAY)


@pytest.fixture
def source() -> FakeRegionSource:
    return FakeRegionSource()


@pytest.fixture
def regions(source: FakeRegionSource) -> RegionRepository:
    return RegionRepository(source)


@pytest.fixture
def generator(source: FakeRegionSource) -> NIKGenerator:
    return make_generator(source)


@pytest.fixture
def broken_source() -> FakeRegionSource:
    """Province 12 is listed without regency data; regency 11.02 without district data."""
    return FakeRegionSource(
        provinces=PROVINCES + [("12", "SUMATERA UTARA"), ("19", "KEPULAUAN BANGKA BELITUNG")],
        regencies={**REGENCIES, "11": REGENCIES["11"] + [("02", "KABUPATEN ACEH TENGGARA")], "19": []},
    )

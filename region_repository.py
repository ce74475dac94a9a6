# region_repository.py

from __future__ import annotations

import asyncio
import logging
import os
import string
import unicodedata
from functools import lru_cache
from pathlib import Path
from typing import Awaitable, Callable, Dict, Hashable, List, Optional, Tuple

import Levenshtein

from nik_errors import RegionDataError, RegionDataKind
from region_sources import RegionDataSource, RegionEntry, SplitJsonRegionSource

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "NIK_REGION_DATA_DIR"


def default_data_dir() -> Path:
    """Bundled split dataset, unless ``NIK_REGION_DATA_DIR`` points elsewhere."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override)
    return Path(__file__).resolve().parent / "data"


# ----------------------------
# Cache
# ----------------------------
class RegionCache:
    """Memo of loaded regency and district lists.

    Regencies are keyed by province code, districts by the (province, regency)
    pair so equal regency codes under different provinces never collide. Entries
    live as long as the cache; reference data is static so nothing is evicted.
    """

    def __init__(self) -> None:
        self.regencies: Dict[str, List[RegionEntry]] = {}
        self.districts: Dict[Tuple[str, str], List[RegionEntry]] = {}

    def get_regencies(self, province_code: str) -> Optional[List[RegionEntry]]:
        return self.regencies.get(province_code)

    def put_regencies(self, province_code: str, entries: List[RegionEntry]) -> None:
        self.regencies[province_code] = entries

    def get_districts(self, province_code: str, regency_code: str) -> Optional[List[RegionEntry]]:
        return self.districts.get((province_code, regency_code))

    def put_districts(self, province_code: str, regency_code: str, entries: List[RegionEntry]) -> None:
        self.districts[(province_code, regency_code)] = entries


# ----------------------------
# Repository
# ----------------------------
class RegionRepository:
    """Three-level region store (province -> regency -> district) for NIK work.

    What:
        Provinces are loaded eagerly and listed synchronously. Regencies and
        districts are loaded lazily per parent, off the event loop, and memoized
        in a RegionCache. Lookups for a missing parent raise RegionDataError
        instead of pretending the parent has no children.

    Why:
        The per-province segments are the only I/O in NIK generation/validation;
        loading them on demand keeps startup cheap, and caching keeps repeated
        validation free.

    Also offers OCR-tolerant name search so a caller holding "kab sleman" can get
    to the ('34', '04') codes a NIK needs.
    """

    # OCR digit->letter fix for typical confusions (helps "SLEM4N" -> "SLEMAN")
    _OCR_DIGIT_TO_LETTER = str.maketrans({
        '0': 'O', '1': 'I', '2': 'Z', '3': 'E', '4': 'A', '5': 'S', '6': 'G', '7': 'T', '8': 'B'
    })

    # punctuation map: translate these to space (no regex)
    _PUNCTS = string.punctuation + "·•—–‐‒―…“”‘’´`¨^~¸«»‹›"
    _PUNCT_TO_SPACE = str.maketrans({ch: " " for ch in _PUNCTS})

    # Leading administrative tokens that vary between sources and user input
    _PREFIX_TOKENS = frozenset({
        "PROV", "PROVINSI", "KAB", "KABUPATEN", "KOTA", "KOTAMADYA", "ADM", "ADMINISTRASI",
        "KEC", "KECAMATAN",
    })

    def __init__(self, source: Optional[RegionDataSource] = None, cache: Optional[RegionCache] = None):
        """Load the province table and set up the lazy caches.

        Args:
            source: Where regions come from; defaults to the bundled split JSON data.
            cache: Memo for regency/district lists; a fresh one is created if omitted.
        """
        self.source: RegionDataSource = source if source is not None else SplitJsonRegionSource(default_data_dir())
        self.cache = cache if cache is not None else RegionCache()
        self._provinces: List[RegionEntry] = list(self.source.load_provinces())
        self._province_by_code: Dict[str, RegionEntry] = {p.code: p for p in self._provinces}
        self._inflight: Dict[Hashable, "asyncio.Future[List[RegionEntry]]"] = {}
        logger.debug("Region repository ready with %d provinces", len(self._provinces))

    # ----------------------------
    # Pure GET APIs
    # ----------------------------
    def list_provinces(self) -> List[RegionEntry]:
        """All provinces, in source order. Never fails once the repository exists."""
        return list(self._provinces)

    def has_province(self, province_code: str) -> bool:
        return province_code in self._province_by_code

    def get_province(self, province_code: str) -> Optional[RegionEntry]:
        return self._province_by_code.get(province_code)

    async def list_regencies(self, province_code: str) -> List[RegionEntry]:
        """Regencies/cities of one province.

        Args:
            province_code: Two-digit province code, e.g. '31'.

        Returns:
            The province's regencies (cached after the first load).

        Raises:
            RegionDataError: kind REGENCY_NOT_FOUND when the province segment
                does not exist or cannot be read.
        """
        cached = self.cache.get_regencies(province_code)
        if cached is not None:
            return list(cached)
        entries = await self._single_flight(
            ("regencies", province_code),
            lambda: self._load_regencies(province_code),
        )
        return list(entries)

    async def list_districts(self, province_code: str, regency_code: str) -> List[RegionEntry]:
        """Districts of one (province, regency) pair.

        Raises:
            RegionDataError: kind DISTRICT_NOT_FOUND when the regency segment
                does not exist or cannot be read.
        """
        cached = self.cache.get_districts(province_code, regency_code)
        if cached is not None:
            return list(cached)
        entries = await self._single_flight(
            ("districts", province_code, regency_code),
            lambda: self._load_districts(province_code, regency_code),
        )
        return list(entries)

    async def describe(self, province_code: str, regency_code: str, district_code: str) -> Dict[str, Optional[str]]:
        """Resolve the three codes of a NIK to region names.

        Levels below an unknown code are left as None. Missing reference data for
        a known parent still raises RegionDataError.
        """
        result: Dict[str, Optional[str]] = {"province": None, "regency": None, "district": None}
        province = self.get_province(province_code)
        if province is None:
            return result
        result["province"] = province.name

        regency = _find(await self.list_regencies(province_code), regency_code)
        if regency is None:
            return result
        result["regency"] = regency.name

        district = _find(await self.list_districts(province_code, regency_code), district_code)
        result["district"] = district.name if district else None
        return result

    # ----------------------------
    # Loading
    # ----------------------------
    async def _single_flight(
        self,
        key: Hashable,
        factory: Callable[[], Awaitable[List[RegionEntry]]],
    ) -> List[RegionEntry]:
        """Share one in-flight load between concurrent callers of the same key."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        return await task

    async def _load_regencies(self, province_code: str) -> List[RegionEntry]:
        try:
            entries = list(await asyncio.to_thread(self.source.load_regencies, province_code))
        except Exception as e:
            logger.warning("Failed to load regency data for province %s: %r", province_code, e)
            raise RegionDataError(RegionDataKind.REGENCY_NOT_FOUND, province_code) from e
        self.cache.put_regencies(province_code, entries)
        logger.debug("Loaded %d regencies for province %s", len(entries), province_code)
        return entries

    async def _load_districts(self, province_code: str, regency_code: str) -> List[RegionEntry]:
        try:
            entries = list(await asyncio.to_thread(self.source.load_districts, province_code, regency_code))
        except Exception as e:
            logger.warning(
                "Failed to load district data for regency %s.%s: %r", province_code, regency_code, e
            )
            raise RegionDataError(RegionDataKind.DISTRICT_NOT_FOUND, province_code, regency_code) from e
        self.cache.put_districts(province_code, regency_code, entries)
        logger.debug("Loaded %d districts for regency %s.%s", len(entries), province_code, regency_code)
        return entries

    # ----------------------------
    # Normalization & scoring
    # ----------------------------
    @classmethod
    @lru_cache(maxsize=8192)
    def _norm(cls, s: str) -> str:
        """OCR-tolerant comparison form of a region name.

        NFKC, digit->letter fixes, punctuation folded to spaces, leading
        KAB/KOTA/KEC/PROV tokens dropped, uppercased and whitespace-collapsed.
        """
        if not s:
            return ""
        t = unicodedata.normalize("NFKC", s)
        t = t.translate(cls._OCR_DIGIT_TO_LETTER)
        t = t.translate(cls._PUNCT_TO_SPACE)
        tokens = t.upper().split()
        while len(tokens) > 1 and tokens[0] in cls._PREFIX_TOKENS:
            tokens.pop(0)
        return " ".join(tokens)

    @staticmethod
    def _lev_ratio(a: str, b: str) -> float:
        """Levenshtein similarity in [0, 1]; higher is better."""
        if not a or not b:
            return 0.0
        dist = Levenshtein.distance(a, b)
        return max(0.0, 1.0 - (dist / max(len(a), len(b))))

    def _combo_score(self, query: str, name: str) -> float:
        """Spaced + space-free Levenshtein plus token overlap.

        Glued tokens ("JAKARTABARAT") score
        through the space-free view, word-level noise through token overlap.
        """
        a1, b1 = self._norm(query), self._norm(name)
        a2, b2 = a1.replace(" ", ""), b1.replace(" ", "")
        A, B = set(a1.split()), set(b1.split())
        tok = len(A & B) / max(1, len(A | B)) if A and B else 0.0
        return 0.35 * self._lev_ratio(a1, b1) + 0.45 * self._lev_ratio(a2, b2) + 0.20 * tok

    def _rank(self, entries: List[RegionEntry], query: str, k: int) -> List[Tuple[RegionEntry, float]]:
        scored = [(e, self._combo_score(query, e.name)) for e in entries]
        scored.sort(key=lambda x: x[1], reverse=True)
        return scored[:k]

    # ----------------------------
    # SEARCH APIs (return [(RegionEntry, score)])
    # ----------------------------
    def search_provinces(self, q: str, k: int = 5) -> List[Tuple[RegionEntry, float]]:
        """Rank provinces against a free-form (possibly OCR-noisy) name."""
        return self._rank(self._provinces, q, k)

    async def search_regencies(self, province_code: str, q: str, k: int = 5) -> List[Tuple[RegionEntry, float]]:
        """Rank the regencies of one province against a free-form name."""
        return self._rank(await self.list_regencies(province_code), q, k)

    async def search_districts(
        self, province_code: str, regency_code: str, q: str, k: int = 5
    ) -> List[Tuple[RegionEntry, float]]:
        """Rank the districts of one (province, regency) pair against a free-form name."""
        return self._rank(await self.list_districts(province_code, regency_code), q, k)


def _find(entries: List[RegionEntry], code: str) -> Optional[RegionEntry]:
    for entry in entries:
        if entry.code == code:
            return entry
    return None


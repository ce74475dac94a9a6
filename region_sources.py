# region_sources.py

from __future__ import annotations

import csv
import json
import re
import sqlite3
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union


_CODE_RE = re.compile(r'[0-9]{2}')


# ----------------------------
# Model
# ----------------------------
@dataclass(frozen=True)
class RegionEntry:
    """One node of the administrative hierarchy as seen by NIK logic.

    What:
        A two-digit local code plus a display name. Regency codes are only unique
        inside their province; district codes only inside their (province, regency).

    Why:
        A small typed model keeps JSON rows and sqlite tuples out of the generator
        and validator.
    """
    code: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable mapping ({'code', 'name'})."""
        return asdict(self)


def _is_code(value: Any) -> bool:
    return isinstance(value, str) and _CODE_RE.fullmatch(value) is not None


class RegionDataSource(Protocol):
    """Where the region store gets its three levels from.

    Implementations raise KeyError for an unknown province/regency. Any other
    exception means the data could not be read; the region store reports both
    as RegionDataError.
    """

    def load_provinces(self) -> List[RegionEntry]: ...

    def load_regencies(self, province_code: str) -> List[RegionEntry]: ...

    def load_districts(self, province_code: str, regency_code: str) -> List[RegionEntry]: ...


# ----------------------------
# Split JSON files (output of split_data.py)
# ----------------------------
class SplitJsonRegionSource:
    """Read the per-province / per-regency files produced by ``split_data.py``.

    Layout under ``data_dir``::

        provinces.json
        regencies/<province>.json
        districts/<province>/<regency>.json

    Each file holds a list of ``{"code": ..., "name": ...}`` objects.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    @staticmethod
    def _read_entries(path: Path) -> List[RegionEntry]:
        with open(path, encoding='utf-8') as f:
            rows = json.load(f)
        if not isinstance(rows, list):
            raise ValueError(f"{path}: expected a list of regions")
        try:
            return [RegionEntry(code=str(r["code"]), name=str(r["name"])) for r in rows]
        except (KeyError, TypeError) as e:
            raise ValueError(f"{path}: malformed region row") from e

    def load_provinces(self) -> List[RegionEntry]:
        return self._read_entries(self.data_dir / "provinces.json")

    def load_regencies(self, province_code: str) -> List[RegionEntry]:
        if not _is_code(province_code):
            raise KeyError(province_code)
        path = self.data_dir / "regencies" / f"{province_code}.json"
        if not path.is_file():
            raise KeyError(province_code)
        return self._read_entries(path)

    def load_districts(self, province_code: str, regency_code: str) -> List[RegionEntry]:
        if not _is_code(province_code) or not _is_code(regency_code):
            raise KeyError((province_code, regency_code))
        path = self.data_dir / "districts" / province_code / f"{regency_code}.json"
        if not path.is_file():
            raise KeyError((province_code, regency_code))
        return self._read_entries(path)


# ----------------------------
# kode_wilayah CSV (id,name) via sqlite
# ----------------------------
class KodeWilayahRegionSource:
    """SQLite-backed source built from the flat ``kode_wilayah`` CSV.

    What:
        Ingests a 2-column CSV (id,name) whose ids are dotted hierarchical codes
        ('31', '31.71', '31.71.01', '31.71.01.1001') into a single table, then
        answers the three NIK levels by parent id. Village rows are skipped since
        a NIK stops at the district.

    Why:
        The CSV is the form most Dukcapil-derived dumps come in; keeping an embedded
        sqlite store avoids re-scanning it for every lookup.

    Storage model (single table):
        regions(
            region_id  TEXT PRIMARY KEY,   -- "31", "31.71", "31.71.01"
            level      TEXT NOT NULL,      -- 'province'|'regency'|'district'
            parent_id  TEXT,               -- NULL for provinces
            code       TEXT NOT NULL,      -- last dotted segment
            name       TEXT NOT NULL
        )
    """

    _LEVELS = {1: 'province', 2: 'regency', 3: 'district'}

    def __init__(self, csv_file: Union[str, Path], sqlite_path: Optional[str] = None):
        """Open (or create) the sqlite store and ingest the CSV if the table is empty.

        Args:
            csv_file: Path to a 2-column CSV (id,name); header row is optional.
            sqlite_path: SQLite file path (persistent) or None (in-memory).
        """
        self.csv_file = str(csv_file)
        self.sqlite_path = sqlite_path
        # loads are dispatched to worker threads by the region store
        self.conn = sqlite3.connect(sqlite_path or ":memory:", check_same_thread=False)
        if sqlite_path:
            self.conn.execute("PRAGMA journal_mode=WAL;")
            self.conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()
        self._load_csv_into_db(self.csv_file)

    def close(self) -> None:
        self.conn.close()

    def _ensure_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS regions (
            region_id  TEXT PRIMARY KEY,
            level      TEXT NOT NULL CHECK(level IN ('province','regency','district')),
            parent_id  TEXT,
            code       TEXT NOT NULL,
            name       TEXT NOT NULL
        )
        """)
        cur.execute("CREATE INDEX IF NOT EXISTS idx_regions_parent_level ON regions(parent_id, level)")
        self.conn.commit()

    def _load_csv_into_db(self, csv_file: str) -> None:
        cur = self.conn.cursor()
        cur.execute("SELECT COUNT(1) FROM regions")
        count, = cur.fetchone()
        if count:
            return

        to_insert: List[Tuple[str, str, Optional[str], str, str]] = []
        with open(csv_file, newline='', encoding='utf-8-sig') as f:
            for row in csv.reader(f):
                if not row or len(row) < 2:
                    continue
                _id, name = (row[0] or "").strip(), (row[1] or "").strip()
                if not _id or not name:
                    continue

                # Skip header if present
                if _id.lower() in ("id", "kode", "kode_wilayah") and name.lower() in ("name", "nama", "wilayah"):
                    continue

                parts = _id.split('.')
                level = self._LEVELS.get(len(parts))
                if level is None or not all(_is_code(p) for p in parts):
                    continue  # villages and malformed ids
                parent = '.'.join(parts[:-1]) or None
                to_insert.append((_id, level, parent, parts[-1], " ".join(name.split())))

        cur.executemany("""
            INSERT OR IGNORE INTO regions(region_id, level, parent_id, code, name)
            VALUES (?, ?, ?, ?, ?)
        """, to_insert)
        self.conn.commit()

    def _children(self, level: str, parent_id: Optional[str]) -> List[RegionEntry]:
        cur = self.conn.cursor()
        if parent_id is None:
            rows = cur.execute("""
                SELECT code, name FROM regions
                WHERE level=? AND parent_id IS NULL
                ORDER BY region_id
            """, (level,)).fetchall()
        else:
            rows = cur.execute("""
                SELECT code, name FROM regions
                WHERE level=? AND parent_id=?
                ORDER BY region_id
            """, (level, parent_id)).fetchall()
        return [RegionEntry(code=r[0], name=r[1]) for r in rows]

    def _exists(self, level: str, region_id: str) -> bool:
        cur = self.conn.cursor()
        row = cur.execute(
            "SELECT 1 FROM regions WHERE region_id=? AND level=?", (region_id, level)
        ).fetchone()
        return row is not None

    def load_provinces(self) -> List[RegionEntry]:
        return self._children('province', None)

    def load_regencies(self, province_code: str) -> List[RegionEntry]:
        if not _is_code(province_code) or not self._exists('province', province_code):
            raise KeyError(province_code)
        return self._children('regency', province_code)

    def load_districts(self, province_code: str, regency_code: str) -> List[RegionEntry]:
        if not _is_code(province_code) or not _is_code(regency_code):
            raise KeyError((province_code, regency_code))
        regency_id = f"{province_code}.{regency_code}"
        if not self._exists('regency', regency_id):
            raise KeyError((province_code, regency_code))
        return self._children('district', regency_id)

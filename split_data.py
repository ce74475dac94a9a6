#!/usr/bin/env python3
"""
filepath: split_data.py

Build step: split the nested regional dataset into the per-province /
per-regency files the region store reads lazily.

Input (indonesia.json)::

    {"<province name>": {"ID": "31",
        "Kabupaten/Kota": {"<regency name>": {"ID": "31.71",
            "Kecamatan": {"<district name>": {"ID": "31.71.01"}}}}}}

Output under OUT_DIR::

    provinces.json                       [{"code": "31", "name": ...}, ...]
    regencies/<province>.json            [{"code": "71", "name": ...}, ...]
    districts/<province>/<regency>.json  [{"code": "01", "name": ...}, ...]

Optionally also writes the same hierarchy as a flat kode_wilayah CSV (id,name),
the format KodeWilayahRegionSource ingests.

Usage:
    python split_data.py [SOURCE_JSON] [OUT_DIR] [CSV_OUT]
"""
from __future__ import annotations

import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

logger = logging.getLogger(__name__)

Entries = List[Dict[str, str]]


def _local_code(dotted_id: str, depth: int) -> str:
    """'31.71.01' at depth 2 -> '01'."""
    parts = str(dotted_id).split('.')
    if len(parts) != depth + 1:
        raise ValueError(f"expected a {depth + 1}-part id, got {dotted_id!r}")
    return parts[depth]


def split_regions(
    raw: Dict[str, Any],
) -> Tuple[Entries, Dict[str, Entries], Dict[Tuple[str, str], Entries]]:
    """Flatten the nested dataset into the three lookup tables.

    Returns:
        (provinces, regencies keyed by province code, districts keyed by
        (province code, regency code)); every list keeps source order.
    """
    provinces: Entries = []
    regencies: Dict[str, Entries] = {}
    districts: Dict[Tuple[str, str], Entries] = {}

    for province_name, province in raw.items():
        province_code = str(province["ID"])
        provinces.append({"code": province_code, "name": province_name})
        regencies[province_code] = []

        for regency_name, regency in province.get("Kabupaten/Kota", {}).items():
            regency_code = _local_code(regency["ID"], 1)
            regencies[province_code].append({"code": regency_code, "name": regency_name})
            districts[(province_code, regency_code)] = [
                {"code": _local_code(district["ID"], 2), "name": district_name}
                for district_name, district in regency.get("Kecamatan", {}).items()
            ]

    return provinces, regencies, districts


def _dump(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
        f.write("\n")


def write_split(raw: Dict[str, Any], out_dir: Path) -> int:
    """Write the split files; returns the number of files written."""
    provinces, regencies, districts = split_regions(raw)
    _dump(out_dir / "provinces.json", provinces)
    for province_code, entries in regencies.items():
        _dump(out_dir / "regencies" / f"{province_code}.json", entries)
    for (province_code, regency_code), entries in districts.items():
        _dump(out_dir / "districts" / province_code / f"{regency_code}.json", entries)
    return 1 + len(regencies) + len(districts)


def kode_wilayah_rows(raw: Dict[str, Any]) -> Iterator[Tuple[str, str]]:
    """Yield (dotted id, name) rows, parents before children."""
    for province_name, province in raw.items():
        yield str(province["ID"]), province_name
        for regency_name, regency in province.get("Kabupaten/Kota", {}).items():
            yield str(regency["ID"]), regency_name
            for district_name, district in regency.get("Kecamatan", {}).items():
                yield str(district["ID"]), district_name


def write_kode_wilayah_csv(raw: Dict[str, Any], csv_path: Path) -> None:
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["kode", "nama"])
        writer.writerows(kode_wilayah_rows(raw))


def main(argv: List[str]) -> int:
    here = Path(__file__).resolve().parent
    source = Path(argv[0]) if len(argv) > 0 else here / "data" / "indonesia.json"
    out_dir = Path(argv[1]) if len(argv) > 1 else source.parent

    with open(source, encoding="utf-8") as f:
        raw = json.load(f)

    written = write_split(raw, out_dir)
    logger.info("Wrote %d region files to %s", written, out_dir)
    if len(argv) > 2:
        write_kode_wilayah_csv(raw, Path(argv[2]))
        logger.info("Wrote kode_wilayah CSV to %s", argv[2])
    logger.info("Data splitting completed successfully!")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main(sys.argv[1:]))

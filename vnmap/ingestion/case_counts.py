"""Case counts per province, keyed by display name (and optionally by code).

The embedded table is only the default; a different table can be supplied
through ``VNMAP_CASE_COUNTS`` as a JSON object or a CSV file.
"""

from __future__ import annotations

import json
import logging
import unicodedata
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_CASE_COUNTS: dict[str, int] = {
    "Hà Nội": 1646923,
    "Hồ Chí Minh": 629018,
    "Hải Phòng": 537527,
    "Nghệ An": 502049,
    "Bắc Giang": 391440,
    "Vĩnh Phúc": 375686,
    "Hải Dương": 372391,
    "Quảng Ninh": 356404,
    "Bắc Ninh": 353869,
    "Thái Nguyên": 347519,
    "Phú Thọ": 331520,
    "Bình Dương": 325667,
    "Nam Định": 301101,
    "Thái Bình": 296789,
    "Hưng Yên": 244028,
    "Hoà Bình": 239941,
    "Lào Cai": 188846,
    "Thanh Hóa": 178595,
    "Đắk Lắk": 172439,
    "Lạng Sơn": 160752,
    "Yên Bái": 158046,
    "Sơn La": 153602,
    "Cà Mau": 147734,
    "Tuyên Quang": 147582,
    "Tây Ninh": 140444,
    "Bình Định": 139890,
    "Quảng Bình": 129648,
    "Hà Giang": 122610,
    "Khánh Hòa": 122036,
    "Bình Phước": 120003,
    "Bà Rịa - Vũng Tàu": 110822,
    "Đà Nẵng": 108712,
    "Đồng Nai": 107518,
    "Ninh Bình": 104800,
    "Vĩnh Long": 103505,
    "Bến Tre": 99799,
    "Cao Bằng": 99051,
    "Lâm Đồng": 98238,
    "Hà Nam": 91467,
    "Điện Biên": 90757,
    "Quảng Trị": 86293,
    "Bắc Kạn": 77048,
    "Cần Thơ": 76925,
    "Lai Châu": 75519,
    "Trà Vinh": 75174,
    "Đắk Nông": 73427,
    "Gia Lai": 70961,
    "Hà Tĩnh": 55279,
    "Bình Thuận": 54300,
    "Đồng Tháp": 51614,
    "Quảng Ngãi": 50513,
    "Long An": 50297,
    "Quảng Nam": 49556,
    "Thừa Thiên Huế": 48186,
    "Bạc Liêu": 46949,
    "Phú Yên": 44481,
    "Kiên Giang": 43659,
    "An Giang": 43297,
    "Tiền Giang": 39902,
    "Sóc Trăng": 34457,
    "Kon Tum": 26342,
    "Hậu Giang": 17900,
    "Ninh Thuận": 9001,
}


def normalize_name(name: str) -> str:
    """NFC-normalize and strip a province display name."""
    return unicodedata.normalize("NFC", str(name)).strip()


class CaseCountTable:
    """Lookup of case counts by province code or display name."""

    def __init__(
        self,
        by_name: dict[str, int] | None = None,
        by_code: dict[str, int] | None = None,
    ):
        self._by_name = {normalize_name(k): int(v) for k, v in (by_name or {}).items()}
        self._by_code = {str(k).strip(): int(v) for k, v in (by_code or {}).items()}

    def __len__(self) -> int:
        return len(self._by_name) + len(self._by_code)

    def has(self, code: str | None, name: str | None) -> bool:
        if code is not None and str(code).strip() in self._by_code:
            return True
        return name is not None and normalize_name(name) in self._by_name

    def lookup(self, code: str | None, name: str | None) -> int:
        """Return the case count for a province, or 0 when it has none."""
        if code is not None:
            value = self._by_code.get(str(code).strip())
            if value is not None:
                return value
        if name is None:
            return 0
        return self._by_name.get(normalize_name(name), 0)


def default_case_counts() -> CaseCountTable:
    return CaseCountTable(by_name=DEFAULT_CASE_COUNTS)


def load_case_counts(path: str | Path) -> CaseCountTable:
    """Load a case-count table from a JSON object or a CSV file.

    JSON files map display name to count. CSV files need a ``count`` column
    and either a ``code`` or a ``name`` column (both are accepted).
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        with path.open(encoding="utf-8") as fh:
            payload = json.load(fh)
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object in {path}")
        table = CaseCountTable(by_name=payload)
    else:
        df = pd.read_csv(path, dtype=str)
        df.columns = [c.strip().lower() for c in df.columns]
        if "count" not in df.columns:
            raise KeyError(f"Missing required column 'count' in {path}")
        df["count"] = pd.to_numeric(df["count"], errors="coerce").fillna(0).astype(int)
        by_code = by_name = None
        if "code" in df.columns:
            rows = df.dropna(subset=["code"])
            by_code = dict(zip(rows["code"], rows["count"]))
        if "name" in df.columns:
            rows = df.dropna(subset=["name"])
            by_name = dict(zip(rows["name"], rows["count"]))
        if by_code is None and by_name is None:
            raise KeyError(f"Need a 'code' or 'name' column in {path}")
        table = CaseCountTable(by_name=by_name, by_code=by_code)

    logger.info("Loaded %d case-count entries from %s", len(table), path)
    return table

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence, TextIO, Tuple

from core.errors import CacheFileNotFoundError, MalformedFileError, ValidationError
from core.interfaces import PointEncoder


"""Balance table source.

Opens persisted (encoded point, balance) tables under a data directory
and streams parsed rows. The first row must be a header; corrupt data
rows are reported as None so callers can count and skip them.
"""

logger = logging.getLogger(__name__)

BalanceRow = Tuple[str, int]


class BalanceTableSource:
    # Delimited-text reader for balance tables rooted at data_dir.

    def __init__(self, *, data_dir: Path, encoder: PointEncoder, delimiter: str = ",") -> None:
        if len(delimiter) != 1:
            raise ValidationError("Delimiter must be a single character")
        self._data_dir = Path(data_dir).resolve()
        self._encoder = encoder
        self._delimiter = delimiter

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _resolve_under_root(self, name: str) -> Path:
        raw = (name or "").strip()
        if not raw:
            raise CacheFileNotFoundError("Cache file not found: no table name given")

        p = (self._data_dir / raw).resolve()

        # Anything outside data_dir is reported the same way as a missing file
        try:
            p.relative_to(self._data_dir)
        except ValueError as e:
            raise CacheFileNotFoundError(f"Cache file not found: {name}") from e

        return p

    def open(self, name: str) -> TextIO:
        p = self._resolve_under_root(name)
        try:
            # Undecodable bytes become U+FFFD and fail row parsing instead of aborting the load
            return p.open("r", encoding="utf-8-sig", errors="replace", newline="")
        except OSError as e:
            raise CacheFileNotFoundError(f"Cache file not found: {name}") from e

    def parse_row(self, fields: Sequence[str]) -> BalanceRow:
        """Parse one data row into (canonical key, balance).

        Raises ValueError (or TypeError from the encoder) on a bad row.
        """
        if len(fields) != 2:
            raise ValueError(f"Expected 2 fields, got {len(fields)}")

        point_field, balance_field = fields
        # Re-encode so every accepted spelling of a point maps to its canonical key
        key = self._encoder.encode(self._encoder.decode(point_field))
        return key, int(balance_field.strip())

    def _is_header(self, fields: Optional[Sequence[str]]) -> bool:
        if not fields or len(fields) != 2 or not any(f.strip() for f in fields):
            return False
        try:
            self.parse_row(fields)
        except (ValueError, TypeError):
            return True
        return False

    def iter_rows(self, stream: TextIO) -> Iterator[Optional[BalanceRow]]:
        """Yield (key, balance) for each data row, or None for a corrupt row.

        Raises MalformedFileError before yielding anything if the first
        row is not a header. Blank lines are ignored.
        """
        reader = csv.reader(stream, delimiter=self._delimiter)

        try:
            header = next(reader, None)
        except csv.Error as e:
            raise MalformedFileError("File is not well formed.") from e
        if not self._is_header(header):
            raise MalformedFileError("File is not well formed.")

        while True:
            try:
                fields = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                logger.debug("Skipping unreadable row near line %d: %s", reader.line_num, e)
                yield None
                continue

            if not fields or (len(fields) == 1 and not fields[0].strip()):
                continue

            try:
                yield self.parse_row(fields)
            except (ValueError, TypeError) as e:
                logger.debug("Skipping corrupt row at line %d: %s", reader.line_num, e)
                yield None

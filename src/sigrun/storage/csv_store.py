"""
Keyed-row CSV tables.

The first column is ``Key``; each remaining column is a row field. Rows are
plain ``dict[str, str]`` unless a pydantic row model is given, in which
case rows are validated into model instances on read and dumped from them
on write.
"""

from __future__ import annotations

import csv as _csv
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic

import sigrun.constants as constants
import sigrun.errors as errors

_logger = _logging.getLogger(__name__)

KEY_COLUMN = "Key"

Row: _typing.TypeAlias = _typing.Any


class CsvStore:
    """A CSV file mapping row keys to rows."""

    def __init__(
        self,
        path: _pathlib.Path,
        row_model: type[_pydantic.BaseModel] | None = None,
    ) -> None:
        if path.suffix.lower() != constants.CSV_SUFFIX or not path.stem:
            raise errors.InvalidArgumentError(
                f"CSV path must name a .csv file: {path}",
                argument="path",
            )
        self.path = path
        self.row_model = row_model

    def __repr__(self) -> str:
        return f"CsvStore({str(self.path)!r})"

    def read(self) -> dict[str, Row]:
        """
        Read all rows.

        A missing or header-only file is an empty table. Rows with an empty
        key are skipped; empty cells are treated as absent.

        Raises:
            FileFormatError: If the file is unreadable or a row does not fit
                the row model.
        """
        if not self.path.is_file():
            return {}

        rows: dict[str, Row] = {}
        try:
            with self.path.open("r", encoding="utf-8", newline="") as f:
                reader = _csv.DictReader(f)
                if reader.fieldnames is None:
                    return {}
                if reader.fieldnames[0] != KEY_COLUMN:
                    raise errors.FileFormatError(
                        self.path, f"first column must be '{KEY_COLUMN}'"
                    )
                for record in reader:
                    key = record.pop(KEY_COLUMN, None)
                    if not key:
                        continue
                    values = {k: v for k, v in record.items() if k is not None and v}
                    rows[key] = self._to_row(key, values)
        except OSError as e:
            raise errors.FileFormatError(self.path, f"cannot read file: {e}") from e
        except UnicodeDecodeError as e:
            raise errors.FileFormatError(self.path, f"invalid UTF-8: {e}") from e
        except _csv.Error as e:
            raise errors.FileFormatError(self.path, f"invalid CSV: {e}") from e

        return rows

    def read_row(self, key: str) -> Row | None:
        """Read one row, or None if the key is absent."""
        return self.read().get(key)

    def write(self, rows: _typing.Mapping[str, Row]) -> _pathlib.Path:
        """
        Replace the table with ``rows``.

        Columns follow the row model's fields, or the order in which keys
        first appear across the rows.

        Returns:
            The path written.
        """
        records = {key: self._to_record(row) for key, row in rows.items()}
        columns = self._columns(records)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8", newline="") as f:
            writer = _csv.DictWriter(f, fieldnames=[KEY_COLUMN, *columns], extrasaction="ignore")
            writer.writeheader()
            for key, record in records.items():
                writer.writerow({KEY_COLUMN: key, **record})

        _logger.debug("Wrote %d row(s) to %s", len(records), self.path)
        return self.path

    def write_row(self, key: str, row: Row) -> _pathlib.Path:
        """Insert or replace one row, keeping the others."""
        if not key:
            raise errors.InvalidArgumentError("Row key must not be empty", argument="key")
        rows = self.read()
        rows[key] = row
        return self.write(rows)

    # =========================================================================
    # Internals
    # =========================================================================

    def _to_row(self, key: str, values: dict[str, str]) -> Row:
        if self.row_model is None:
            return values
        try:
            return self.row_model.model_validate(values)
        except _pydantic.ValidationError as e:
            raise errors.FileFormatError(self.path, f"row '{key}' is invalid: {e}") from e

    def _to_record(self, row: Row) -> dict[str, str]:
        if isinstance(row, _pydantic.BaseModel):
            data = row.model_dump(mode="json", by_alias=True)
        else:
            data = dict(row)
        return {k: "" if v is None else str(v) for k, v in data.items()}

    def _columns(self, records: dict[str, dict[str, str]]) -> list[str]:
        if self.row_model is not None:
            return [
                info.alias or name for name, info in self.row_model.model_fields.items()
            ]
        columns: list[str] = []
        for record in records.values():
            columns.extend(k for k in record if k not in columns)
        return columns

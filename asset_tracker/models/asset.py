"""
Core Data Models for Asset Tracker

An Asset is a single tracked investment: what kind it is, what it is
called, what it is worth and when it was bought. Assets live in a
per-user flat file, one record per line.

DESIGN DECISION: The on-disk record is comma separated with csv-style
quoting. Records written by older versions (plain comma joins, no quotes)
are read unchanged, and free text containing a comma or a quote now
survives a save/load cycle instead of shifting the columns.
"""

import csv
import io
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)


# Number of fields in a stored asset record
RECORD_FIELD_COUNT = 5

# Stored id and value: plain digits, no signs, separators or padding.
# Values may carry an exponent ("1.0E7") as written by older versions.
ID_PATTERN = re.compile(r"[0-9]+")
VALUE_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?([eE][-+]?[0-9]+)?")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AssetCategory(str, Enum):
    """
    Asset categories offered when adding an asset.

    The stored record keeps the category as free text, so a file edited
    by hand may contain categories outside this list. Those are kept.
    """
    STOCKS = "Stocks"
    REAL_ESTATE = "Real Estate"
    CRYPTO = "Crypto"
    GOLD = "Gold"


# =============================================================================
# CORE ASSET MODEL
# =============================================================================

class Asset(BaseModel):
    """
    A tracked investment asset.

    Ids are assigned by the owning store and are unique within one
    user's store. An edit replaces the whole record; there is no history.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(
        ...,
        ge=1,
        description="Identifier, unique within the user's store"
    )
    type: str = Field(
        ...,
        description="Asset category (see AssetCategory)"
    )
    name: str = Field(
        ...,
        description="Asset name"
    )
    value: Decimal = Field(
        ...,
        ge=0,
        description="Current value of the asset"
    )
    purchase_date: str = Field(
        ...,
        description="Purchase date as entered (format not enforced)"
    )

    @field_validator('type', 'name', 'purchase_date')
    @classmethod
    def single_line(cls, v: str) -> str:
        """Every record must fit on one line of the store file."""
        if "\n" in v or "\r" in v:
            raise ValueError("Value must not contain a line break")
        return v

    @property
    def category(self) -> Optional[AssetCategory]:
        """The known category for this asset, or None for free-text types."""
        try:
            return AssetCategory(self.type)
        except ValueError:
            return None

    @classmethod
    def parse(cls, line: str) -> Optional["Asset"]:
        """
        Build an Asset from one stored record.

        Returns None when the line does not hold exactly five fields,
        the id is not an integer or the value is not a non-negative
        decimal. Callers skip such lines.
        """
        line = line.rstrip("\r\n")
        if not line.strip():
            return None

        try:
            fields = next(csv.reader([line]))
        except (csv.Error, StopIteration):
            return None

        if len(fields) != RECORD_FIELD_COUNT:
            return None

        raw_id, asset_type, name, raw_value, purchase_date = fields
        if not (ID_PATTERN.fullmatch(raw_id) and VALUE_PATTERN.fullmatch(raw_value)):
            return None
        try:
            asset_id = int(raw_id)
            value = Decimal(raw_value)
        except (ValueError, InvalidOperation):
            return None

        try:
            return cls(
                id=asset_id,
                type=asset_type,
                name=name,
                value=value,
                purchase_date=purchase_date,
            )
        except ValidationError:
            return None

    def serialize(self) -> str:
        """
        Render the asset as one stored record (without line terminator).

        Columns in order: id, type, name, value, purchase_date.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="")
        writer.writerow([
            str(self.id),
            self.type,
            self.name,
            str(self.value),
            self.purchase_date,
        ])
        return buffer.getvalue()

    def display(self) -> str:
        """One-line summary for listings. Not used for persistence."""
        return f"#{self.id} - {self.type}: {self.name} | ${self.value} | {self.purchase_date}"


# =============================================================================
# LOAD RESULTS
# =============================================================================

class LoadReport(BaseModel):
    """
    Outcome of reading a user's asset file.

    A missing file is not an error: the store simply starts empty.
    """

    path: Path
    loaded: int = Field(
        default=0,
        ge=0,
        description="Number of records loaded"
    )
    skipped_lines: list[int] = Field(
        default_factory=list,
        description="1-based line numbers of malformed records"
    )
    io_error: Optional[str] = Field(
        default=None,
        description="Read failure, if the file could not be read"
    )

    @property
    def ok(self) -> bool:
        return self.io_error is None

    @property
    def skipped(self) -> int:
        return len(self.skipped_lines)

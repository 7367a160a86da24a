"""Lookup data models and relay wire formats."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Dimension(str, Enum):
    """Search axes, each bound to one spreadsheet column."""

    CEDULA = "cedula"
    CODIGO = "codigo"

    @property
    def label(self) -> str:
        """Human name of the identifier searched along this axis."""
        mapping = {
            "cedula": "número de documento",
            "codigo": "número de registro",
        }
        return mapping[self.value]


Snapshot = List[List[Any]]


@dataclass(frozen=True)
class IndexMatch:
    """Answer from the column index.

    ``row_offset`` is the row's position in the snapshot (the header row is
    position 0), ``row_number`` the one-based spreadsheet row.
    """

    found: bool
    row_offset: int = -1
    row_number: int = -1


class RemoteLookupResponse(BaseModel):
    """Body returned by a relay for ``?searchType=...&searchValue=...``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    success: bool
    found: bool = False
    column_name: str = Field("", alias="columnName")
    total_rows: int = Field(0, alias="totalRows")
    row: Optional[Any] = None
    error: Optional[str] = None

    @field_validator("column_name", mode="before")
    @classmethod
    def coerce_column_name(cls, v: Any) -> str:
        """Relays echo whatever header text the sheet has."""
        return "" if v is None else str(v)


class SnapshotData(BaseModel):
    values: Snapshot = Field(default_factory=list)


class SnapshotResponse(BaseModel):
    """Body returned by a relay for a bare GET (bulk fetch)."""

    model_config = ConfigDict(extra="allow")

    success: bool
    data: Optional[SnapshotData] = None
    error: Optional[str] = None


class LookupResult(BaseModel):
    """Normalized outcome of one lookup, as stored in the result cache."""

    model_config = ConfigDict(frozen=True)

    found: bool
    search_value: str
    dimension: Dimension
    column_name: str
    total_rows: int
    message: str
    row_data: Optional[Any] = None
    search_method: str = "specific"


class ConnectionReport(BaseModel):
    """Result of probing a relay with a bulk fetch."""

    success: bool
    message: str
    total_rows: int = 0
    headers: List[Any] = Field(default_factory=list)
    error: Optional[str] = None


@dataclass(frozen=True)
class IndexStatus:
    """Summary of the bulk snapshot index."""

    index_built: bool
    indexed_columns: List[str]
    total_rows: int
    cache_age_seconds: Optional[int]
    hit_rate: int

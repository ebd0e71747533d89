"""Pydantic schemas for the conversion API and the client history log.

Wire names are camelCase to stay compatible with the browser client;
Python attributes are snake_case and populated by either name.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ConversionStatus(str, Enum):
    """Outcome of converting a single file."""
    SUCCESS = "success"
    ERROR = "error"


class WireModel(BaseModel):
    """Base model that accepts and emits camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        """Serialize with wire names, dropping absent optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ========================
# Response Models
# ========================

class HealthResponse(BaseModel):
    """Health check payload."""
    status: str = "OK"
    message: str


class ConversionResult(WireModel):
    """Result for a single file conversion."""
    original_name: str = Field(..., alias="originalName")
    converted_name: Optional[str] = Field(None, alias="convertedName")
    size: Optional[int] = None
    status: ConversionStatus
    download_url: Optional[str] = Field(None, alias="downloadUrl", description="Present iff status is success")
    error: Optional[str] = Field(None, description="Present iff status is error")


class ConvertResponse(WireModel):
    """Envelope for a batch conversion, results in upload order."""
    results: List[ConversionResult] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Top-level error envelope."""
    error: str


class StorageAreaStats(BaseModel):
    total_files: int
    total_size_bytes: int
    total_size_mb: float


class StorageStatsResponse(BaseModel):
    """Temporary storage usage per area."""
    uploads: StorageAreaStats
    converted: StorageAreaStats


# ========================
# Client History Models
# ========================

class HistoryEntry(WireModel):
    """Persisted record of one past conversion outcome.

    Entries are never mutated once created.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    file_name: str = Field(..., alias="fileName")
    converted_name: Optional[str] = Field(None, alias="convertedName")
    original_size: Optional[str] = Field(None, alias="originalSize")
    converted_at: datetime = Field(..., alias="convertedAt")
    status: ConversionStatus
    download_url: Optional[str] = Field(None, alias="downloadUrl")
    error: Optional[str] = None


def storage_stats_from_dict(stats: Dict[str, dict]) -> StorageStatsResponse:
    return StorageStatsResponse(**{k: StorageAreaStats(**v) for k, v in stats.items()})

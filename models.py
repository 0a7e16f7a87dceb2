"""
Pydantic Models

Request and response bodies for the lazy sequence and memo cache endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SourceKind(str, Enum):
    """Producers a pipeline can start from"""
    COUNT_DOWN = "count_down"
    INDEXED = "indexed"
    ITEMS = "items"


class OperationType(str, Enum):
    """Adapter kinds"""
    FILTER = "filter"
    TRANSFORM = "transform"


class SequenceSource(BaseModel):
    """Source producer of a pipeline"""
    kind: SourceKind = Field(..., description="Producer type")
    value: Any = Field(None, description="Value repeated by count_down")
    count: Optional[int] = Field(
        None,
        description="Number of count_down elements (defaults to 1)",
        ge=0,
        le=100_000
    )
    items: Optional[Any] = Field(
        None,
        description="List for 'indexed' or object for 'items'"
    )

    @model_validator(mode="after")
    def validate_items_shape(self):
        """Check items matches the source kind"""
        if self.kind == SourceKind.INDEXED and self.items is not None and not isinstance(self.items, list):
            raise ValueError("'indexed' source requires a list of items")
        if self.kind == SourceKind.ITEMS and self.items is not None and not isinstance(self.items, dict):
            raise ValueError("'items' source requires an object of items")
        return self

    def to_kwargs(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "value": self.value,
            "count": self.count,
            "items": self.items,
        }


class SequenceOperation(BaseModel):
    """One filter or transform step"""
    type: OperationType = Field(..., description="Adapter type")
    name: str = Field(..., description="Registered predicate or transform name")
    arg: Optional[Any] = Field(None, description="Optional argument for the named function")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        """Validate name is not empty"""
        if not v or not v.strip():
            raise ValueError("Operation name cannot be empty")
        return v.strip()


class SequenceRequest(BaseModel):
    """Request to evaluate a lazy pipeline"""
    source: SequenceSource
    operations: List[SequenceOperation] = Field(default_factory=list)
    limit: Optional[int] = Field(
        None,
        description="Maximum number of pairs to pull",
        ge=1,
        le=10_000
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "source": {"kind": "indexed", "items": [5, 4, 3, 2, 1]},
                "operations": [{"type": "filter", "name": "even"}],
                "limit": 100
            }
        }
    )


class SequencePerformance(BaseModel):
    processing_time_ms: float = Field(..., ge=0)
    output_size: int = Field(..., ge=0)
    operation: str


class SequenceResponse(BaseModel):
    """Result of a pipeline evaluation"""
    ok: bool = Field(True, description="Request success status")
    pairs: List[List[Any]] = Field(..., description="(cursor, value) pairs in order")
    values: List[Any] = Field(..., description="Values only")
    count: int = Field(..., ge=0)
    truncated: bool = Field(False, description="Whether the limit cut the sequence short")
    operations_applied: List[str] = Field(default_factory=list)
    performance: SequencePerformance
    timestamp: datetime


class MemoLookupRequest(BaseModel):
    """Lookup in a memo cache; a null key addresses the nil slot"""
    key: Any = Field(None, description="Argument passed to the memoized function")

    model_config = ConfigDict(
        json_schema_extra={"example": {"key": 10}}
    )


class CacheStats(BaseModel):
    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    failures: int = Field(..., ge=0)
    computations: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0, le=1)
    entries: int = Field(..., ge=0)
    nil_slot_populated: bool
    eviction_mode: str


class MemoLookupResponse(BaseModel):
    ok: bool = Field(True, description="Request success status")
    function_name: str
    key: Any = None
    value: Any = None
    cache_hit: bool
    stats: CacheStats
    execution_time_ms: Optional[float] = Field(None, ge=0)
    timestamp: datetime


class CacheStatsResponse(BaseModel):
    ok: bool = Field(True, description="Request success status")
    function_name: str
    stats: CacheStats
    timestamp: datetime


class CacheClearResponse(BaseModel):
    ok: bool = Field(True, description="Request success status")
    function_name: str
    entries_removed: int = Field(..., ge=0)
    timestamp: datetime


class CatalogResponse(BaseModel):
    ok: bool = Field(True, description="Request success status")
    sources: List[str]
    predicates: List[str]
    transforms: List[str]
    memo_functions: List[str]


class PerformanceResponse(BaseModel):
    ok: bool = Field(True, description="Request success status")
    total_operations: int = Field(..., ge=0)
    failed_operations: int = Field(..., ge=0)
    total_time_ms: float = Field(..., ge=0)
    avg_time_ms: float = Field(..., ge=0)
    timestamp: datetime


class HealthResponse(BaseModel):
    healthy: bool
    caches: Dict[str, CacheStats] = Field(default_factory=dict)
    performance: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class StatusResponse(BaseModel):
    """Standard status response"""
    ok: bool = Field(True, description="Request success status")
    message: str = Field(..., description="Status message")
    timestamp: datetime = Field(..., description="Response timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": True,
                "message": "Lazy-memo service operational",
                "timestamp": "2024-01-01T12:00:00Z"
            }
        }
    )


class ErrorResponse(BaseModel):
    """Standard error response"""
    ok: bool = Field(False, description="Request success status")
    error: str = Field(..., description="Error message")
    error_type: Optional[str] = Field(None, description="Error type/category")
    timestamp: datetime = Field(..., description="Error timestamp")

"""Record Schemas: Pydantic models at the HTTP boundary.

Invariants:
    - RecordBody accepts arbitrary extra fields (records are schemaless)
    - Reserved fields are type-checked: id is a non-empty string, timestamps are ints
"""

from pydantic import BaseModel, ConfigDict, Field


class RecordBody(BaseModel):
    """Create/update payload: reserved fields validated, everything else kept."""
    model_config = ConfigDict(extra="allow")

    id: str | None = Field(None, min_length=1, max_length=512)
    createdAt: int | None = Field(None, ge=0)

    def to_record(self) -> dict:
        return self.model_dump(exclude_none=True)


class ExistsResponse(BaseModel):
    id: str
    exists: bool


class RepairResponse(BaseModel):
    scanned: int
    reindexed: int
    deindexed: int
    orphans_removed: int

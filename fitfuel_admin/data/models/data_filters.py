from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

ALL = "all"
DateBucket = Literal["all", "today", "yesterday", "week", "month"]


class SortSpec(BaseModel):
    """Single-field sort."""
    field: str = Field(description="Attribute to sort on")
    direction: Literal["asc", "desc"] = Field(default="asc", description="Sort direction")

    def toggled(self, field: str) -> "SortSpec":
        """Same field flips direction; a new field starts ascending."""
        if field == self.field:
            return SortSpec(field=field, direction="desc" if self.direction == "asc" else "asc")
        return SortSpec(field=field, direction="asc")


class FilterSet(BaseModel):
    """Filters applied in memory, combined with AND."""
    search: str = Field(default="", description="Case-insensitive substring over the search fields")
    equals: Dict[str, str] = Field(default_factory=dict, description="Categorical equality; 'all' means no constraint")
    date_bucket: DateBucket = Field(default="all", description="Date bucket over date_field")
    date_field: str = Field(default="created_at", description="Attribute the date bucket applies to")

    @property
    def is_active(self) -> bool:
        return bool(self.search.strip()) or any(
            not _is_all(v) for v in self.equals.values()
        ) or self.date_bucket != ALL


def _is_all(value: Optional[str]) -> bool:
    return value is None or str(value).lower() == ALL

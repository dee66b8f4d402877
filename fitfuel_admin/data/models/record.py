from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base document model.

    Documents are stored with camelCase keys; Python code addresses fields by their
    snake_case attribute names. Unknown document keys are kept as extras.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = Field(description="Document identifier assigned by the gateway")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]):
        return cls.model_validate(dict(document))

    @classmethod
    def document_key(cls, name: str) -> str:
        field = cls.model_fields.get(name)
        return field.alias if field is not None and field.alias else name

    @classmethod
    def document_patch(cls, patch: Mapping[str, Any]) -> Dict[str, Any]:
        """Translate a patch keyed by attribute names into document keys and values."""
        out: Dict[str, Any] = {}
        for key, value in patch.items():
            out[cls.document_key(key)] = _document_value(value)
        return out

    def merged(self, patch: Mapping[str, Any]):
        """Return a copy with ``patch`` fields overriding the current ones."""
        return self.model_copy(update=dict(patch))


def _document_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_document_value(v) for v in value]
    return value

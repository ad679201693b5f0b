"""Resource schema. Resources are read-only inputs to the matcher."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Resource(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    topic: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    url: str
    
    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if isinstance(value, int) else value
    
    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags(cls, value):
        return [] if value is None else value

"""
Typed documents for the sample `podcasts` and `episodes` collections.

Models mirror the stored documents field for field. `_id` is exposed as `id`;
`to_document()` drops unset fields so inserts let MongoDB assign `_id`.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class _Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: Optional[ObjectId] = Field(default=None, alias="_id")

    def to_document(self) -> Dict[str, Any]:
        """Return the BSON-ready mapping, omitting empty fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Podcast(_Document):
    """A podcast in the `podcasts` collection."""

    title: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        document = super().to_document()
        if not document.get("tags"):
            document.pop("tags", None)
        return document


class Episode(_Document):
    """An episode in the `episodes` collection, linked to its podcast by id."""

    podcast: Optional[ObjectId] = None
    title: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = None

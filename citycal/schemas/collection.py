# citycal/schemas/collection.py
"""
Editorial collections.

Collections group events or venues ("Jazz this week", "Rooftops"). They are
optional grouping metadata consumed by listing filters, not by the
normalization pipeline itself.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CollectionType(str, Enum):
    """What a collection groups."""

    EVENT = "event"
    VENUE = "venue"


class Collection(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    collection_id: str = Field(min_length=1)
    collection_type: CollectionType = CollectionType.EVENT
    name: str = Field(min_length=1)
    slug: str
    description: Optional[str] = None
    city: Optional[str] = None
    priority: Optional[float] = None
    is_active: bool = True


class CollectionItem(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    collection_id: str = Field(min_length=1)
    item_type: CollectionType = CollectionType.EVENT
    item_id: str = Field(min_length=1)
    sort_order: Optional[float] = None

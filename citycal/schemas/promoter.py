# citycal/schemas/promoter.py
"""
Promoters.

Collectives and promoters behind events. Loaded from the optional promoters
feed; only active promoters reach a run result.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Promoter(BaseModel):
    model_config = ConfigDict(frozen=True)

    promoter_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    slug: str
    instagram_handle: Optional[str] = None
    website_url: Optional[str] = None
    description_short: Optional[str] = None
    primary_image_url: Optional[str] = None
    is_active: bool = True

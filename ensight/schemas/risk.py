"""Blacklist lookup Pydantic models."""
from typing import Optional

from pydantic import BaseModel, Field


class AddressRisk(BaseModel):
    """Whether an address is blacklisted, and when the list was last synced."""

    flagged: bool
    last_updated: Optional[int] = Field(default=None, alias="lastUpdated")

    class Config:
        populate_by_name = True

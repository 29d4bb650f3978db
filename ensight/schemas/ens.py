"""ENS lookup Pydantic models."""
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ResolvedName(BaseModel):
    """Forward resolution of an ENS name."""

    name: str
    address: str


class ReverseRecord(BaseModel):
    """Primary name of an address and whether it resolves back to it."""

    address: str
    name: str
    verified: bool


class TextRecord(BaseModel):
    """A single ENS text record."""

    name: str
    key: str
    value: str


class AvatarRecord(BaseModel):
    name: str
    avatar: str


class EnsProfile(BaseModel):
    """Address, avatar and the common text records of a name."""

    name: str
    address: str
    avatar: Optional[str] = None
    text_records: Dict[str, str] = Field(default_factory=dict, alias="textRecords")

    class Config:
        populate_by_name = True

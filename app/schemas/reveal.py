from typing import List
from pydantic import BaseModel, Field


class RevealRequest(BaseModel):
    user_id: str
    listing_id: int


class BulkRevealRequest(BaseModel):
    user_id: str
    listing_ids: List[int] = Field(..., min_length=1)


class RevealResponse(BaseModel):
    listing_id: int
    already_revealed: bool
    credits_charged: int
    credits_remaining: int


class BulkRevealResponse(BaseModel):
    revealed: List[int]
    already_revealed: List[int]
    credits_charged: int
    credits_remaining: int


class RevealedListingsResponse(BaseModel):
    user_id: str
    listing_ids: List[int]

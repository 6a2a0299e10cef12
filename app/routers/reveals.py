from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.reveal import (
    BulkRevealRequest,
    BulkRevealResponse,
    RevealedListingsResponse,
    RevealRequest,
    RevealResponse,
)
from app.services.errors import InsufficientCreditsError, ListingNotFoundError, ProfileNotFoundError, RevealError
from app.services.reveals import RevealService

router = APIRouter(prefix="/api/reveals", tags=["reveals"])


def _reveal_failed(e: RevealError) -> HTTPException:
    if isinstance(e, InsufficientCreditsError):
        return HTTPException(status_code=402, detail={
            "message": "Insufficient credits",
            "required": e.required,
            "available": e.available,
        })
    if isinstance(e, (ListingNotFoundError, ProfileNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.post("", response_model=RevealResponse)
def reveal_listing(request: RevealRequest, db: Session = Depends(get_db)):
    """Reveal one listing for a user; repeat reveals are free"""
    try:
        result = RevealService(db).reveal_listing(request.user_id, request.listing_id)
    except RevealError as e:
        raise _reveal_failed(e)
    return RevealResponse(**vars(result))


@router.post("/bulk", response_model=BulkRevealResponse)
def bulk_reveal(request: BulkRevealRequest, db: Session = Depends(get_db)):
    """Reveal several listings at once, all or nothing"""
    try:
        result = RevealService(db).bulk_reveal(request.user_id, request.listing_ids)
    except RevealError as e:
        raise _reveal_failed(e)
    return BulkRevealResponse(**vars(result))


@router.get("/{user_id}", response_model=RevealedListingsResponse)
def get_revealed_listings(user_id: str, db: Session = Depends(get_db)):
    """Ids of every listing the user has revealed"""
    listing_ids = sorted(RevealService(db).revealed_ids(user_id))
    return RevealedListingsResponse(user_id=user_id, listing_ids=listing_ids)

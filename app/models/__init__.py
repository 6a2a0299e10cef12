from app.models.listing import Listing, LISTING_STATUS_JUST_LISTED, LISTING_STATUS_SOLD
from app.models.run import Run
from app.models.reveal import ListingReveal
from app.models.profile import Profile

__all__ = [
    "Listing", "Run", "ListingReveal", "Profile",
    "LISTING_STATUS_JUST_LISTED", "LISTING_STATUS_SOLD",
]

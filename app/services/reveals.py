import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models import Listing, ListingReveal, Profile
from app.services.errors import InsufficientCreditsError, ListingNotFoundError, ProfileNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class RevealResult:
    listing_id: int
    already_revealed: bool
    credits_charged: int
    credits_remaining: int


@dataclass
class BulkRevealResult:
    revealed: List[int] = field(default_factory=list)
    already_revealed: List[int] = field(default_factory=list)
    credits_charged: int = 0
    credits_remaining: int = 0


class RevealService:
    """
    Unmasks listings for a user in exchange for credits.

    Reveals are one-way and idempotent: a listing already revealed for the
    user is never charged again. Unlimited profiles are recorded but not charged.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def _get_profile(self, user_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.id == user_id).first()
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    def get_profile(self, user_id: Optional[str]) -> Optional[Profile]:
        if not user_id:
            return None
        return self.db.query(Profile).filter(Profile.id == user_id).first()

    def revealed_ids(self, user_id: Optional[str], listing_ids: Optional[Sequence[int]] = None) -> Set[int]:
        if not user_id:
            return set()
        query = self.db.query(ListingReveal.listing_id).filter(ListingReveal.user_id == user_id)
        if listing_ids is not None:
            if not listing_ids:
                return set()
            query = query.filter(ListingReveal.listing_id.in_(list(listing_ids)))
        return {row[0] for row in query.all()}

    def _check_listings_exist(self, listing_ids: Sequence[int]) -> None:
        found = {
            row[0] for row in
            self.db.query(Listing.id).filter(Listing.id.in_(list(listing_ids))).all()
        }
        missing = [i for i in listing_ids if i not in found]
        if missing:
            raise ListingNotFoundError(missing)

    def _charge(self, user_id: str, amount: int) -> bool:
        """Deducts credits only if the stored balance still covers them"""
        result = self.db.execute(
            update(Profile)
            .where(Profile.id == user_id, Profile.credits_remaining >= amount)
            .values(credits_remaining=Profile.credits_remaining - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def reveal_listing(self, user_id: str, listing_id: int) -> RevealResult:
        result = self.bulk_reveal(user_id, [listing_id])
        return RevealResult(
            listing_id=listing_id,
            already_revealed=bool(result.already_revealed),
            credits_charged=result.credits_charged,
            credits_remaining=result.credits_remaining,
        )

    def bulk_reveal(self, user_id: str, listing_ids: Sequence[int]) -> BulkRevealResult:
        """
        Reveals every listing not yet revealed for the user, charging the
        per-listing credit cost for each new one. Either all new reveals are
        recorded and paid for, or none are.
        """
        unique_ids = list(dict.fromkeys(listing_ids))
        profile = self._get_profile(user_id)
        self._check_listings_exist(unique_ids)

        already = self.revealed_ids(user_id, unique_ids)
        to_reveal = [i for i in unique_ids if i not in already]

        unit_cost = 0 if profile.unlimited else self.settings.reveal_credit_cost
        total_cost = unit_cost * len(to_reveal)

        if total_cost > profile.credits_remaining:
            logger.info(
                f"User {user_id} cannot reveal {len(to_reveal)} listings: "
                f"needs {total_cost} credits, has {profile.credits_remaining}"
            )
            raise InsufficientCreditsError(total_cost, profile.credits_remaining)

        if to_reveal:
            try:
                for listing_id in to_reveal:
                    self.db.add(ListingReveal(user_id=user_id, listing_id=listing_id, credit_cost=unit_cost))
                self.db.flush()
                if total_cost and not self._charge(user_id, total_cost):
                    self.db.rollback()
                    available = self._get_profile(user_id).credits_remaining
                    logger.info(
                        f"Balance of user {user_id} changed during reveal: "
                        f"needs {total_cost} credits, has {available}"
                    )
                    raise InsufficientCreditsError(total_cost, available)
                self.db.commit()
            except IntegrityError:
                # A concurrent request revealed one of these first; nothing was charged
                self.db.rollback()
                logger.warning(f"Concurrent reveal detected for user {user_id}, retrying")
                return self.bulk_reveal(user_id, listing_ids)
            self.db.refresh(profile)

        logger.info(
            f"User {user_id} revealed {len(to_reveal)} listings for {total_cost} credits "
            f"({len(already)} already revealed)"
        )
        return BulkRevealResult(
            revealed=to_reveal,
            already_revealed=[i for i in unique_ids if i in already],
            credits_charged=total_cost,
            credits_remaining=profile.credits_remaining,
        )

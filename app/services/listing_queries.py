import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import and_, or_, select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models import Listing, ListingReveal, Run, LISTING_STATUS_JUST_LISTED, LISTING_STATUS_SOLD
from app.schemas.filters import CustomDateRange, ListingFilters
from app.services.errors import ListingQueryError
from app.services.presentation import (
    listing_to_dict,
    map_database_listing_to_frontend,
    map_database_listings_to_frontend,
)

logger = logging.getLogger(__name__)

CityFilter = Union[str, Sequence[str], None]

SORT_COLUMNS = {
    "date": Listing.lastseenat,
    "price": Listing.unformattedprice,
    "beds": Listing.beds,
    "baths": Listing.baths,
    "area": Listing.area,
}


@dataclass
class ListingPage:
    """One page of listings plus the total they were cut from"""
    data: List[Dict[str, Any]] = field(default_factory=list)
    count: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return (self.count + self.page_size - 1) // self.page_size

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


def paginate(rows: List[Dict[str, Any]], page: int, page_size: int) -> ListingPage:
    """In-process pagination for result sets that were fully materialized"""
    start = (page - 1) * page_size
    return ListingPage(data=rows[start:start + page_size], count=len(rows), page=page, page_size=page_size)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_date_range(
    date_range: Union[CustomDateRange, str, None],
    now: Optional[datetime] = None,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Turns a date filter into inclusive (start, end) bounds on lastseenat.

    Presets are a number of days back from now; "all" means no bound.
    """
    if date_range is None or date_range == "all":
        return None, None
    if isinstance(date_range, CustomDateRange):
        start = datetime.combine(date_range.start_date, time.min, tzinfo=timezone.utc)
        end = datetime.combine(date_range.end_date, time.max, tzinfo=timezone.utc)
        return start, end
    if not str(date_range).isdigit() or int(date_range) <= 0:
        raise ValueError(f"Invalid date range preset: {date_range!r}")
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=int(date_range)), None


def _normalize_cities(city_name: CityFilter) -> List[str]:
    if not city_name:
        return []
    if isinstance(city_name, str):
        return [city_name]
    return [c for c in city_name if c]


def matches_filters(row: Dict[str, Any], filters: ListingFilters, now: Optional[datetime] = None) -> bool:
    """
    In-process twin of the SQL filters, applied to a lowercase listing row.
    A missing value never satisfies an active range filter.
    """
    def below(value, bound):
        return value is None or value < bound

    def above(value, bound):
        return value is None or value > bound

    price = row.get("unformattedprice")
    if filters.min_price and below(price, filters.min_price):
        return False
    if filters.max_price and above(price, filters.max_price):
        return False
    if filters.beds and below(row.get("beds"), filters.beds):
        return False
    if filters.baths and below(row.get("baths"), filters.baths):
        return False
    if filters.property_type and row.get("statustext") != filters.property_type:
        return False
    if filters.min_sqft and below(row.get("area"), filters.min_sqft):
        return False
    if filters.max_sqft and above(row.get("area"), filters.max_sqft):
        return False

    if filters.search_term:
        term = filters.search_term.lower()
        street = (row.get("addressstreet") or "").lower()
        zipcode = (row.get("addresszipcode") or "").lower()
        if term not in street and term not in zipcode:
            return False

    start, end = resolve_date_range(filters.date_range, now)
    if start or end:
        seen = _as_utc(row.get("lastseenat"))
        if seen is None:
            return False
        if start and seen < start:
            return False
        if end and seen > end:
            return False
    return True


class ListingQueryService:
    """Read side of the listings store used by the dashboard"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    @contextmanager
    def _query_context(self, table: str, operation: str, filters: Optional[ListingFilters] = None):
        try:
            yield
        except (SQLAlchemyError, ValueError) as e:
            applied = filters.applied() if filters else {}
            logger.error(f"Query {operation} on {table} failed: {e} (filters={applied})")
            raise ListingQueryError(str(e), table=table, operation=operation, filters=applied) from e

    def get_recent_runs(self, limit: int = 2) -> List[Run]:
        with self._query_context(Run.__tablename__, "get_recent_runs"):
            return self.db.query(Run).order_by(Run.started_at.desc()).limit(limit).all()

    def get_most_recent_run_with_data(self) -> Optional[str]:
        """Newest run that produced listings, falling back to the newest run"""
        with self._query_context(Run.__tablename__, "get_most_recent_run_with_data"):
            run_id = self.db.execute(
                select(Run.id)
                .where(select(Listing.id).where(Listing.lastrunid == Run.id).exists())
                .order_by(Run.started_at.desc())
                .limit(1)
            ).scalar()
            if run_id is not None:
                return run_id
            newest = self.db.query(Run.id).order_by(Run.started_at.desc()).first()
            return newest[0] if newest else None

    def get_run_window(self) -> Tuple[Optional[str], Optional[str]]:
        """(current, previous) run ids for "since previous run" queries"""
        runs = self.get_recent_runs(limit=2)
        current = runs[0].id if runs else None
        previous = runs[1].id if len(runs) > 1 else None
        return current, previous

    def _apply_filters(self, query, filters: ListingFilters):
        if filters.search_term:
            # Literal substring match, same as matches_filters
            term = filters.search_term
            query = query.filter(or_(
                Listing.addressstreet.icontains(term, autoescape=True),
                Listing.addresszipcode.icontains(term, autoescape=True),
            ))
        if filters.min_price:
            query = query.filter(Listing.unformattedprice >= filters.min_price)
        if filters.max_price:
            query = query.filter(Listing.unformattedprice <= filters.max_price)
        if filters.beds:
            query = query.filter(Listing.beds >= filters.beds)
        if filters.baths:
            query = query.filter(Listing.baths >= filters.baths)
        if filters.property_type:
            query = query.filter(Listing.statustext == filters.property_type)
        if filters.min_sqft:
            query = query.filter(Listing.area >= filters.min_sqft)
        if filters.max_sqft:
            query = query.filter(Listing.area <= filters.max_sqft)

        start, end = resolve_date_range(filters.date_range)
        if start:
            query = query.filter(Listing.lastseenat >= start)
        if end:
            query = query.filter(Listing.lastseenat <= end)
        return query

    def fetch_just_listed(
        self,
        run_id: Optional[str],
        city_name: CityFilter,
        page: int = 1,
        page_size: Optional[int] = None,
        filters: Optional[ListingFilters] = None,
        sort: Optional[Dict[str, str]] = None,
    ) -> ListingPage:
        """Page of just-listed properties, filtered and counted in the database"""
        filters = filters or ListingFilters()
        page_size = page_size or self.settings.default_page_size
        cities = _normalize_cities(city_name) or filters.cities()

        with self._query_context(Listing.__tablename__, "fetch_just_listed", filters):
            query = self.db.query(Listing).filter(
                Listing.status == LISTING_STATUS_JUST_LISTED,
                Listing.lastpage <= self.settings.just_listed_max_page,
            )
            if run_id:
                query = query.filter(Listing.lastrunid == run_id)
            if len(cities) == 1:
                query = query.filter(Listing.addresscity == cities[0])
            elif cities:
                query = query.filter(Listing.addresscity.in_(cities))
            query = self._apply_filters(query, filters)

            total = query.count()

            column = SORT_COLUMNS["price"]
            descending = True
            if sort:
                column = SORT_COLUMNS.get(sort.get("sortBy"), column)
                descending = sort.get("sortOrder", "desc") != "asc"
            order = column.desc() if descending else column.asc()
            rows = (
                query.order_by(column.is_(None), order, Listing.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )

        logger.info(f"fetch_just_listed: {len(rows)} of {total} rows (run={run_id}, cities={cities}, page={page})")
        return ListingPage(
            data=map_database_listings_to_frontend(rows),
            count=total,
            page=page,
            page_size=page_size,
        )

    def fetch_sold_since_prev(
        self,
        current_run_id: Optional[str],
        prev_run_id: Optional[str],
        city_name: CityFilter,
        filters: Optional[ListingFilters] = None,
    ) -> List[Dict[str, Any]]:
        """
        Listings sold between the previous run and the current one.

        Sold means either marked sold in the current run, or seen in the
        previous run and missing from the current one. The whole city is
        fetched unfiltered first because the comparison needs both runs;
        filters are then applied in-process.
        """
        filters = filters or ListingFilters()
        cities = _normalize_cities(city_name) or filters.cities()
        run_ids = [r for r in (current_run_id, prev_run_id) if r]
        if not run_ids:
            return []

        with self._query_context(Listing.__tablename__, "fetch_sold_since_prev", filters):
            query = self.db.query(Listing).filter(Listing.lastrunid.in_(run_ids))
            if cities:
                query = query.filter(Listing.addresscity.in_(cities))
            rows = query.all()

            current_zpids = {r.zpid for r in rows if r.lastrunid == current_run_id}
            sold = []
            for row in rows:
                if row.lastrunid == current_run_id and row.status == LISTING_STATUS_SOLD:
                    sold.append(row)
                elif (
                    prev_run_id
                    and prev_run_id != current_run_id
                    and row.lastrunid == prev_run_id
                    and row.status != LISTING_STATUS_SOLD
                    and row.zpid not in current_zpids
                ):
                    sold.append(row)

            now = datetime.now(timezone.utc)
            matched = [r for r in (listing_to_dict(row) for row in sold) if matches_filters(r, filters, now)]

        matched.sort(key=lambda r: (r.get("unformattedprice") is None, -(r.get("unformattedprice") or 0), r.get("id") or 0))
        logger.info(
            f"fetch_sold_since_prev: {len(matched)} of {len(sold)} sold listings match "
            f"(runs {current_run_id}/{prev_run_id}, cities={cities})"
        )
        return map_database_listings_to_frontend(matched)

    def fetch_listing_by_id(self, listing_id: int) -> Optional[Dict[str, Any]]:
        with self._query_context(Listing.__tablename__, "fetch_listing_by_id"):
            listing = self.db.query(Listing).filter(Listing.id == listing_id).first()
        return map_database_listing_to_frontend(listing)

    def fetch_revealed_listings(self, user_id: Optional[str], listing_ids: Optional[Sequence[int]] = None) -> List[int]:
        if not user_id:
            return []
        if listing_ids is not None and len(listing_ids) == 0:
            return []
        with self._query_context(ListingReveal.__tablename__, "fetch_revealed_listings"):
            query = self.db.query(ListingReveal.listing_id).filter(ListingReveal.user_id == user_id)
            if listing_ids is not None:
                query = query.filter(ListingReveal.listing_id.in_(list(listing_ids)))
            return [row[0] for row in query.all()]

    def count_by_city(self, status: str = LISTING_STATUS_JUST_LISTED) -> Dict[str, int]:
        """Listings per city, for the city picker"""
        with self._query_context(Listing.__tablename__, "count_by_city"):
            rows = (
                self.db.query(Listing.addresscity, func.count(Listing.id))
                .filter(and_(Listing.status == status, Listing.addresscity.isnot(None)))
                .group_by(Listing.addresscity)
                .order_by(func.count(Listing.id).desc())
                .all()
            )
        return {city: count for city, count in rows}

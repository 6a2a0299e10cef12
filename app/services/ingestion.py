import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models import Run
from app.services.extraction import map_items_to_rows
from app.services.listing_upsert import ListingUpserter, dialect_insert

logger = logging.getLogger(__name__)


class ListingIngestor:
    """Takes pages of raw search results from the scraper and stores them"""

    def __init__(self, db: Session, settings: Optional[Settings] = None, upserter: Optional[ListingUpserter] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.upserter = upserter or ListingUpserter(db, self.settings)

    def register_run(self, run_id: str) -> Run:
        """Returns the run, creating it on its first page"""
        stmt = (
            dialect_insert(self.db, Run.__table__)
            .values(id=run_id, started_at=datetime.now(timezone.utc))
            .on_conflict_do_nothing(index_elements=["id"])
        )
        # Registering an existing run is a no-op
        if self.db.execute(stmt).rowcount:
            logger.info(f"Registered scrape run {run_id}")
        self.db.commit()
        return self.db.get(Run, run_id)

    def finish_run(self, run_id: str) -> Optional[Run]:
        run = self.db.query(Run).filter(Run.id == run_id).first()
        if run is None:
            return None
        run.ended_at = datetime.now(timezone.utc)
        self.db.commit()
        return run

    def ingest_page(
        self,
        items: List[Dict[str, Any]],
        area_name: str,
        page: int,
        run_id: str,
        region_name: Optional[str] = None,
        status: str = "just_listed",
    ) -> Dict[str, Any]:
        self.register_run(run_id)
        rows = map_items_to_rows(items, area_name, page, run_id, region_name, status=status)
        summary = self.upserter.upsert_listings_with_validation(rows)

        results = {
            "received": len(items),
            "mapped": len(rows),
            "unique": summary.unique,
            "upserted": summary.success_count,
            "failed": summary.failure_count,
            "invalid": summary.invalid_count,
            "batches": summary.batches,
            "failed_zpids": summary.failed_ids,
        }
        logger.info(f"Ingested page {page} of {area_name} for run {run_id}: {results}")
        return results

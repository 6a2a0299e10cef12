import time
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from app.config import Settings, get_settings
from app.models import Listing
from app.services.validation import validate_listing_data

logger = logging.getLogger(__name__)

# Never overwritten by a later sighting
IMMUTABLE_COLUMNS = {"id", "created_at"}


@dataclass
class UpsertSummary:
    """What happened to the rows handed to one upsert call"""
    received: int = 0
    valid: int = 0
    unique: int = 0
    batches: int = 0
    invalid_count: int = 0
    succeeded_ids: List[str] = field(default_factory=list)
    failed_ids: List[str] = field(default_factory=list)
    failed_batches: List[int] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded_ids)

    @property
    def failure_count(self) -> int:
        return len(self.failed_ids)

    def __repr__(self) -> str:
        return f"UpsertSummary({self.success_count} upserted, {self.failure_count} failed, {self.batches} batches)"


def _error_code(error: Optional[BaseException]) -> Optional[str]:
    return getattr(getattr(error, "orig", None), "pgcode", None)


def dialect_insert(db: Session, table):
    """INSERT construct with ON CONFLICT support for the bound database"""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(table)
    if dialect == "sqlite":
        return sqlite_insert(table)
    raise RuntimeError(f"Upsert is not supported for dialect {dialect}")


def dedupe_by_zpid(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keeps the last row for every zpid, in order of first appearance"""
    unique: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        unique[row["zpid"]] = row
    return list(unique.values())


class ListingUpserter:
    """Writes mapped listing rows in retry-guarded batches keyed on zpid"""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.sleep = sleep
        self.table = Listing.__table__
        self.columns = {c.name for c in self.table.columns}

    def _prepare(self, batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Restricts rows to known columns and gives them all the same keys"""
        keys = set()
        for row in batch:
            keys.update(k for k in row if k in self.columns and k not in IMMUTABLE_COLUMNS)
        unknown = {k for row in batch for k in row} - self.columns
        if unknown:
            logger.debug(f"Ignoring unknown columns: {sorted(unknown)}")
        return [{k: row.get(k) for k in keys} for row in batch]

    def _write_batch(self, batch: List[Dict[str, Any]]) -> None:
        values = self._prepare(batch)
        stmt = dialect_insert(self.db, self.table).values(values)
        update_set = {
            name: stmt.excluded[name]
            for name in values[0]
            if name not in IMMUTABLE_COLUMNS and name != "zpid"
        }
        update_set["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=["zpid"], set_=update_set)
        self.db.execute(stmt)
        self.db.commit()

    def _retrying(self, batch_number: int, total_batches: int, size: int) -> Retrying:
        """Retry policy for one batch: quadratic backoff, rollback before each new attempt"""
        retries = self.settings.upsert_retries

        def wait(retry_state) -> float:
            return self.settings.upsert_retry_base_delay * retry_state.attempt_number ** 2

        def before_sleep(retry_state) -> None:
            self.db.rollback()
            error = retry_state.outcome.exception()
            logger.warning(
                f"Upsert attempt {retry_state.attempt_number}/{retries} failed for {self.table.name} "
                f"(batch {batch_number}/{total_batches}, size {size}, code {_error_code(error)}): {error}"
            )

        return Retrying(
            stop=stop_after_attempt(retries),
            wait=wait,
            retry=retry_if_exception_type(SQLAlchemyError),
            sleep=self.sleep,
            before_sleep=before_sleep,
        )

    def upsert_listings_with_validation(self, rows: List[Optional[Dict[str, Any]]]) -> UpsertSummary:
        """
        Drops rows without a zpid, de-duplicates (last occurrence wins) and
        upserts in batches. A batch that keeps failing is logged and skipped;
        the remaining batches are still written.
        """
        summary = UpsertSummary(received=len(rows))

        valid_rows = []
        for row in rows:
            if not row or not row.get("zpid"):
                logger.warning(f"Skipping invalid row: {row!r}")
                continue
            valid_rows.append(row)
        summary.valid = len(valid_rows)

        if not valid_rows:
            logger.info(f"No valid rows to upsert into {self.table.name}")
            return summary

        unique_rows = dedupe_by_zpid(valid_rows)
        summary.unique = len(unique_rows)
        summary.invalid_count = sum(1 for row in unique_rows if not validate_listing_data(row))
        logger.info(
            f"Validated and deduplicated {len(valid_rows)} rows to {len(unique_rows)} "
            f"unique listings for {self.table.name}"
        )

        batch_size = self.settings.upsert_batch_size
        retries = self.settings.upsert_retries
        total_batches = (len(unique_rows) + batch_size - 1) // batch_size
        summary.batches = total_batches
        logger.info(f"Processing {len(unique_rows)} listings in {total_batches} batches of {batch_size}")

        for start in range(0, len(unique_rows), batch_size):
            batch = unique_rows[start:start + batch_size]
            batch_number = start // batch_size + 1
            zpids = [row["zpid"] for row in batch]

            try:
                for attempt in self._retrying(batch_number, total_batches, len(batch)):
                    with attempt:
                        self._write_batch(batch)
            except RetryError as e:
                self.db.rollback()
                last_error = e.last_attempt.exception()
                code = _error_code(last_error)
                logger.error(
                    f"Upsert failed after {retries} retries for {self.table.name}: "
                    f"error={last_error}, code={code}, batch={batch_number}/{total_batches}, "
                    f"batch_size={len(batch)}"
                )
                summary.failed_ids.extend(zpids)
                summary.failed_batches.append(batch_number)
                continue

            summary.succeeded_ids.extend(zpids)
            logger.info(f"Upserted {len(batch)} rows into {self.table.name} (batch {batch_number}/{total_batches})")
            if start + batch_size < len(unique_rows):
                self.sleep(self.settings.upsert_batch_pause)

        logger.info(f"Upsert completed: {summary!r}")
        return summary

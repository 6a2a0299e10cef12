import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.listing import IngestRequest, IngestResult
from app.services.ingestion import ListingIngestor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ingest", tags=["ingest"])


@router.post("", response_model=IngestResult)
def ingest_page(request: IngestRequest, db: Session = Depends(get_db)):
    """Store one page of scraped search results"""
    logger.info(f"Ingest request: {len(request.items)} items, {request.area_name} page {request.page}")
    results = ListingIngestor(db).ingest_page(
        request.items,
        request.area_name,
        request.page,
        request.run_id,
        region_name=request.region_name,
        status=request.status,
    )
    if results["mapped"] and results["upserted"] == 0 and results["failed"]:
        raise HTTPException(status_code=503, detail={"message": "Listing store unavailable", **results})
    return IngestResult(**results)


@router.post("/runs/{run_id}/finish")
def finish_run(run_id: str, db: Session = Depends(get_db)):
    """Mark a scrape run as finished"""
    run = ListingIngestor(db).finish_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return {"id": run.id, "started_at": run.started_at, "ended_at": run.ended_at}

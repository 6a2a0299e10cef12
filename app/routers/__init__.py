from app.routers.listings import router as listings_router
from app.routers.reveals import router as reveals_router
from app.routers.ingest import router as ingest_router

__all__ = ["listings_router", "reveals_router", "ingest_router"]

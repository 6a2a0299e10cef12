import logging
from fastapi import FastAPI

from app.config import get_settings
from app.database import engine, Base
from app.routers import listings_router, reveals_router, ingest_router

settings = get_settings()

log_level = logging.DEBUG if settings.debug else logging.INFO
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.app_name,
    description="Just-listed and recently sold property leads with pay-per-reveal access",
    version="1.0.0"
)

app.include_router(listings_router)
app.include_router(reveals_router)
app.include_router(ingest_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base
from .engine.modes import list_modes
from .routers import quantity_tables, quantity_groups, quantity_items

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("quantity_app")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Quantity Tables",
    description="Quantity take-off tables for construction projects",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(quantity_tables.router, prefix="/api")
app.include_router(quantity_groups.router, prefix="/api")
app.include_router(quantity_items.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME, "calculation_modes": list_modes()}


logger.info("%s started (database: %s)", settings.APP_NAME, engine.url.render_as_string(hide_password=True))

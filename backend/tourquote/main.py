import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tourquote.config import settings

# ─── Logging setup (file + console) ───
_log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
_handlers: list[logging.Handler] = [logging.StreamHandler()]
if settings.log_to_file:
    _LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
    _LOG_DIR.mkdir(exist_ok=True)
    _handlers.append(
        RotatingFileHandler(
            _LOG_DIR / "tourquote.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
    )

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=_handlers,
)

# Quiet noisy libraries
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from tourquote.exception_handlers import register_exception_handlers
from tourquote.routers import contracting, quotations, season_rates

logger = logging.getLogger(__name__)

app = FastAPI(
    title="TourQuote",
    description="Hotel rate resolution and tour quotation costing",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(season_rates.router, prefix="/api/season-rates", tags=["season-rates"])
app.include_router(contracting.router, prefix="/api/hotels", tags=["contracting"])
app.include_router(quotations.router, prefix="/api/quotations", tags=["quotations"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "tourquote"}

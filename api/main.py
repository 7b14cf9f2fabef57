"""
CSV Analyst API - Main FastAPI Application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from .config import settings
from .routes import health, sessions


# API Description for Swagger UI
API_DESCRIPTION = """
## CSV Analyst API

Ask natural-language questions about an uploaded CSV file. Answers come from
Google Gemini as a textual analysis plus an optional SVG chart.

---

### Quick Start

1. **Start a session:** `POST /api/v1/sessions`
2. **Upload data:** `POST /api/v1/sessions/{session_id}/dataset` with a CSV file
3. **Ask:** `POST /api/v1/sessions/{session_id}/questions` with `{"question": "..."}`
4. **Review:** `GET /api/v1/sessions/{session_id}/messages`

---

### What gets sent to the model

Only the column names and the first 10 rows of the dataset, never the whole file.

### Parsing rules

| Input | Behavior |
|-------|----------|
| Blank lines | Ignored |
| Line with a different field count than the header | Skipped |
| Duplicate header names | Upload rejected (400) |
| Quoted fields containing commas | Not supported (split naively) |

### Errors

| Status | `error_kind` | Meaning |
|--------|--------------|---------|
| 400 | `validation` | Empty question or no data rows |
| 409 | `busy` | A question is already being answered in this session |
| 422 | `decode` | The model's reply could not be read; try rephrasing |
| 502 | `service` | The model service is unavailable or returned an error |
"""

# Tags for organizing endpoints in Swagger UI
TAGS_METADATA = [
    {
        "name": "Sessions",
        "description": "Upload a dataset and exchange questions and answers about it.",
    },
    {
        "name": "Health",
        "description": "Service health and readiness checks.",
    },
]

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    logger.info("Starting CSV Analyst API...")

    if settings.SESSION_LOGS_ENABLED:
        settings.ensure_directories()
        logger.info(f"Session logs directory: {settings.LOGS_DIR}")

    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set - questions will fail")
    logger.info(f"LLM model: {settings.GEMINI_MODEL}")

    yield

    logger.info("Shutting down CSV Analyst API...")


app = FastAPI(
    title="CSV Analyst API",
    description=API_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(sessions.router, prefix="/api/v1", tags=["Sessions"])


@app.get("/")
async def root():
    """Root endpoint with API info"""
    return {
        "name": "CSV Analyst API",
        "version": "1.0.0",
        "description": "Ask questions about CSV data and get analyses with optional charts",
        "docs": "/docs",
        "health": "/api/v1/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""FastAPI main application."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from purchase_importer.config import config, Config
from purchase_importer.errors import (
    ChallengeRequired,
    ImporterError,
    InvalidCredentials,
    LoginFailed,
)
from purchase_importer.jobs.runner import persist_products, run_import
from purchase_importer.logging_conf import setup_logging
from purchase_importer.parse.models import ImportCredentials, ImportResult
from purchase_importer.retailers import get_profile
from purchase_importer.store.supabase_writer import ERROR, SupabaseStore

logger = logging.getLogger(__name__)

app = FastAPI(title="Retailer Purchase Importer API", version="0.1.0")

Importer = Callable[[ImportCredentials], Awaitable[ImportResult]]

_store: Optional[SupabaseStore] = None


def get_store() -> SupabaseStore:
    """Lazily create the shared Supabase store."""
    global _store
    if _store is None:
        _store = SupabaseStore()
    return _store


def get_importer() -> Importer:
    return run_import


async def get_current_user_id(
    authorization: Optional[str] = Header(default=None),
    store: SupabaseStore = Depends(get_store),
) -> str:
    """Resolve the bearer access token to a user id."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    user_id = await store.get_user_id(token) if token else None
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized. Please log in to continue.")
    return user_id


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


class ImportRequest(BaseModel):
    """Request body for a credentialed import."""

    retailer: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


@app.on_event("startup")
async def startup():
    """Initialize on startup."""
    setup_logging()


@app.get("/health")
async def health(store: SupabaseStore = Depends(get_store)):
    """Health check endpoint (no auth required)."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "supabase_connected": await store.test_connection(),
    }


@app.post("/api/import/credentialed-scrape")
async def credentialed_scrape(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    store: SupabaseStore = Depends(get_store),
    importer: Importer = Depends(get_importer),
):
    """
    Log in to a retailer with the user's credentials, import their purchase
    history and store the products.
    """
    try:
        body = ImportRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        return _error(400, "Invalid request body. Expected JSON.")

    if not body.retailer or not body.username or not body.password:
        return _error(
            400, "Missing required fields: retailer, username, and password are required."
        )

    retailer = body.retailer.strip().lower()
    try:
        get_profile(retailer)
    except ImporterError as e:
        return _error(e.http_status, str(e))

    credentials = ImportCredentials(
        retailer=retailer, username=body.username, password=body.password
    )
    del body

    try:
        result = await asyncio.wait_for(importer(credentials), timeout=config.IMPORT_TIMEOUT)
    except (InvalidCredentials, LoginFailed, ChallengeRequired) as e:
        logger.warning(f"Import from {retailer} failed: {type(e).__name__}")
        await store.mark_connection(user_id, retailer, ERROR)
        return _error(e.http_status, e.user_message)
    except ImporterError as e:
        logger.error(f"Scraper error for {retailer}: {e}")
        return _error(e.http_status, f"Failed to import from {retailer}. Please try again later.")
    except asyncio.TimeoutError:
        logger.error(f"Import from {retailer} exceeded {config.IMPORT_TIMEOUT}s")
        return _error(500, f"Import from {retailer} timed out. Please try again later.")
    except Exception as e:
        logger.error(f"Credentialed scrape error for {retailer}: {e}", exc_info=True)
        return _error(500, "Internal server error. Please try again later.")
    finally:
        credentials.clear()

    try:
        persisted = await persist_products(store, user_id, retailer, result.products)
    except Exception as e:
        logger.error(f"Database insertion error: {e}", exc_info=True)
        return _error(500, "Failed to save imported products. Please try again.")

    imported_count = len(persisted.inserted)
    if result.products:
        message = f"Successfully imported {imported_count} products from {retailer}"
    else:
        message = (
            f"Connected to {retailer} successfully, but no products were found "
            f"in your purchase history."
        )

    return {
        "success": True,
        "message": message,
        "imported_count": imported_count,
        "skipped_duplicates": persisted.skipped_duplicates,
        "products": persisted.inserted,
    }


if __name__ == "__main__":
    import uvicorn
    Config.validate()
    setup_logging()
    uvicorn.run(app, host=config.HOST, port=config.PORT)

"""Supabase persistence for imported products and retailer connections."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional
from supabase import create_client, Client
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from purchase_importer.config import config
from purchase_importer.parse.models import ScrapedProduct

logger = logging.getLogger(__name__)

CONNECTED = "connected"
ERROR = "error"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def purchase_date_key(value: str | None) -> str:
    """Comparable form of a stored or scraped purchase date."""
    if not value:
        return ""
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).replace(microsecond=0).isoformat()


class SupabaseStore:
    """Writes imported products and connection status to Supabase."""

    def __init__(self, client: Optional[Client] = None):
        if client is None:
            if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE:
                raise ValueError("Supabase configuration missing")
            client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE)
        self.client: Client = client
        self.products_table = config.PRODUCTS_TABLE
        self.connections_table = config.CONNECTIONS_TABLE

    async def _run(self, func, *args):
        # Supabase client is sync, run it in the thread pool
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def get_user_id(self, access_token: str) -> Optional[str]:
        """Resolve a Supabase access token to its user id, or None if invalid."""
        if not access_token:
            return None
        try:
            response = await self._run(self.client.auth.get_user, access_token)
        except Exception as e:
            logger.warning(f"Access token rejected: {type(e).__name__}")
            return None
        user = getattr(response, "user", None)
        return getattr(user, "id", None) if user else None

    async def insert_products(
        self, user_id: str, products: list[ScrapedProduct]
    ) -> tuple[list[dict], int]:
        """
        Insert products not already stored for the user.
        A product is a duplicate when user_id, name and purchase_date match an
        already stored row. Rows within the batch are never compared to each
        other. Returns (inserted rows as {id, name, retailer}, skipped count).
        """
        if not products:
            return [], 0

        existing = await self._run(self._existing_keys_sync, user_id)

        now = _utcnow_iso()
        rows = []
        skipped = 0
        for product in products:
            key = (product.name, purchase_date_key(product.purchase_date))
            if key in existing:
                skipped += 1
                continue
            rows.append(
                {
                    **product.model_dump(),
                    "user_id": user_id,
                    "created_at": now,
                    "updated_at": now,
                }
            )

        if skipped:
            logger.info(f"Skipping {skipped} products already imported")
        if not rows:
            return [], skipped

        inserted = await self._run(self._insert_sync, rows)
        logger.info(f"Inserted {len(inserted)} products to Supabase")
        return inserted, skipped

    async def mark_connection(self, user_id: str, retailer: str, status: str = CONNECTED) -> bool:
        """Upsert the user's connection row. Failures are logged, not raised."""
        now = _utcnow_iso()
        row = {
            "user_id": user_id,
            "retailer": retailer.lower(),
            "status": status,
            "updated_at": now,
        }
        if status == CONNECTED:
            row["last_synced_at"] = now
        try:
            await self._run(self._upsert_connection_sync, row)
            return True
        except Exception as e:
            logger.error(f"Connection update error for {retailer}: {e}")
            return False

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((Exception,)),
        reraise=True,
    )
    def _existing_keys_sync(self, user_id: str) -> set[tuple[str, str]]:
        response = (
            self.client.table(self.products_table)
            .select("name, purchase_date")
            .eq("user_id", user_id)
            .execute()
        )
        return {
            (row.get("name"), purchase_date_key(row.get("purchase_date")))
            for row in (response.data or [])
        }

    def _insert_sync(self, rows: list[dict]) -> list[dict]:
        # Inserts are not idempotent, no retry
        response = self.client.table(self.products_table).insert(rows).execute()
        return [
            {"id": row.get("id"), "name": row.get("name"), "retailer": row.get("retailer")}
            for row in (response.data or [])
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((Exception,)),
        reraise=True,
    )
    def _upsert_connection_sync(self, row: dict) -> None:
        (
            self.client.table(self.connections_table)
            .upsert(row, on_conflict="user_id,retailer")
            .execute()
        )

    async def test_connection(self) -> bool:
        """Test Supabase connection."""
        try:
            await self._run(
                lambda: (
                    self.client.table(self.products_table)
                    .select("id", count="exact")
                    .limit(1)
                    .execute()
                )
            )
            logger.info("Supabase connection successful")
            return True
        except Exception as e:
            logger.error(f"Supabase connection test failed: {e}")
            return False

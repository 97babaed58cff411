"""
Reads the customer listing from the customer management backend and keeps
a persisted cache of the last good response.

Failures never raise: the previous customers stay in place and the caller
can see how stale they are through last_successful_fetch.
"""
from datetime import datetime, timezone as dt_timezone
from typing import Callable, List, Optional
from app.config import CUSTOMERS_KEY, CUSTOMER_API_URL, CUSTOMER_API_TOKEN, CUSTOMER_FETCH_TIMEOUT
from app.utils.storage import load_json_list, save_json_list
import asyncio
import itertools
import logging
import requests

logger = logging.getLogger(__name__)


class CustomerClient:
    def __init__(self, storage, base_url: str = CUSTOMER_API_URL, token: Optional[str] = CUSTOMER_API_TOKEN,
                 timeout: float = CUSTOMER_FETCH_TIMEOUT, on_update: Optional[Callable[[List[dict]], None]] = None,
                 session: Optional[requests.Session] = None):
        self.storage = storage
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.on_update = on_update
        self.session = session or requests.Session()
        self.customers: List[dict] = [c for c in load_json_list(storage, CUSTOMERS_KEY) if isinstance(c, dict)]
        self.last_successful_fetch: Optional[datetime] = None
        self._sequence = itertools.count(1)
        self._applied = 0

    @property
    def customers_url(self) -> str:
        return f"{self.base_url}/v1/customers"

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def fetch(self) -> Optional[List[dict]]:
        """GET the listing; returns the customers or None on any failure."""
        try:
            response = self.session.get(self.customers_url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.warning(f"⚠️ Customer fetch failed: {e}")
            return None
        except ValueError as e:
            logger.warning(f"⚠️ Customer listing is not valid JSON: {e}")
            return None

        if not isinstance(body, dict) or body.get("status") != "success":
            logger.warning("⚠️ Customer listing returned an unexpected body")
            return None
        customers = (body.get("data") or {}).get("customers")
        if not isinstance(customers, list):
            logger.warning("⚠️ Customer listing has no customers array")
            return None
        return [c for c in customers if isinstance(c, dict)]

    def refresh(self) -> bool:
        """Fetch and apply; True when a newer listing was applied."""
        sequence = next(self._sequence)
        customers = self.fetch()
        if customers is None:
            return False
        return self._apply(sequence, customers)

    async def refresh_async(self) -> bool:
        """Fetch in the default executor, apply back on the event loop."""
        sequence = next(self._sequence)
        loop = asyncio.get_running_loop()
        customers = await loop.run_in_executor(None, self.fetch)
        if customers is None:
            return False
        return self._apply(sequence, customers)

    def _apply(self, sequence: int, customers: List[dict]) -> bool:
        if sequence < self._applied:
            logger.info(f"Discarding stale customer listing #{sequence} (already applied #{self._applied})")
            return False
        self._applied = sequence
        self.customers = customers
        self.last_successful_fetch = datetime.now(dt_timezone.utc)
        save_json_list(self.storage, CUSTOMERS_KEY, customers)
        logger.info(f"✅ Loaded {len(customers)} customers")

        if self.on_update:
            try:
                self.on_update(list(customers))
            except Exception as e:
                logger.error(f"❌ Customer update handler failed: {e}")
        return True

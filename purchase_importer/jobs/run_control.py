"""Run control: page cap, deadline and cooperative cancellation for one import."""
import time
import logging
from typing import Optional
from dataclasses import dataclass, field

from purchase_importer.config import config
from purchase_importer.errors import ImportCancelled

logger = logging.getLogger(__name__)


@dataclass
class ImportControl:
    """Controls when an import must stop."""

    max_pages: int = field(default_factory=lambda: config.MAX_ORDER_PAGES)
    timeout_seconds: Optional[float] = None

    # Internal state
    start_time: float = field(default_factory=time.monotonic, init=False)
    cancelled: bool = field(default=False, init=False)
    _reason: Optional[str] = field(default=None, init=False)

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Request the import to stop at its next checkpoint."""
        self._reason = reason
        self.cancelled = True

    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def should_stop(self) -> tuple[bool, Optional[str]]:
        """Check if the import should stop. Returns (should_stop, reason)."""
        if self.cancelled:
            return True, self._reason
        if self.timeout_seconds is not None and self.elapsed() >= self.timeout_seconds:
            return True, f"Reached timeout_seconds={self.timeout_seconds}"
        return False, None

    def checkpoint(self, step: str) -> None:
        """Raise ImportCancelled if the import must stop before `step`."""
        stop, reason = self.should_stop()
        if stop:
            logger.warning(f"Import stopped before {step}: {reason}")
            raise ImportCancelled(f"Import stopped before {step}: {reason}")

    def page_limit_reached(self, pages_loaded: int) -> bool:
        return pages_loaded >= self.max_pages

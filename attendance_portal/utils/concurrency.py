"""
Fan-out helper for independent backend calls.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from ..config.settings import MAX_PARALLEL_REQUESTS
from ..errors import PortalError

logger = logging.getLogger(__name__)


@dataclass
class Settled:
    """Outcome of one call: either ``value`` or ``error`` is set."""
    item: Any
    value: Any = None
    error: Optional[PortalError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_all_settled(func: Callable[[Any], Any], items: Iterable[Any],
                    max_workers: int = MAX_PARALLEL_REQUESTS) -> List[Settled]:
    """
    Call ``func`` for every item concurrently and wait for all of them.

    A failure never cancels the other calls. Results keep the input order.

    Args:
        func: Called with one item
        items: Inputs
        max_workers (int): Thread pool size

    Returns:
        List[Settled]: One outcome per item
    """
    items = list(items)
    if not items:
        return []

    def _call(item):
        try:
            return Settled(item=item, value=func(item))
        except PortalError as e:
            logger.warning("Call for %r failed: %s", item, e.message)
            return Settled(item=item, error=e)

    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        return list(executor.map(_call, items))

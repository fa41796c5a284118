import asyncio
from typing import Awaitable, Callable, Optional, Set

from starlette.concurrency import run_in_threadpool

from storefront.schemas.catalog_schema import CatalogFilters, CatalogListing
from storefront.services.catalog_service import CatalogQueryError
from storefront.utils.logging import get_logger

log = get_logger("catalog")


class CatalogSubscription:
    """
    Live product listing for a single client connection.

    Every `replace()` call supersedes the previous filters: the query still in
    flight for them is cancelled and, should it finish anyway (worker threads
    cannot be interrupted), its result is dropped. Only the listing for the
    newest filters is delivered, tagged with its sequence number.
    """

    def __init__(
        self,
        query: Callable[[CatalogFilters], CatalogListing],
        send: Callable[[dict], Awaitable[None]],
    ):
        self._query = query
        self._send = send
        self._seq = 0
        self._current: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._send_lock = asyncio.Lock()

    @property
    def seq(self) -> int:
        return self._seq

    def replace(self, filters: CatalogFilters) -> asyncio.Task:
        if self._current is not None and not self._current.done():
            self._current.cancel()
        self._seq += 1
        task = asyncio.create_task(self._run(self._seq, filters))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self._current = task
        return task

    async def _run(self, seq: int, filters: CatalogFilters) -> None:
        try:
            listing = await run_in_threadpool(self._query, filters)
        except CatalogQueryError as e:
            payload = {"seq": seq, "error": str(e)}
        except Exception:
            log.exception(f"Live listing query failed seq={seq}")
            payload = {"seq": seq, "error": "Could not load products"}
        else:
            payload = {"seq": seq, **listing.model_dump(mode="json")}

        async with self._send_lock:
            if seq != self._seq:
                log.debug(f"Dropping stale listing seq={seq} (latest={self._seq})")
                return
            try:
                await self._send(payload)
            except Exception:
                # nobody awaits this task; the connection is usually gone
                log.exception(f"Could not deliver live listing seq={seq}")

    async def close(self) -> None:
        tasks = list(self._pending)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

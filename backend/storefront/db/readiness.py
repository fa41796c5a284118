import threading
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool

from storefront.config import settings
from storefront.db import init_db, ping
from storefront.utils.logging import get_logger

log = get_logger("store")


class StoreNotReady(Exception):
    pass


class StoreReadiness:
    """
    One-shot readiness signal for the backing store.

    The initializer runs at most once. Once it has succeeded every waiter
    returns immediately; once it has failed every waiter gets StoreNotReady
    until `reset()` is called. There is no retry loop.
    """

    def __init__(self, initializer: Callable[[], None]):
        self._initializer = initializer
        self._lock = threading.Lock()
        self._done = False
        self._error: Optional[BaseException] = None

    @property
    def is_ready(self) -> bool:
        return self._done and self._error is None

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def _check(self):
        if self._error is not None:
            raise StoreNotReady("Store connection unavailable") from self._error

    def initialize(self) -> None:
        """Blocking variant; safe to call from several threads at once."""
        with self._lock:
            if not self._done:
                try:
                    self._initializer()
                    log.info("Store ready.")
                except Exception as e:
                    log.exception("Store initialization failed")
                    self._error = e
                finally:
                    self._done = True
        self._check()

    async def wait(self) -> None:
        if self._done:
            self._check()
            return
        await run_in_threadpool(self.initialize)

    def reset(self) -> None:
        with self._lock:
            self._done = False
            self._error = None


def connect_store():
    ping()
    init_db(reset=settings.RESET_DB)


store_readiness = StoreReadiness(connect_store)

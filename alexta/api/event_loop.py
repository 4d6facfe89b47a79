"""
Background asyncio loop for the web server.

Flask handlers run on worker threads while the orchestrator lives on a
single event loop. Every call into the orchestrator hops onto that loop
with asyncio.run_coroutine_threadsafe, so message state is only ever
touched from one thread.
"""
import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class BackgroundLoop:
    """Event loop running forever on a daemon thread"""

    def __init__(self, name: str = "alexta-loop"):
        self.name = name
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()

    def _run(self):
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self._started.set()
        try:
            self.loop.run_forever()
        finally:
            self.loop.close()

    def start(self) -> 'BackgroundLoop':
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run, name=self.name)
        self._thread.daemon = True
        self._thread.start()
        self._started.wait()
        logger.debug(f"Background event loop '{self.name}' started")
        return self

    @property
    def is_running(self) -> bool:
        return self.loop is not None and self.loop.is_running()

    def run(self, coro: Awaitable, timeout: Optional[float] = None) -> Any:
        """Run a coroutine on the loop and wait for its result"""
        if self.loop is None:
            raise RuntimeError("Background loop is not started")
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result(timeout)

    def call(self, func: Callable, *args, timeout: Optional[float] = None, **kwargs) -> Any:
        """Run a plain function on the loop thread and wait for its result"""
        async def _invoke():
            return func(*args, **kwargs)
        return self.run(_invoke(), timeout)

    def stop(self, timeout: float = 5.0):
        if self.loop is None or self._thread is None:
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)
        self._thread = None
        self.loop = None
        self._started.clear()
        logger.debug(f"Background event loop '{self.name}' stopped")

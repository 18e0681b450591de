"""
Progress forwarding.

Transfers report progress from wherever the underlying SDK runs them,
often a worker thread. The relay hands each fraction to the caller's
callback on the event loop that started the upload, and stops delivering
once the upload reaches its terminal state.
"""

import asyncio
import threading
from typing import Callable, Optional

ProgressCallback = Callable[[float], None]


class ProgressRelay:
    """
    Forwards fractional progress in [0, 1] to a caller-supplied callback.

    report() is safe to call from any thread. Callbacks always run on the
    loop the relay was created on, in the order they were reported:
    immediately when reported from that loop, otherwise scheduled onto it.
    After close(), nothing further is delivered, including reports that
    were already queued on the loop.
    """

    def __init__(
        self,
        callback: Optional[ProgressCallback] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._callback = callback
        self._loop = loop or asyncio.get_running_loop()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def report(self, fraction: float) -> None:
        if self._callback is None or self._closed:
            return
        if _current_loop() is self._loop:
            self._deliver(fraction)
        else:
            self._loop.call_soon_threadsafe(self._deliver, fraction)

    def close(self) -> None:
        self._closed = True

    def _deliver(self, fraction: float) -> None:
        # Re-checked here: close() may have run after the report was queued
        if self._closed or self._callback is None:
            return
        self._callback(fraction)


def _current_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class ByteCountProgress:
    """
    Converts incremental byte counts into a cumulative fraction.

    Matches the boto3 transfer Callback signature (bytes since the last
    call) and forwards the running fraction to a relay. Multipart
    transfers call it from several threads at once; the lock keeps the
    reported fractions in increasing order.
    """

    def __init__(self, relay: ProgressRelay, total_bytes: int) -> None:
        self._relay = relay
        self._total = total_bytes
        self._seen = 0
        self._lock = threading.Lock()

    def __call__(self, bytes_amount: int) -> None:
        with self._lock:
            self._seen += bytes_amount
            if self._total <= 0:
                fraction = 1.0
            else:
                fraction = min(self._seen / self._total, 1.0)
            self._relay.report(fraction)

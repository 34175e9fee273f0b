import time
from contextlib import contextmanager
from .logger import get_logger, log_debug


@contextmanager
def timed_block(name: str, logger=None):
    """Log wall time of a code block (debug level)."""
    logger = logger or get_logger("trade_sim.timer")

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = (time.perf_counter() - start) * 1000  # ms
        log_debug(logger, f"[TIMER] {name}", elapsed_ms=round(elapsed, 3))



"""
Example usage:
from trade_sim.utils.timer import timed_block

with timed_block("session.save"):
    gateway.save(bundle)
"""

"""
Lavandaria API — Request Context
==================================

What:  Coroutine-local storage for the current request's correlation id,
       plus the id generator.
Who:   Written by CorrelationIdMiddleware; read by the envelope renderer,
       the log filter and the role gate.

Format:
    req_<epoch-millis>_<9 base36 chars>   e.g. req_1760761200000_k3j9x0q2a
"""

import random
import string
import time
from contextvars import ContextVar

CORRELATION_HEADER = "X-Correlation-Id"

# ContextVar, not a global: concurrent requests share one thread
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

_BASE36 = string.digits + string.ascii_lowercase


def generate_correlation_id() -> str:
    """
    Build a new id from a millisecond timestamp and a random suffix.

    Not cryptographically unique; a collision needs two ids minted in the
    same millisecond with the same 36**9 suffix.
    """
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def get_correlation_id() -> str:
    """Return the current request's correlation id, or "" outside a request."""
    return correlation_id_var.get()

"""Shared slowapi limiter keyed on the client address."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from config import ENABLE_RATE_LIMITING

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
    enabled=ENABLE_RATE_LIMITING,
)

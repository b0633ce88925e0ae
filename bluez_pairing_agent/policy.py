"""Sticky service authorization policy.

The only state shared between concurrent agent callbacks. The flag
starts false and, once granted, stays true for the session lifetime.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class AuthorizationPolicy:
    """Lock-guarded "always authorize services" flag."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._always = False

    @property
    def always(self) -> bool:
        """True once the operator chose to authorize every service."""
        with self._lock:
            return self._always

    def grant_always(self) -> None:
        """Sets the flag. There is no way to clear it."""
        with self._lock:
            if not self._always:
                logger.info("All future service requests will be authorized")
            self._always = True

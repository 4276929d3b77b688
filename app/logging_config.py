"""
Logging setup for the Bank Cards API.

Every module logs through its own `logging.getLogger(__name__)` logger;
this module only installs the root handler and level, once, from the
application lifespan.

What is never logged:
  - Card numbers (plaintext or ciphertext)
  - Passwords, password hashes, or JWTs
Card and user ids, statuses and transfer amounts are fine to log.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Calling it again does not stack handlers."""
    global _handler
    root = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

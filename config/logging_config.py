"""Process-wide logging setup.

Modules log through ``logging.getLogger(__name__)``; this helper only
attaches a single stream handler to the root logger so that Streamlit reruns
do not stack duplicate handlers.
"""

from __future__ import annotations

import logging
import os

from config.constants import LOG_LEVEL_ENV

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_configured = False


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    global _configured
    resolved = (level or os.getenv(LOG_LEVEL_ENV, "INFO")).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, resolved, logging.INFO))
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    _configured = True

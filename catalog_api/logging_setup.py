from __future__ import annotations

import logging

from flask import Flask

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(app: Flask) -> None:
    """Attach a single stream handler to the root logger at ``LOG_LEVEL``."""
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    # create_app may run many times in one process (tests)
    if not any(getattr(h, "_catalog_api", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._catalog_api = True
        root.addHandler(handler)

    app.logger.setLevel(level)

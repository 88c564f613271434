from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from xml_compare.core.config import AppConfig


def configure_logging(config: AppConfig) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, config.paths.log_level.upper(), logging.INFO))

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root.handlers.clear()

    if config.paths.log_path is not None:
        config.paths.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.paths.log_path,
            maxBytes=2_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    # Results go to stdout; keep log records on stderr.
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

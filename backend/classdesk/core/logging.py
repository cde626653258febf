from __future__ import annotations

import logging

from classdesk.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "classdesk"


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger("classdesk")
    root.setLevel(settings.log_level)
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

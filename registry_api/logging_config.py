"""Process-wide logging setup for the API."""

import logging
import sys
from typing import List, Union


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Attach a stdout handler with the service's log format to the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=handlers,
    )
    logging.getLogger().setLevel(level)

    # elastic_transport logs every request at INFO.
    logging.getLogger("elastic_transport").setLevel(logging.WARNING)

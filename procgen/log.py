from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s"


def setup_logging(debug: bool = False) -> None:
    """Configure the root logger for the CLI and the viewer.

    Messages go to stdout. ``debug`` enables per-chunk DEBUG output of the
    ``procgen`` loggers.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,  # drop handlers left by earlier calls
    )
    logging.getLogger("procgen").setLevel(level)

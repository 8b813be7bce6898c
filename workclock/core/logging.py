# workclock/core/logging.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stream handler on the `workclock` logger.

    Safe to call more than once (e.g. one app per test); the handler is only
    added the first time and later calls just adjust the level.
    """
    logger = logging.getLogger("workclock")
    logger.setLevel(level.upper())

    if not any(getattr(h, "_workclock", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._workclock = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

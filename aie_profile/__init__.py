from aie_profile import ct as ct
import logging


def init_logging(level=logging.INFO):
    """
    Configure logging for the aie_profile library.
    Adds a StreamHandler if none exists.
    """
    logger = logging.getLogger("aie_profile")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False


def null_logger(name: str = "aie_profile.null") -> logging.Logger:
    """Return a logger that drops every record.

    Pass this to CTFileGenerator (or any function taking ``log``) to keep
    diagnostics out of test output.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger

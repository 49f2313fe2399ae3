import sys
import logging

LOG_FILE = "log.txt"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_handlers = []


def setup_logging(log_file=LOG_FILE, level=logging.INFO):
    """
    Send log records to stdout and, unless log_file is None, to a file.
    Handlers installed by an earlier call are replaced.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        _handlers.append(handler)
    return logger

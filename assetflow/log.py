"""Console logging setup for the command line."""

import logging
import sys

FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'
DATE_FORMAT = '%H:%M:%S'

NOISY_LOGGERS = ('watchdog', 'livereload', 'tornado', 'urllib3')


def configure_logging(verbose: bool = False, stream=None) -> logging.Handler:
    """Send assetflow diagnostics to stderr.

    Args:
        verbose: Enable DEBUG output. Otherwise INFO and above.
        stream: Output stream (defaults to sys.stderr)

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(FORMAT, DATE_FORMAT))

    logger = logging.getLogger('assetflow')
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler

import logging

LOG_FORMAT = "sitepress: %(levelname)s: %(message)s"

_configured = False


def configure_logging(verbose: bool = False) -> None:
    """Install the root handler once; later calls only adjust the level."""
    global _configured
    level = logging.DEBUG if verbose else logging.INFO

    if not _configured:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        # Watcher internals are noisy at INFO
        logging.getLogger("watchfiles").setLevel(logging.WARNING)
        _configured = True
    else:
        logging.getLogger().setLevel(level)

import logging

from rich.logging import RichHandler

from utils.config import settings


class PaddedNameFormatter(logging.Formatter):
    """Centres the logger name in a column that grows to the longest name seen."""

    name_width = 16

    def format(self, record):
        PaddedNameFormatter.name_width = max(
            PaddedNameFormatter.name_width, len(record.name)
        )
        record.name = record.name.center(PaddedNameFormatter.name_width)
        return super().format(record)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger writing through a RichHandler.

    Level is INFO, or DEBUG when the DEBUG environment variable is set.
    Handlers are attached once per name, so repeated calls are cheap.
    """
    logger = logging.getLogger(name or "storefront")
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(PaddedNameFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger '{logger.name}' ready.")

    return logger

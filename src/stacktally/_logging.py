import logging

LOGGER = logging.getLogger("stacktally")


def set_log_level(level: int) -> None:
    LOGGER.setLevel(level)


def determine_logging_level_from_verbosity(
    verbose_level: int,
) -> int:
    if verbose_level == 0:
        return logging.WARNING
    elif verbose_level == 1:
        return logging.INFO
    else:
        return logging.DEBUG

"""Logging configuration for the FRITZ!Box AHA client."""

import logging

import colorlog

log = logging.getLogger("fritzbox-aha")

LOG_COLORS = {
    "DEBUG":    "cyan",
    "INFO":     "green",
    "WARNING":  "yellow",
    "ERROR":    "red",
    "CRITICAL": "bold_red",
}


def setup_logging(debug: bool = False) -> None:
    """
    Attach a coloured stderr handler to the package logger.

    With *debug* the thread name is shown (requests and keep-alive probes
    run on different threads) and urllib3's connection logging is enabled.
    """
    log.setLevel(logging.DEBUG if debug else logging.INFO)
    log.handlers.clear()

    fmt = "%(log_color)s%(asctime)s [%(levelname)s]%(reset)s "
    if debug:
        fmt += "(%(threadName)s) "
    handler = colorlog.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(
        fmt + "%(message)s", datefmt="%H:%M:%S", log_colors=LOG_COLORS,
    ))
    log.addHandler(handler)

    logging.getLogger("urllib3").setLevel(logging.DEBUG if debug else logging.WARNING)

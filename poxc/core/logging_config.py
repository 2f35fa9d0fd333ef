"""
Logging configuration for POXC.

All loggers live under the ``poxc.`` namespace. Per-plate stages (blank
correction, calibration, aggregation) log a DEBUG line for every plate, which
floods long batch runs, so ``setup_logging`` keeps them at INFO unless plate
detail is asked for explicitly.
"""

import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"

# Loggers that emit one DEBUG line per plate
PLATE_DETAIL_LOGGERS = (
    "poxc.assay.blank",
    "poxc.assay.calibration",
    "poxc.assay.aggregation",
)


def setup_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
    plate_detail: bool = False,
) -> None:
    """
    Configure logging for POXC.

    Parameters
    ----------
    level : str
        Logging level: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'
    format_string : str, optional
        Custom format string. If None, uses ``DEFAULT_FORMAT``.
    stream : file-like object, optional
        Stream to write logs to. If None, uses sys.stderr.
    plate_detail : bool
        Let the per-plate stages log at DEBUG. When False they are held at
        INFO, so ``level="DEBUG"`` shows run-level detail only.
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    if stream is None:
        stream = sys.stderr

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format_string,
        stream=stream,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    for name in PLATE_DETAIL_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if plate_detail else logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Parameters
    ----------
    name : str
        Logger name relative to the package (e.g. "assay.blank")

    Returns
    -------
    logging.Logger
        Logger instance
    """
    return logging.getLogger(f"poxc.{name}")


class PlateLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with its plate and records ``plate_id`` on the record."""

    def process(self, msg, kwargs):
        kwargs.setdefault("extra", {}).update(self.extra)
        return f"Plate {self.extra['plate_id']}: {msg}", kwargs


def get_plate_logger(name: str, plate_id: str) -> PlateLoggerAdapter:
    """
    Get a logger bound to one plate.

    Examples
    --------
    >>> log = get_plate_logger("assay.pipeline", "20230601A")
    >>> log.warning("skipped")  # "Plate 20230601A: skipped"
    """
    return PlateLoggerAdapter(get_logger(name), {"plate_id": plate_id})

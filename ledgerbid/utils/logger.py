"""
Logging for ledgerbid.

All loggers hang off the ``ledgerbid`` root logger. Every record carries
the short id of the transaction being simulated or committed (``-`` outside
a transaction), so the contract's log lines can be matched to entries in
the transaction log.
"""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator, Optional

import colorlog

ROOT = "ledgerbid"
LOG_FILE = "ledgerbid.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
RECORD_FORMAT = "%(asctime)s [%(name)s] tx=%(tx_id)s %(levelname)-8s"

TX_ID_WIDTH = 10

_current_tx: ContextVar[str] = ContextVar("ledgerbid_tx", default="-")


@contextmanager
def transaction_scope(tx_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with ``tx_id``."""
    token = _current_tx.set(tx_id[:TX_ID_WIDTH])
    try:
        yield
    finally:
        _current_tx.reset(token)


class TransactionFilter(logging.Filter):
    """Stamp records with the active transaction id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.tx_id = _current_tx.get()
        return True


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s" + RECORD_FORMAT + "%(reset)s %(message)s",
        datefmt=DATE_FORMAT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
    ))
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(RECORD_FORMAT + " %(message)s", datefmt=DATE_FORMAT))
    return handler


class LedgerBidLogger:
    """Owns the handlers on the ``ledgerbid`` root logger"""

    _initialized = False
    _log_dir: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
    ):
        """
        Install console (and optionally file) handlers once.

        Args:
            level: Logging level for the root and its handlers
            log_dir: Directory for ledgerbid.log. If None, uses ./logs
            log_to_file: Also write records to a plain-text file
        """
        if cls._initialized:
            return

        root_logger = logging.getLogger(ROOT)
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        handlers = [_console_handler(level)]
        if log_to_file:
            cls._log_dir = Path(log_dir) if log_dir else Path("logs")
            handlers.append(_file_handler(cls._log_dir, level))

        tx_filter = TransactionFilter()
        for handler in handlers:
            handler.addFilter(tx_filter)
            root_logger.addHandler(handler)

        cls._initialized = True

    @classmethod
    def configure(cls, config) -> None:
        """(Re)install handlers from a ContractConfig."""
        cls.reset()
        cls.setup(level=config.log_level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    @classmethod
    def reset(cls):
        """Close and drop installed handlers so setup() can run again."""
        root_logger = logging.getLogger(ROOT)
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        cls._initialized = False
        cls._log_dir = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._initialized:
            cls.setup()

        return logging.getLogger(f"{ROOT}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Get a subsystem logger, e.g. 'contract.bidding' or 'storage.sqlite'"""
    return LedgerBidLogger.get_logger(name)


def setup_logging(config) -> None:
    """Configure logging from a ContractConfig"""
    LedgerBidLogger.configure(config)

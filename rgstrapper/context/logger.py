# ─── Hierarchical Call Stack Tracking ─────────────────────────────────────────
import contextvars
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from loguru import logger

# A context variable holding the current stage stack as a tuple of names
_call_stack = contextvars.ContextVar("_call_stack", default=())


@contextmanager
def log_func(name: str):
    """
    Context manager to push/pop a stage name onto the call stack.
    """
    stack = _call_stack.get()
    token = _call_stack.set(stack + (name,))
    try:
        yield
    finally:
        _call_stack.reset(token)


def _enrich_record(record):
    """
    Loguru patch function: injects extra['func'] = dot-joined call stack.
    """
    stack = _call_stack.get()
    record["extra"]["func"] = ".".join(stack) if stack else "main"


def _stderr_sink(message) -> None:
    # Resolve sys.stderr per message so redirected streams are honoured.
    sys.stderr.write(message)


# ─── Logger Utility ───────────────────────────────────────────────────────────

class Logger:
    """
    Logger utility around loguru.
    Adds a patch to include the hierarchical stage name in every record.
    """

    FORMAT = (
        "<green>{time:HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[func]}</cyan> | "
        "{message}"
    )

    _log_path = None

    @staticmethod
    def init_logger(
            level: str = "WARNING",
            log_file: Optional[Union[str, Path]] = None,
    ):
        """
        Configure the loguru logger with a stderr handler and an optional file handler.

        Calling it again replaces the previous handlers, so the latest level and
        log file always apply.

        Args:
            level (str): Minimum level for both handlers.
            log_file (str | Path, optional): If set, also write records to this file.

        Returns:
            loguru.Logger: The configured logger.

        Raises:
            OSError: The log file or its directory cannot be created.
        """
        Logger.reset()
        logger.configure(patcher=_enrich_record)
        logger.add(_stderr_sink, level=level, colorize=False, format=Logger.FORMAT)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            logger.add(str(log_path), level=level, format=Logger.FORMAT)
            Logger._log_path = log_path

        logger.debug("[Logger Init] level={} → {}", level, Logger._log_path or "<console>")
        return logger

    @staticmethod
    def reset():
        logger.remove()
        Logger._log_path = None

import logging
import sys


class Log:
    """Centralized logging with structured format.

    All messages carry the ``[PDF Sanitizer]`` prefix. Output can be switched
    off entirely with ``configure(..., enabled=False)``, which mirrors the
    ``log_errors`` setting.
    """

    PREFIX = "[PDF Sanitizer]"

    _logger: logging.Logger = logging.getLogger("pdf_sanitizer")
    _enabled: bool = True

    @classmethod
    def configure(cls, log_level: str, enabled: bool = True) -> None:
        """Configure the logger with the specified level and stdout handler."""
        cls._enabled = enabled
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def is_enabled(cls) -> bool:
        return cls._enabled

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        if cls._enabled:
            cls._logger.info(f"{cls.PREFIX} {message}", extra=kwargs)

    @classmethod
    def error(cls, message: str, exc: BaseException | None = None, **kwargs: object) -> None:
        """Log an error message, appending the exception text when given."""
        if not cls._enabled:
            return
        if exc is not None:
            message = f"{message}: {exc}"
        cls._logger.error(f"{cls.PREFIX} {message}", extra=kwargs)
        if exc is not None and exc.__traceback__ is not None:
            cls._logger.debug(f"{cls.PREFIX} Stack:", exc_info=exc)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        if cls._enabled:
            cls._logger.warning(f"{cls.PREFIX} {message}", extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        if cls._enabled:
            cls._logger.debug(f"{cls.PREFIX} {message}", extra=kwargs)

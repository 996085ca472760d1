"""Logging system for the simulator core and its collaborators.

Loggers are configured from a YAML file (or built-in defaults), write to a
platform-aware log directory and rotate once per application start.

Platform-specific log locations:
    - macOS: ~/Library/Logs/DigitalATC/digitalatc.log
    - Linux: ~/.digitalatc/logs/digitalatc.log
    - Windows: %AppData%/DigitalATC/Logs/digitalatc.log

Typical usage example:
    from digitalatc.core.logging_system import get_logger

    logger = get_logger(__name__)
    logger.info("Target heading set to %.0f", heading)
"""

import logging
import os
import platform
import time
from pathlib import Path
from typing import Any

import yaml

_logging_config: dict[str, Any] = {}
_loggers_cache: dict[str, logging.Logger] = {}
_initialized = False


class LoggingError(Exception):
    """Raised when logging system operations fail."""


def get_platform_log_dir() -> Path:
    """Get platform-specific log directory.

    Returns:
        Path to the platform-appropriate log directory.

    Examples:
        >>> get_platform_log_dir()
        PosixPath('/home/user/.digitalatc/logs')
    """
    system = platform.system()

    if system == "Darwin":
        return Path.home() / "Library" / "Logs" / "DigitalATC"
    elif system == "Windows":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "DigitalATC" / "Logs"
    else:
        return Path.home() / ".digitalatc" / "logs"


def rotate_logs(log_dir: Path, log_filename: str = "digitalatc.log", keep_count: int = 5) -> None:
    """Rotate logs on startup, keeping the last N runs.

    digitalatc.log becomes digitalatc.log.1, older logs shift up by one and
    anything beyond keep_count is deleted.

    Args:
        log_dir: Directory containing log files.
        log_filename: Base name of the log file.
        keep_count: Number of old logs to keep.
    """
    log_file = log_dir / log_filename
    if not log_file.exists():
        return

    oldest_log = log_dir / f"{log_filename}.{keep_count}"
    if oldest_log.exists():
        oldest_log.unlink()

    for i in range(keep_count - 1, 0, -1):
        old_log = log_dir / f"{log_filename}.{i}"
        if old_log.exists():
            old_log.rename(log_dir / f"{log_filename}.{i + 1}")

    log_file.rename(log_dir / f"{log_filename}.1")


def initialize_logging(
    config_path: str | Path | None = None,
    use_platform_dir: bool = True,
    console_level: str | None = None,
) -> None:
    """Initialize the logging system from YAML configuration.

    Call once at startup, before any logging occurs. get_logger() falls back
    to the built-in defaults if this was never called.

    Args:
        config_path: Path to logging configuration YAML file.
            If None, uses default configuration.
        use_platform_dir: If True, write logs to the platform log directory
            instead of the directory named in the config.
        console_level: Optional override for the console handler level.

    Raises:
        LoggingError: If the configuration file cannot be read.
    """
    global _logging_config, _initialized

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise LoggingError(f"Logging config file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as f:
                _logging_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoggingError(f"Failed to load logging config: {e}") from e
    else:
        _logging_config = _get_default_config()

    if use_platform_dir:
        _logging_config["log_dir"] = str(get_platform_log_dir())

    if console_level:
        _logging_config.setdefault("console", {})["level"] = console_level.upper()

    file_config = _logging_config.get("file", {})
    if file_config.get("enabled", True):
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        rotate_logs(
            log_dir,
            file_config.get("filename", "digitalatc.log"),
            file_config.get("backup_count", 5),
        )

    _configure_root_logger()
    _loggers_cache.clear()
    _initialized = True


def _get_default_config() -> dict[str, Any]:
    """Get default logging configuration."""
    return {
        "version": 1,
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_dir": "logs",
        "file": {
            "enabled": True,
            "filename": "digitalatc.log",
            "backup_count": 5,
        },
        "console": {
            "enabled": True,
            "level": "INFO",
        },
        "components": {},
    }


def _configure_root_logger() -> None:
    """Configure the root logger with console and file handlers."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_config = _logging_config.get("console", {})
    if console_config.get("enabled", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_config.get("level", "INFO")))
        console_handler.setFormatter(_get_formatter())
        root_logger.addHandler(console_handler)

    file_config = _logging_config.get("file", {})
    if file_config.get("enabled", True):
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        file_handler = logging.FileHandler(
            log_dir / file_config.get("filename", "digitalatc.log"),
            mode="w",
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_get_formatter())
        root_logger.addHandler(file_handler)


class MillisecondFormatter(logging.Formatter):
    """Formatter that appends milliseconds with a dot separator.

    Simulation logs are read against frame timestamps, so whole seconds
    are not precise enough.
    """

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        s = time.strftime(datefmt or "%Y-%m-%d %H:%M:%S", ct)
        return f"{s}.{int(record.msecs):03d}"


def _get_formatter() -> logging.Formatter:
    fmt = _logging_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    datefmt = _logging_config.get("date_format", "%Y-%m-%d %H:%M:%S")
    return MillisecondFormatter(fmt, datefmt)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component.

    Loggers are cached. A component can get its own level, or be disabled,
    under the 'components' section of the logging config.

    Args:
        name: Logger name (usually the module's __name__).

    Returns:
        Configured logger instance.

    Note:
        Use lazy formatting (%) instead of f-strings.
    """
    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = logging.getLogger(name)
    component_config = _logging_config.get("components", {}).get(name, {})

    if component_config.get("enabled", True):
        if "level" in component_config:
            logger.setLevel(getattr(logging, component_config["level"]))
    else:
        logger.disabled = True

    _loggers_cache[name] = logger
    return logger


def is_initialized() -> bool:
    """Check whether initialize_logging() has run."""
    return _initialized


def shutdown_logging() -> None:
    """Flush and close all handlers. Call at application shutdown."""
    global _initialized

    logging.shutdown()
    logging.getLogger().handlers.clear()
    _loggers_cache.clear()
    _initialized = False


class LoggerMixin:
    """Mixin giving a class a `_log` attribute and convenience helpers.

    Examples:
        >>> class Session(LoggerMixin):
        ...     def __init__(self):
        ...         self.attach_logger("digitalatc.session")
    """

    def attach_logger(self, name: str) -> None:
        """Attach a named logger to this instance."""
        self._log = get_logger(name)

    def log_debug(self, message: str, *args: Any) -> None:
        if hasattr(self, "_log"):
            self._log.debug(message, *args)

    def log_info(self, message: str, *args: Any) -> None:
        if hasattr(self, "_log"):
            self._log.info(message, *args)

    def log_warning(self, message: str, *args: Any) -> None:
        if hasattr(self, "_log"):
            self._log.warning(message, *args)

    def log_error(self, message: str, *args: Any, exc_info: bool = False) -> None:
        if hasattr(self, "_log"):
            self._log.error(message, *args, exc_info=exc_info)

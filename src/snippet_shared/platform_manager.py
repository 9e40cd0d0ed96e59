import logging
import os
from pathlib import Path


def create_logger(
    log_level: str = "INFO",
    logger_name: str = "snippet-mcp",
    logs_dir: str | Path | None = None,
) -> logging.Logger:
    """
    Create a logger that outputs to console and optionally to a file.

    Args:
        log_level (str): Logging level (e.g., "INFO", "DEBUG").
        logger_name (str): Name for the logger instance (also used as the log file name).
        logs_dir (str | Path | None): Directory for log files. If None, only console
            logging is configured.

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

    if not logger.handlers:  # Prevent handler duplication
        # Console handler (stdio) - always add this
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if logs_dir is not None:
            try:
                logs_path = Path(logs_dir)
                logs_path.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(logs_path / f"{logger_name}.log")
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)
            except OSError:
                # If file logging fails, just continue with console logging
                logger.warning(f"File logging disabled: cannot write to {logs_dir}")

    return logger


def get_parameters(
    param_names: list[str] | str,
    prefix: str = "",
) -> dict[str, str | None]:
    """
    Retrieve configuration parameters from environment variables.

    Parameters are stored in the environment in uppercase (optionally prefixed) but are
    returned keyed by their lowercase name. Missing or empty variables map to None.

    Args:
        param_names (list[str] | str): Parameter name(s) to look up.
        prefix (str): Optional prefix prepended to each environment variable name.

    Returns:
        dict[str, str | None]: Mapping of lowercase parameter name to its value.
    """
    if isinstance(param_names, str):
        param_names = [param_names]

    result: dict[str, str | None] = {}
    for param_name in param_names:
        value = os.getenv(f"{prefix}{param_name}".upper())
        result[param_name.lower()] = value if value else None
    return result

"""
Templating context logger.

Provides logging interface for templating context with automatic [template] prefix.
All templating modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from quill.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[template]"


def setup_templating_logger(log_dir: Path, phase: str = "manage") -> Path:
    """
    Setup logger for templating context.

    Configures loguru with provenance tracking and templating-specific context.

    Args:
        log_dir: Directory for this templating session
        phase: Phase name for provenance ("manage", "import", "export")

    Returns:
        Path to log file

    Example:
        from quill.contexts.templating.logger import setup_templating_logger, _log_info

        log_file = setup_templating_logger(log_dir, phase="import")
        _log_info("Importing template...")
    """
    return _setup_logger(
        context_name="template",
        log_dir=log_dir,
        extra_provenance={"Phase": phase},
    )


# Wrapper functions with automatic [template] prefix


def _log_info(message: str) -> None:
    """Log info message with [template] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [template] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [template] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [template] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [template] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level templating-specific logging helpers


def log_template_saved(template_id: str, path: Path) -> None:
    """Log a custom template written to the store."""
    _log_success(f"Saved template: {template_id}")
    _log_debug(f"  Path: {path}")


def log_template_rejected(template_id: str, errors: list) -> None:
    """Log a template rejected by validation before persistence."""
    _log_error(f"Rejected template: {template_id} ({len(errors)} validation errors)")
    for i, err in enumerate(errors, 1):
        _log_error(f"  Error {i}: {err}")


def log_template_transfer(template_id: str, path: Path, direction: str) -> None:
    """
    Log a template export or import.

    Args:
        template_id: Template identifier
        path: JSON file written or read
        direction: "export" or "import"
    """
    verb = "Exported" if direction == "export" else "Imported"
    _log_info(f"{verb} template {template_id}")
    _log_debug(f"  File: {path}")

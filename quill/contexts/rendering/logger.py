"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from quill.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path, policy_name: str = "standard") -> Path:
    """
    Setup logger for rendering context.

    Configures loguru with provenance tracking and rendering-specific context.

    Args:
        log_dir: Directory for this rendering session
        policy_name: Sanitizer policy in use, recorded in the provenance header

    Returns:
        Path to log file

    Example:
        from quill.contexts.rendering.logger import setup_rendering_logger, _log_info

        log_file = setup_rendering_logger(log_dir)
        _log_info("Rendering preview...")
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Sanitizer policy": policy_name},
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_render_start(template_id: str, compiled: bool) -> None:
    """Log start of a render with its mode."""
    mode = "compiling" if compiled else "static pass-through"
    _log_debug(f"Rendering {template_id} ({mode})")


def log_render_failure(template_id: str, error: Exception) -> None:
    """Log a render that degraded to an error fragment."""
    _log_error(f"{template_id}: rendering failed, returning error fragment")
    _log_error(f"  {type(error).__name__}: {error}")


def log_sanitization(template_id: str, removed: dict) -> None:
    """
    Log what the sanitizer stripped (debug level, sanitization is silent by design).

    Args:
        template_id: Template identifier
        removed: Counts keyed by category (elements, attributes, urls)
    """
    if any(removed.values()):
        summary = ", ".join(f"{count} {kind}" for kind, count in removed.items() if count)
        _log_debug(f"{template_id}: sanitizer removed {summary}")


def log_validation_result(result, verbose: bool = False) -> None:
    """
    Log validation result.

    Args:
        result: ValidationResult from validate_markup()
        verbose: Show every error (default: first 5)
    """
    if result.is_valid:
        _log_success("Template markup is valid.")
        return

    _log_error(f"Template markup is invalid: {len(result.errors)} errors")
    error_limit = len(result.errors) if verbose else 5
    for i, err in enumerate(result.errors[:error_limit], 1):
        _log_error(f"  Error {i}: {err}")
    if len(result.errors) > error_limit:
        _log_error(f"  ... and {len(result.errors) - error_limit} more errors")

"""
Shared loguru configuration.

Two session shapes are supported: a file-backed session (DEBUG to
``<log_dir>/<context>.log`` plus INFO on the console) for scripts that change
state or produce output, and a console-only session for read-only checks.
Context-specific wrappers live in contexts/{context}/logger.py.
"""

import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from quill import __version__

load_dotenv()

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def _reset(level_colors: dict = None) -> None:
    logger.remove()
    for level_name, color in {**LEVEL_COLORS, **(level_colors or {})}.items():
        logger.level(level_name, color=color)


def _add_console_sink(level: str) -> None:
    # stderr, so markup written to stdout can be piped
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)


def setup_console_logger(verbose: bool = False, level_colors: dict = None) -> None:
    """Log to the console only, at DEBUG when ``verbose`` and INFO otherwise."""
    _reset(level_colors)
    _add_console_sink("DEBUG" if verbose else "INFO")


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: dict = None,
    level_colors: dict = None,
) -> Path:
    """
    Start a file-backed logging session for a context.

    Args:
        context_name: Context identifier, used as the log file stem
            (e.g., "render", "template")
        log_dir: Directory for this session; created if missing
        extra_provenance: Additional key-value pairs for the provenance header
        level_colors: Override console level colors (e.g., {"INFO": "<cyan>"})

    Returns:
        Path to the session's log file

    Example:
        log_file = setup_logger(
            context_name="render",
            log_dir=Path("outs/logs/render_20251114_123456"),
            extra_provenance={"Sanitizer policy": "strict"},
        )
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    _reset(level_colors)
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    _add_console_sink("INFO")

    log_provenance({"Context": context_name, **(extra_provenance or {})})
    return log_file


def log_provenance(extra_context: dict = None) -> None:
    """Write a header recording how this session was started."""
    header = {
        "QUILL": __version__,
        "Command": " ".join(sys.argv),
        "Working directory": Path.cwd(),
        "Python": sys.version.split()[0],
        **(extra_context or {}),
    }

    logger.info("=" * 80)
    for key, value in header.items():
        logger.info(f"{key}: {value}")
    logger.info("=" * 80)

"""Command-line entry point for forksync."""

import logging
import sys

from .config import Config, load_configuration
from .orchestrator import ProcessOrchestrator, exit_code_for, format_summary
from .platform import validate_git_availability


RED = '\033[0;31m'
GREEN = '\033[0;32m'
YELLOW = '\033[1;33m'
RESET = '\033[0m'


class ColorFormatter(logging.Formatter):
    """Formatter that colours records by level and tags them with their operation."""

    LEVEL_COLORS = {
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def __init__(self, fmt=None, datefmt=None, use_color: bool = True, show_operation: bool = False):
        super().__init__(fmt, datefmt)
        self.use_color = use_color
        self.show_operation = show_operation

    def format(self, record):
        message = super().format(record)
        if self.show_operation and getattr(record, 'operation', None):
            message = f"[{record.operation}] {message}"
        if not self.use_color:
            return message
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None and getattr(record, 'highlight', False):
            color = GREEN
        return f"{color}{message}{RESET}" if color else message


def setup_logging(config: Config, stream=None) -> None:
    """Configure the forksync loggers for console output."""
    stream = stream or sys.stderr
    level = getattr(logging, config.log_level)
    use_color = config.use_color and hasattr(stream, 'isatty') and stream.isatty()

    verbose = level <= logging.DEBUG
    fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s' if verbose else '%(message)s'

    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColorFormatter(fmt, datefmt='%Y-%m-%d %H:%M:%S', use_color=use_color, show_operation=verbose))

    logger = logging.getLogger('forksync')
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    # GitPython logs every command at DEBUG
    logging.getLogger('git').setLevel(logging.INFO if verbose else logging.WARNING)


def main() -> int:
    """Run a sync-and-patch in the current repository; returns the process exit code."""
    try:
        config = load_configuration()
    except ValueError as e:
        logging.basicConfig(level=logging.ERROR, format='%(message)s')
        logging.getLogger('forksync.startup').error(f"Error: {e}")
        return 1

    setup_logging(config)
    startup_logger = logging.getLogger('forksync.startup')

    git_available, git_error = validate_git_availability()
    if not git_available:
        startup_logger.error(f"Error: {git_error}")
        startup_logger.error("Install git and make sure it is on PATH")
        return 1

    report = ProcessOrchestrator(config).run()
    if report.succeeded:
        print(format_summary(report))
    return exit_code_for(report.outcome)


def run() -> None:
    """Console-script wrapper around :func:`main`."""
    sys.exit(main())


if __name__ == "__main__":
    run()

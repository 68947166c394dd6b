"""
Logging and Error Handling Framework
====================================

Centralized logging configuration and the typed error taxonomy for the UFC
edge analysis core.

Error taxonomy:
- DataUnavailableError: fighter, opponent or odds data is missing
- MalformedInputError: a raw field could not be parsed
- ComputationError: unexpected internal fault inside the core
- LookupFailedError: the storage or odds collaborator itself failed

Only LookupFailedError is allowed to reach callers of the public service.
Everything else is absorbed by ErrorHandler and turned into a neutral result.

Usage:
    from ufc_edge.utils.logging_config import setup_logging, get_logger

    setup_logging(level='INFO', log_file='logs/ufc_edge.log')
    logger = get_logger(__name__)
    logger.info("Comparing matchup", extra={'fighter_a': 'Jon Jones', 'fighter_b': 'Stipe Miocic'})
"""

import logging
import logging.handlers
import sys
import time
import traceback
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional


class UFCEdgeError(Exception):
    """Base exception for UFC edge analysis errors"""

    def __init__(self, message: str, error_code: str = None, context: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 'UFC_EDGE_ERROR'
        self.context = context or {}
        self.timestamp = datetime.now().isoformat()


class DataUnavailableError(UFCEdgeError):
    """Raised when required fighter, opponent or odds data is missing"""

    def __init__(self, message: str, subject: str = None, **kwargs):
        super().__init__(message, error_code='DATA_UNAVAILABLE', **kwargs)
        self.subject = subject


class MalformedInputError(UFCEdgeError):
    """Raised when a raw numeric or date field cannot be parsed"""

    def __init__(self, message: str, field_name: str = None, raw_value: Any = None, **kwargs):
        super().__init__(message, error_code='MALFORMED_INPUT', **kwargs)
        self.field_name = field_name
        self.raw_value = raw_value


class ComputationError(UFCEdgeError):
    """Raised when an internal computation fails unexpectedly"""

    def __init__(self, message: str, operation: str = None, **kwargs):
        super().__init__(message, error_code='COMPUTATION_ERROR', **kwargs)
        self.operation = operation


class LookupFailedError(UFCEdgeError):
    """Raised when the storage collaborator fails"""

    def __init__(self, message: str, source: str = None, error_code: str = 'LOOKUP_FAILED', **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)
        self.source = source


class OddsLookupError(LookupFailedError):
    """Raised when the odds feed cannot be fetched"""

    def __init__(self, message: str, status: Optional[int] = None, **kwargs):
        super().__init__(message, source='odds_api', error_code='ODDS_LOOKUP_FAILED', **kwargs)
        self.status = status


class ContextualFormatter(logging.Formatter):
    """Formatter that appends fighter/event context attributes to the message"""

    CONTEXT_ATTRIBUTES = ('fighter_a', 'fighter_b', 'event', 'model', 'operation')

    def format(self, record):
        if not hasattr(record, 'timestamp'):
            record.timestamp = datetime.now().isoformat()

        context_info = []
        for attr in self.CONTEXT_ATTRIBUTES:
            if hasattr(record, attr):
                context_info.append(f"{attr}={getattr(record, attr)}")

        record.context = f"[{', '.join(context_info)}]" if context_info else ""
        return super().format(record)


class PerformanceLogger:
    """Logger for timing analysis operations"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.timers = {}

    def start_timer(self, operation: str):
        self.timers[operation] = time.time()
        self.logger.debug(f"Started operation: {operation}")

    def end_timer(self, operation: str, log_level: str = 'info') -> Optional[float]:
        if operation not in self.timers:
            self.logger.warning(f"Timer not found for operation: {operation}")
            return None

        duration = time.time() - self.timers.pop(operation)
        log_method = getattr(self.logger, log_level.lower())
        log_method(f"Completed operation: {operation} in {duration:.2f}s",
                   extra={'operation': operation, 'duration': duration})
        return duration

    @contextmanager
    def timed_operation(self, operation: str, log_level: str = 'info'):
        """Context manager for timing operations"""
        self.start_timer(operation)
        try:
            yield
        finally:
            self.end_timer(operation, log_level)


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    console_output: bool = True,
    structured_format: bool = False
) -> logging.Logger:
    """
    Setup centralized logging configuration

    Args:
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Path to log file (None for no file logging)
        max_file_size: Maximum size of log files before rotation
        backup_count: Number of backup log files to keep
        console_output: Whether to output logs to console
        structured_format: Whether to use the ISO timestamp format

    Returns:
        Configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if structured_format:
        console_format = '%(timestamp)s | %(levelname)-8s | %(name)s | %(context)s %(message)s'
        file_format = '%(timestamp)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(context)s %(message)s'
    else:
        console_format = '%(asctime)s | %(levelname)-8s | %(name)s | %(context)s %(message)s'
        file_format = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(context)s %(message)s'

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ContextualFormatter(console_format))
        root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(ContextualFormatter(file_format))
        root_logger.addHandler(file_handler)

    logging.getLogger(__name__).info("Logging system initialized", extra={
        'level': level,
        'log_file': log_file,
        'console_output': console_output,
        'structured_format': structured_format
    })

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger that inherits the root configuration"""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.propagate = True
    return logger


def log_exception(logger: logging.Logger, exception: Exception, context: Dict[str, Any] = None):
    """Log an exception with context and traceback"""
    context = context or {}

    error_info = {
        'exception_type': type(exception).__name__,
        'exception_message': str(exception),
        'traceback': traceback.format_exc(),
        **context
    }

    if isinstance(exception, UFCEdgeError):
        error_info.update({
            'error_code': exception.error_code,
            'error_context': exception.context,
            'error_timestamp': exception.timestamp
        })

    logger.error(f"Exception occurred: {exception}", extra=error_info)


def create_performance_logger(name: str) -> PerformanceLogger:
    return PerformanceLogger(get_logger(name))


class ErrorHandler:
    """
    Error handling for public entry points.

    Internal faults are logged and replaced with the neutral result the
    caller supplies. LookupFailedError always propagates.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @contextmanager
    def handle_errors(self, operation: str, context: Dict[str, Any] = None):
        """
        Convert unexpected exceptions into ComputationError.

        Args:
            operation: Description of the operation being performed
            context: Additional context information
        """
        context = dict(context or {})
        context['operation'] = operation

        try:
            self.logger.debug(f"Starting operation: {operation}", extra=context)
            yield
            self.logger.debug(f"Completed operation: {operation}", extra=context)
        except UFCEdgeError:
            raise
        except Exception as e:
            raise ComputationError(
                f"Operation failed: {operation} - {e}",
                operation=operation,
                context=context
            ) from e

    def safe_execute(self, operation: str, func: Callable, *args,
                     fallback: Callable[[], Any] = lambda: None, **kwargs):
        """
        Execute func, returning fallback() if it fails with an internal error.

        Args:
            operation: Description of the operation
            func: Function to execute
            fallback: Factory for the neutral result
            *args, **kwargs: Arguments for the function
        """
        try:
            with self.handle_errors(operation):
                return func(*args, **kwargs)
        except LookupFailedError:
            raise
        except UFCEdgeError as e:
            log_exception(self.logger, e, {'operation': operation})
            return fallback()


def configure_for_testing():
    """Configure logging for testing environment"""
    setup_logging(
        level='WARNING',
        log_file=None,
        console_output=False,
        structured_format=False
    )

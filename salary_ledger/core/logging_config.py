"""
Logging Configuration for the Salary Ledger service
Provides console/file logging and standardized records for ledger operations
"""

import logging
import logging.handlers
import os
from datetime import datetime
from typing import Optional


class LedgerLogFormatter(logging.Formatter):
    """Console formatter with color coded levels"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(levelname, '')
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_file_rotation: bool = True
):
    """Setup logging configuration"""

    # Create logs directory if it doesn't exist
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

    # Set log level
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {log_level}')

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_formatter = LedgerLogFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        if enable_file_rotation:
            # Rotating file handler (10MB max, keep 5 backups)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            )
        else:
            file_handler = logging.FileHandler(log_file)

        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    loggers = [
        'salary_ledger.ledger.settlement',
        'salary_ledger.ledger.service',
        'salary_ledger.notifications.service',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(numeric_level)

    return root_logger


def log_ledger_operation(
    operation: str,
    employee_id: Optional[int] = None,
    duration: Optional[float] = None,
    success: bool = True,
    details: Optional[dict] = None,
    logger: Optional[logging.Logger] = None
):
    """Log ledger operations with standardized format"""

    if logger is None:
        logger = logging.getLogger('salary_ledger.ledger.settlement')

    status_emoji = "🟢" if success else "🔴"
    operation_type = operation.upper().replace("_", " ")

    message_parts = [
        f"{status_emoji} LEDGER - {operation_type}:"
    ]

    if employee_id is not None:
        message_parts.append(f"Employee: {employee_id}")

    if duration is not None:
        message_parts.append(f"Duration: {duration:.3f}s")

    if details:
        for key, value in details.items():
            message_parts.append(f"{key}: {value}")

    message = " | ".join(message_parts)

    if success:
        logger.info(message)
    else:
        logger.error(message)


class LedgerOperationLogger:
    """Context manager for logging ledger operations"""

    def __init__(
        self,
        operation: str,
        employee_id: Optional[int] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.operation = operation
        self.employee_id = employee_id
        self.logger = logger or logging.getLogger('salary_ledger.ledger.settlement')
        self.start_time = None
        self.success = False
        self.details = {}

    def __enter__(self):
        self.start_time = datetime.now().timestamp()
        self.logger.info(f"🟡 LEDGER - {self.operation.upper()}: Starting operation for employee {self.employee_id}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = datetime.now().timestamp() - self.start_time if self.start_time else 0

        if exc_type is None:
            self.success = True
        else:
            self.details['error'] = f"{exc_type.__name__}: {exc_val}"

        log_ledger_operation(
            self.operation,
            self.employee_id,
            duration,
            self.success,
            self.details,
            self.logger
        )
        return False

    def add_detail(self, key: str, value):
        """Add additional details to the log"""
        self.details[key] = value


def init_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Initialize logging configuration"""
    setup_logging(
        log_level=log_level,
        log_file=log_file,
        enable_console=True,
        enable_file_rotation=True
    )

import logging
import logging.handlers
import re
from pathlib import Path

import orjson
import structlog
from structlog.types import FilteringBoundLogger

from mox.config.models import LoggingConfig
from mox.utils import get_app_dir

_NOISY_LOGGERS = ('uvicorn', 'httpx', 'httpcore')


def _parse_file_size(value: str) -> int:
    """Parse sizes like '10MB' into bytes."""
    size_match = re.match(r'(\d+)\s*([KMGT]?B?)', value.upper())
    if not size_match:
        return 10 * 1024 * 1024  # Default 10MB

    size_num = int(size_match.group(1))
    size_unit = size_match.group(2)
    multipliers = {'B': 1, 'KB': 1024, 'MB': 1024**2, 'GB': 1024**3, 'TB': 1024**4}
    return size_num * multipliers.get(size_unit, multipliers['MB'])


def _create_log_handlers(log_config: LoggingConfig, log_dir: Path) -> list:
    """Create logging handlers based on configuration."""
    handlers = []

    if log_config.console_enabled:
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, structlog.processors.format_exc_info, structlog.dev.ConsoleRenderer()]
        )
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if log_config.file_enabled:
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(serializer=lambda *x, **y: orjson.dumps(*x, **y).decode('utf-8')),
            ]
        )
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / 'mox.log', maxBytes=_parse_file_size(log_config.max_file_size), backupCount=log_config.backup_count
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    return handlers


def _correlation_id_processor(logger, method_name, event_dict):
    """Add correlation ID to log events if available in context."""
    from mox.context import get_correlation_id

    if 'correlation_id' not in event_dict:
        event_dict['correlation_id'] = get_correlation_id()

    return event_dict


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a configured structlog logger."""
    return structlog.get_logger(name)


def configure_structlog(log_config: LoggingConfig) -> None:
    """Configure structlog with console (and optional rotating file) output and standard library integration."""
    log_dir = Path(log_config.log_file_dir) if log_config.log_file_dir else get_app_dir() / 'logs'
    if log_config.file_enabled:
        if log_dir.exists() and not log_dir.is_dir():
            raise Exception(f'Log directory {log_dir} is not a directory')
        log_dir.mkdir(exist_ok=True, parents=True)

    level = getattr(logging, log_config.level.upper())

    logging.basicConfig(
        level=level,
        handlers=_create_log_handlers(log_config, log_dir),
        format='%(message)s',  # structlog will handle formatting
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel('INFO')

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt='ISO', utc=True),
        _correlation_id_processor,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

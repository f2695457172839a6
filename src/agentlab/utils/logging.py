import inspect
import json
import logging
from typing import Any, Optional

import structlog

from agentlab.utils.tracing import current_trace_id

# Set once configure_logging has run; later calls are no-ops
_logging_configured = False


def _add_module_info(logger: Any, method_name: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
    """
    Add a short `module` field.

    "agentlab.repositories.sql_execution" becomes "repositories.sql_execution".
    """
    logger_name = event_dict.get('logger', 'unknown')

    if logger_name.startswith('agentlab.'):
        module_parts = logger_name.split('.')
        event_dict['module'] = '.'.join(module_parts[-2:])
    else:
        event_dict['module'] = logger_name

    return event_dict


def _add_trace_id(logger: Any, method_name: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
    """Attach the trace id of the current request, unless the caller passed one."""
    if 'trace_id' not in event_dict:
        trace_id = current_trace_id()
        if trace_id is not None:
            event_dict['trace_id'] = trace_id
    return event_dict


def _pretty_json_renderer(logger: Any, method_name: str, event_dict: structlog.types.EventDict) -> str:
    """Render every record as JSON with 2-space indentation."""
    return json.dumps(event_dict, indent=2, ensure_ascii=False, default=str)


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Route structlog through stdlib logging with a JSON renderer.

    Args:
        log_level: Level name; defaults to settings.app.log_level
    """

    global _logging_configured

    if _logging_configured:
        return
    _logging_configured = True

    if log_level is None:
        from agentlab.config import get_settings
        log_level = get_settings().app.log_level.value

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, str(log_level).upper()),
        handlers=[logging.StreamHandler()]
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _add_module_info,
            _add_trace_id,
            _pretty_json_renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("Query executed", row_count=5)

        # Output:
        # {
        #   "event": "Query executed",
        #   "row_count": 5,
        #   "logger": "agentlab.repositories.sql_execution",
        #   "level": "info",
        #   "timestamp": "2026-01-22T10:30:00Z",
        #   "module": "repositories.sql_execution",
        #   "trace_id": "5f0c..."
        # }
    """
    return structlog.get_logger(name)


def get_module_logger() -> structlog.stdlib.BoundLogger:
    """
    Get a logger named after the calling module.

    Falls back to 'unknown' if frame inspection fails.
    """
    module_name = 'unknown'
    frame = None

    try:
        frame = inspect.currentframe()
        if frame is not None and frame.f_back is not None:
            module_name = frame.f_back.f_globals.get('__name__', 'unknown')
    except (AttributeError, RuntimeError):
        pass
    finally:
        if frame is not None:
            del frame

    return get_logger(module_name)

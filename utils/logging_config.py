"""
Logging setup for the back office API.

Plain text lines in development, one JSON object per line when
USE_JSON_LOGGING=true or FLASK_ENV=production, with optional application
and error log files under LOG_DIR when ENABLE_FILE_LOGGING=true. Every
request is tagged with a request id (taken from X-Request-ID or generated)
that is echoed back in the response headers and attached to each log line
written while the request is handled.
"""

import os
import sys
import json
import time
import uuid
import logging
from datetime import datetime, timezone
from flask import has_request_context, request, g

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
REQUEST_ID_HEADER = 'X-Request-ID'
SLOW_REQUEST_SECONDS = 2.0

# Standard LogRecord attributes; anything else was passed through ``extra``
_RECORD_FIELDS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'request_id'}


class JSONFormatter(logging.Formatter):
    """One JSON document per record"""

    def __init__(self):
        super().__init__()
        self.environment = os.environ.get('FLASK_ENV', 'development')

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'environment': self.environment,
        }

        request_id = getattr(record, 'request_id', None)
        if request_id:
            entry['request_id'] = request_id

        extra = {key: value for key, value in vars(record).items() if key not in _RECORD_FIELDS}
        if extra:
            entry['extra'] = extra

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class RequestIdFilter(logging.Filter):
    """Attach the current request id to records emitted inside a request"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = g.get('request_id') if has_request_context() else None
        return True


def setup_logging(app=None):
    """Install the stdout handler, and the file handlers when enabled, on the root logger"""
    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    if log_level not in LOG_LEVELS:
        log_level = 'INFO'

    use_json = (os.environ.get('USE_JSON_LOGGING', 'false').lower() == 'true'
                or os.environ.get('FLASK_ENV') == 'production')
    if use_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter('[%(asctime)s] %(levelname)s in %(name)s: %(message)s')

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    # create_app may run more than once per process (tests, CLI)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if os.environ.get('ENABLE_FILE_LOGGING', 'false').lower() == 'true':
        log_dir = os.environ.get('LOG_DIR', 'logs')
        os.makedirs(log_dir, exist_ok=True)
        for filename, level in (('application.log', log_level), ('error.log', logging.ERROR)):
            file_handler = logging.FileHandler(os.path.join(log_dir, filename))
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(RequestIdFilter())
            root_logger.addHandler(file_handler)

    if os.environ.get('FLASK_ENV') == 'production':
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    if app:
        app.logger.info(f"Logging configured: level={log_level}, json={use_json}")


def _start_request():
    g.request_started = time.monotonic()
    g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex


def _finish_request(response):
    started = g.get('request_started')
    if started is None:
        return response

    duration = time.monotonic() - started
    response.headers[REQUEST_ID_HEADER] = g.request_id

    if not request.path.startswith('/api'):
        return response

    if response.status_code >= 500:
        level = logging.ERROR
    elif response.status_code >= 400 or duration > SLOW_REQUEST_SECONDS:
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.getLogger('requests').log(
        level,
        f"{request.method} {request.path} {response.status_code}",
        extra={'duration_ms': round(duration * 1000, 2), 'status_code': response.status_code}
    )
    return response


def register_request_logging(app):
    """Install the request id and timing hooks on the application"""
    app.before_request(_start_request)
    app.after_request(_finish_request)

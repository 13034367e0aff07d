"""
Logging setup for the dashboard.

configure_logging() runs once per create_app(). LOG_FORMAT picks text or
single-line JSON; LOG_LEVEL picks the level (INFO when unset or unknown).
Upload and dataset identifiers passed via ``extra=`` show up as JSON keys.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Attributes copied from ``extra=`` into JSON entries when present
CONTEXT_FIELDS = ('dataset_id', 'upload_id', 'upload_filename', 'rows_read', 'rows_dropped')

_TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'
_TEXT_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Request lines and parser internals
_QUIET_LOGGERS = ('werkzeug', 'dateutil')


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with any upload/dataset context attached."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def resolve_level(name):
    level = logging.getLevelName((name or 'INFO').strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _formatter(log_format):
    if log_format == 'json':
        return JSONFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)


def configure_logging(app=None):
    """
    Install a single stderr handler on the root logger.

    An app whose config sets LOG_LEVEL overrides the environment, so tests can
    turn ingestion DEBUG lines on without touching os.environ.
    """
    level_name = os.getenv('LOG_LEVEL', 'INFO')
    if app is not None and app.config.get('LOG_LEVEL'):
        level_name = app.config['LOG_LEVEL']
    level = resolve_level(level_name)
    log_format = os.getenv('LOG_FORMAT', 'text').strip().lower()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_formatter(log_format))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

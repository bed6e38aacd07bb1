"""
Structured logging tests
"""
import json
import logging

from app.logging_config import (
    StructuredJsonFormatter, begin_request, get_logger, log_with_context, request_id_var,
)


class _Capture(logging.Handler):

    def __init__(self):
        super().__init__()
        self.setFormatter(StructuredJsonFormatter())
        self.lines = []

    def emit(self, record):
        self.lines.append(json.loads(self.format(record)))


def test_entry_carries_channel_context_and_request_id():
    logger = get_logger('store')
    handler = _Capture()
    logger.addHandler(handler)
    token = request_id_var.set('')
    try:
        req_id = begin_request()
        log_with_context(logger, 'WARNING', 'Discarding unreadable stored records',
                         context={'storage_key': 'studentRecords'}, extra_data={'bytes': 3})
    finally:
        request_id_var.reset(token)
        logger.removeHandler(handler)

    entry = handler.lines[0]
    assert entry['level'] == 'WARNING'
    assert entry['channel'] == 'store'
    assert entry['context'] == {'request_id': req_id, 'storage_key': 'studentRecords'}
    assert entry['extra'] == {'bytes': 3}
    assert entry['timestamp'].endswith('Z')


def test_foreign_logger_uses_app_channel():
    record = logging.LogRecord('uvicorn.error', logging.INFO, __file__, 1, 'started', None, None)
    entry = json.loads(StructuredJsonFormatter().format(record))
    assert entry['channel'] == 'app'
    assert entry['extra'] == {}

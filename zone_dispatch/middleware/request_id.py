"""
Request ID middleware for request tracing and logging
"""
from flask import has_request_context, request
import logging
import re
import uuid

# Accepted shape for client-supplied X-Request-ID values
_VALID_REQUEST_ID = re.compile(r'^[A-Za-z0-9._-]{1,64}$')


class RequestIdMiddleware:
    """
    WSGI middleware to add unique request ID to each request
    Useful for correlating a reconciliation sweep's log lines
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        # Reuse the caller's id when it looks sane, otherwise mint one
        request_id = environ.get('HTTP_X_REQUEST_ID', '')
        if not _VALID_REQUEST_ID.match(request_id):
            request_id = uuid.uuid4().hex

        # Store in environ
        environ['request_id'] = request_id

        # Add to response headers
        def custom_start_response(status, headers, exc_info=None):
            headers.append(('X-Request-ID', request_id))
            return start_response(status, headers, exc_info)

        return self.app(environ, custom_start_response)


class RequestIdFilter(logging.Filter):
    """Logging filter that exposes the current request id as %(request_id)s"""

    def filter(self, record):
        if has_request_context():
            record.request_id = request.environ.get('request_id', '-')
        else:
            record.request_id = '-'
        return True

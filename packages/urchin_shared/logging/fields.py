"""Canonical structured logging field names.

Formatters and SDK call sites share these keys so log pipelines can filter on
a stable vocabulary.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EXCEPTION = "exception"

# Operation fields.
OPERATION = "operation"
REQUEST_KIND = "request_kind"
METHOD = "method"
URL = "url"
STATUS_CODE = "status_code"
DURATION_MS = "duration_ms"
ERROR_TYPE = "error_type"

# Locator and peer fields.
PEER = "peer"
ENDPOINT = "endpoint"
BUCKET = "bucket"
OBJECT_KEY = "object_key"
TASK_ID = "task_id"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"

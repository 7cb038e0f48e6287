"""HTTP constants shared by the error taxonomy and the transport.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Status error messages embed at most this much of the response body (4 KiB)
MAX_RAW_BODY_BYTES = 4 * 1024

# Characters of raw body shown in APIError messages
API_ERROR_BODY_PREVIEW_CHARS = 200

# === NAVMAP v1 ===
# {
#   "module": "fluenthttp.network.policy",
#   "purpose": "HTTP policy constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""HTTP policy constants and defaults.

Defaults for the per-request HTTPX client built by the executor.  They mirror a
conservative desktop browser: generous timeouts, redirects followed, the body
of a successful response decoded as UTF-8 unless the server says otherwise.
"""

# ============================================================================
# Identification
# ============================================================================

#: Default User-Agent sent with every request
USER_AGENT_MOZILLA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.8; rv:24.0) Firefox/24.0"


# ============================================================================
# Timeout Budgets (seconds)
# ============================================================================

#: Connection establishment timeout
DEFAULT_CONNECT_TIMEOUT = 20.0

#: Read timeout (time between data packets on an established connection)
DEFAULT_READ_TIMEOUT = 20.0


# ============================================================================
# Status Handling
# ============================================================================

#: The only status code accepted without an explicit allow list
HTTP_OK = 200


# ============================================================================
# Body Handling
# ============================================================================

#: Encoding used for the text shape when the response declares no charset
DEFAULT_TEXT_ENCODING = "utf-8"

#: Content type of a raw request body set via ``with_request_body``
REQUEST_BODY_CONTENT_TYPE = "text/plain; charset=UTF-8"

#: Content type of a form-encoded POST
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

#: Chunk size used when the stream shape pulls from the response body
STREAM_CHUNK_SIZE = 64 * 1024


# ============================================================================
# Proxy Properties
# ============================================================================

HTTP_PROXY_HOST = "http.proxyHost"
HTTP_PROXY_PORT = "http.proxyPort"
HTTP_NON_PROXY_HOSTS = "http.nonProxyHosts"
HTTPS_PROXY_HOST = "https.proxyHost"
HTTPS_PROXY_PORT = "https.proxyPort"
HTTPS_NON_PROXY_HOSTS = "https.nonProxyHosts"


__all__ = [
    "USER_AGENT_MOZILLA",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_READ_TIMEOUT",
    "HTTP_OK",
    "DEFAULT_TEXT_ENCODING",
    "REQUEST_BODY_CONTENT_TYPE",
    "FORM_CONTENT_TYPE",
    "STREAM_CHUNK_SIZE",
    "HTTP_PROXY_HOST",
    "HTTP_PROXY_PORT",
    "HTTP_NON_PROXY_HOSTS",
    "HTTPS_PROXY_HOST",
    "HTTPS_PROXY_PORT",
    "HTTPS_NON_PROXY_HOSTS",
]

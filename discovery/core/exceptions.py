"""
Exception hierarchy for search backends and query translation
"""
import json
import re


class DiscoveryError(Exception):
    """Base class for all discovery errors"""


class BackendException(DiscoveryError):
    """A search backend failed or returned something unusable"""


class HttpErrorException(BackendException):
    """A backend answered with a non-successful HTTP status"""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @classmethod
    def from_response(cls, status_code: int, body: str) -> "HttpErrorException":
        """
        Create the most specific exception for an HTTP error response.

        Args:
            status_code: HTTP status code of the response
            body: Raw response body

        Returns:
            RequestErrorException for 4xx, RemoteErrorException for 5xx,
            HttpErrorException otherwise
        """
        message = f"HTTP {status_code}: {extract_error_message(body)}"
        if 400 <= status_code < 500:
            return RequestErrorException(message, status_code, body)
        if status_code >= 500:
            return RemoteErrorException(message, status_code, body)
        return cls(message, status_code, body)


class RequestErrorException(HttpErrorException):
    """The backend rejected the request (4xx)"""


class RemoteErrorException(HttpErrorException):
    """The backend failed while handling the request (5xx)"""


class SummonException(BackendException):
    """Summon API reported an error"""


class InvalidQueryError(DiscoveryError, ValueError):
    """A query or query group could not be interpreted"""


class UnknownBackendError(DiscoveryError):
    """The requested backend does not exist or is not configured"""


class SearchSpecsError(DiscoveryError):
    """A search specs file could not be parsed"""


def extract_error_message(body: str) -> str:
    """
    Pick the most useful error message out of a backend error body.

    Solr answers with JSON (error.msg) when wt=json made it through, and with
    an HTML error page from the servlet container otherwise.
    """
    if not body:
        return "Unexpected response"

    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("msg"):
            return str(error["msg"])

    match = re.search(r"<title>(.*)</title>", body, re.IGNORECASE | re.DOTALL)
    if match:
        return match.group(1).strip()

    return body.strip()

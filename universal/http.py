import re
import sys
import time
from urllib.parse import quote
import requests

RETRYABLE_STATUSES = frozenset([408, 429, 500, 502, 503, 504, 520, 522, 524])

DEFAULT_RETRIES = 4
DEFAULT_RETRY_DELAY = 0.45
HTTP_CONNECT_TIMEOUT = 5
HTTP_READ_TIMEOUT = 20

_STATUS_RE = re.compile(r"\((\d{3})\)")


class HttpError(Exception):
    """Non-2xx response. The status is kept in the message as "(NNN)"."""

    def __init__(self, status, url, detail=""):
        self.status = status
        self.url = url
        self.detail = detail
        message = "Request failed (%s): %s" % (status, url)
        if detail:
            message = "%s: %s" % (message, detail)
        super().__init__(message)


def status_from_message(msg):
    m = _STATUS_RE.search(str(msg or ""))
    if m:
        return int(m.group(1))


def is_retryable_status(status):
    return status in RETRYABLE_STATUSES


def _error_status(exc):
    status = getattr(exc, "status", None)
    if isinstance(status, int):
        return status
    return status_from_message(exc)


def fetch_with_retry(fn, retries=DEFAULT_RETRIES, delay=DEFAULT_RETRY_DELAY,
                     sleep=time.sleep, debug=False):
    """Call fn until it succeeds or fails with a non-transient error.

    Only HttpError with a status in RETRYABLE_STATUSES is retried, waiting
    delay * (attempt + 1) seconds between attempts. The last error is
    re-raised unchanged.
    """
    retries = max(0, retries)
    delay = max(0, delay)
    attempt = 0
    while True:
        try:
            return fn()
        except HttpError as e:
            status = _error_status(e)
            if not is_retryable_status(status) or attempt >= retries:
                raise
            wait = delay * (attempt + 1)
            if debug:
                sys.stderr.write(
                    "retry %s/%s after %s (%.2fs)\n" % (attempt + 1, retries, status, wait))
            sleep(wait)
            attempt += 1


def unwrap_single_object(payload, what="object"):
    if isinstance(payload, list):
        if payload and isinstance(payload[0], dict):
            return payload[0]
        raise ValueError("Expected a %s, got an empty or invalid list" % what)
    if isinstance(payload, dict):
        return payload
    raise ValueError("Expected a %s, got %s" % (what, type(payload).__name__))


def build_query(params):
    parts = []
    for key, value in params.items():
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            if v is None or str(v).strip() == "":
                continue
            parts.append("%s=%s" % (quote(str(key), safe=""), quote(str(v).strip(), safe="")))
    if parts:
        return "?" + "&".join(parts)
    return ""


def response_detail(response):
    """Fold a JSON error payload's title and details into one line."""
    body = response.text or ""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        title = payload.get("title")
        details = payload.get("details")
        parts = []
        if title:
            parts.append("%s." % title)
        if details:
            parts.append(str(details))
        if parts:
            return " ".join(parts)
    return body.strip()[:200] or response.reason or ""


class JsonApiClient():
    def __init__(self, base_url, headers=None, session=None,
                 retries=DEFAULT_RETRIES, delay=DEFAULT_RETRY_DELAY, sleep=time.sleep):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}
        if headers:
            self.headers.update(headers)
        self.retries = retries
        self.delay = delay
        self.sleep = sleep

    def url(self, path):
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    def fetch(self, path):
        url = self.url(path)
        response = self.session.get(
            url, headers=self.headers,
            timeout=(HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT))
        if not 200 <= response.status_code < 300:
            raise HttpError(response.status_code, url, response_detail(response))
        return response.json()

    def fetch_with_retry(self, path):
        return fetch_with_retry(
            lambda: self.fetch(path), retries=self.retries, delay=self.delay,
            sleep=self.sleep)

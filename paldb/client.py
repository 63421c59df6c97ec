import os
import time
import requests
from universal.cache import ResponseCache
from universal.http import (
    HttpError, fetch_with_retry, response_detail, DEFAULT_RETRIES, DEFAULT_RETRY_DELAY,
    HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT)
from paldb.constants import (
    HTML_HEADERS, DEFAULT_USER_AGENT, USER_AGENT_ENV, PAGE_TTL, PAL_LIST_URL)
from paldb.links import detail_url


def user_agent():
    return os.environ.get(USER_AGENT_ENV) or DEFAULT_USER_AGENT


class PalDBClient():
    """Fetches paldb.cc pages, caching each page by URL."""

    def __init__(self, session=None, cache=None, retries=DEFAULT_RETRIES,
                 delay=DEFAULT_RETRY_DELAY, ttl=PAGE_TTL, debug=False, sleep=time.sleep):
        self.session = session or requests.Session()
        self.cache = cache or ResponseCache(ttl=ttl)
        self.retries = retries
        self.delay = delay
        self.debug = debug
        self.sleep = sleep
        self.headers = dict(HTML_HEADERS)
        self.headers["User-Agent"] = user_agent()

    def fetch_html(self, url):
        response = self.session.get(
            url, headers=self.headers,
            timeout=(HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT))
        if not 200 <= response.status_code < 300:
            raise HttpError(response.status_code, url, response_detail(response))
        return response.text

    def _cached(self, url, force):
        def fetch():
            return fetch_with_retry(
                lambda: self.fetch_html(url), retries=self.retries,
                delay=self.delay, sleep=self.sleep, debug=self.debug)
        return self.cache.get_or_fetch(url, fetch, force=force)

    def fetch_pal_list(self, force=False):
        return self._cached(PAL_LIST_URL, force)

    def _detail(self, slug, force):
        url = detail_url(slug)
        if not url:
            raise ValueError("Invalid slug: %r" % (slug,))
        return self._cached(url, force)

    def fetch_pal_detail(self, slug, force=False):
        return self._detail(slug, force)

    def fetch_item_detail(self, slug, force=False):
        return self._detail(slug, force)

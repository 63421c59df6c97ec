from urllib.parse import quote
from universal.urls import resolve_url, slug_from_href
from universal.tables import img_url
from paldb.constants import BASE, CDN_BASE, LOCALE, ASSET_PREFIXES, BREED_URL

HOST_PATTERN = r"(?:www\.)?paldb\.cc"


def abs_url(path):
    return resolve_url(path, BASE, CDN_BASE, ASSET_PREFIXES)


def abs_img_url(tag_or_html):
    url = img_url(tag_or_html)
    if url:
        return abs_url(url)


def paldb_slug(href):
    return slug_from_href(href, HOST_PATTERN)


def detail_url(slug_or_href):
    raw = (slug_or_href or "").strip()
    if not raw:
        return ""
    if raw.lower().startswith("http://") or raw.lower().startswith("https://"):
        return raw
    slug = paldb_slug(raw)
    if not slug:
        return ""
    return abs_url("/%s/%s" % (LOCALE, slug))


def breed_url(code):
    return "%s?child=%s" % (BREED_URL, quote(code, safe=""))

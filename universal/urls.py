import re
from universal.utils import clean_key

_PROTOCOL_HOST_RE = re.compile(r"^(?:https?:)?//[^/?#]*", re.IGNORECASE)
_LOCALE_RE = re.compile(r"^[a-z]{2}(?:-[A-Za-z]{2,4})?(?:/|$)")


def resolve_url(path, site_origin, cdn_origin, asset_prefixes):
    """Turn an href or src found in page markup into an absolute URL.

    Absolute http(s) URLs pass through, protocol-relative URLs get https,
    asset paths (any of asset_prefixes, with or without the leading slash)
    go to the CDN origin and every other relative path goes to the site
    origin.
    """
    if not path:
        return ""
    s = str(path).strip()
    if not s:
        return ""
    lower = s.lower()
    if lower.startswith("http://") or lower.startswith("https://"):
        return s
    if s.startswith("//"):
        return "https:" + s
    site_origin = site_origin.rstrip("/")
    cdn_origin = cdn_origin.rstrip("/")
    bare = s.lstrip("/")
    for prefix in asset_prefixes:
        if bare.startswith(prefix.strip("/") + "/"):
            return "%s/%s" % (cdn_origin, bare)
    return "%s/%s" % (site_origin, bare)


def slug_from_href(href, host_pattern=None):
    """Reduce an href to the entity slug it points at.

    "https://paldb.cc/en/Lamball?x=1#top" -> "Lamball". An href that is only
    a query string ("?s=...") names no entity and yields "".
    """
    h = clean_key(href)
    if not h or h.startswith("?"):
        return ""
    if host_pattern:
        h = re.sub(r"^(?:https?:)?//" + host_pattern, "", h, flags=re.IGNORECASE)
    else:
        h = _PROTOCOL_HOST_RE.sub("", h)
    h = h.split("#")[0].split("?")[0]
    h = h.lstrip("/")
    m = _LOCALE_RE.match(h)
    if m and "/" in m.group(0):
        h = h[m.end():]
    return clean_key(h)

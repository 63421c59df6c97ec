import re
import warnings
from bs4 import BeautifulSoup, Tag, MarkupResemblesLocatorWarning
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

_SCRIPT_RE = re.compile(r"<script\b[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[\s\S]*?</style>", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_CLOSE_RE = re.compile(
    r"</(?:p|div|section|article|header|footer|li|ul|ol|h[1-6]|table|tr|td|th|thead|tbody)\s*>",
    re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_BEFORE_NL_RE = re.compile(r"[ \t]+\n")
_SPACE_AFTER_NL_RE = re.compile(r"\n[ \t]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_SPACE_RUN_RE = re.compile(r"[ \t]{2,}")
_WHITESPACE_RE = re.compile(r"\s+")

# The fixed entity set the source site actually emits. Anything else is left
# as-is so a typo in the markup stays visible in the output.
ENTITIES = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&ndash;", "\u2013"),
    ("&mdash;", "\u2014"),
]


def _as_text(value):
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def decode_entities(text):
    text = _as_text(text)
    for entity, char in ENTITIES:
        text = text.replace(entity, char)
    return text


def filter_entities(text):
    text = _as_text(text)
    text = text.replace("\u00c2\u00ba", "\u00ba")
    text = text.replace("\u00c3\u0097", "\u00d7")
    text = text.replace("\u00e2\u0080\u0091", "\u2011")
    text = text.replace("\u00e2\u0080\u0093", "\u2013")
    text = text.replace("\u00e2\u0080\u0094", "\u2014")
    text = text.replace("\u00e2\u0080\u0098", "\u2018")
    text = text.replace("\u00e2\u0080\u0099", "\u2019")
    text = text.replace("\u00e2\u0080\u009c", "\u201c")
    text = text.replace("\u00e2\u0080\u009d", "\u201d")
    text = text.replace("\u00e2\u0080\u00a2", "\u2022")
    text = text.replace("\u00e2\u0080\u00a6", "\u2026")
    text = text.replace("\u00c2\u00a0", " ")
    text = text.replace("\u00a0", " ")
    return text


def to_plain_text(html):
    """Render an HTML fragment as readable text.

    Block-level closing tags and <br> become line breaks, every other tag is
    dropped, the fixed entity set is decoded and mojibake repaired, and runs
    of spaces and blank lines are collapsed. Never raises; anything unusable renders as "".
    """
    text = _as_text(html)
    if not text:
        return ""
    text = _SCRIPT_RE.sub("\n", text)
    text = _STYLE_RE.sub("\n", text)
    text = _BR_RE.sub("\n", text)
    text = _BLOCK_CLOSE_RE.sub("\n", text)
    text = _TAG_RE.sub(" ", text)
    text = filter_entities(decode_entities(text))
    text = text.replace("\r", "")
    text = _SPACE_BEFORE_NL_RE.sub("\n", text)
    text = _SPACE_AFTER_NL_RE.sub("\n", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    text = _SPACE_RUN_RE.sub(" ", text)
    return text.strip()


def clean_key(text):
    text = filter_entities(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_text(html):
    return clean_key(to_plain_text(html))


def first_match(text, pattern, flags=re.IGNORECASE):
    """Return group 1 of the first match (or the whole match), stripped.

    Empty results are returned as None so callers can chain with `or`.
    """
    text = _as_text(text)
    if not text:
        return None
    if isinstance(pattern, str):
        pattern = re.compile(pattern, flags)
    m = pattern.search(text)
    if not m:
        return None
    value = m.group(1) if m.groups() else m.group(0)
    if value is None:
        return None
    value = value.strip()
    return value or None


def first_of(text, patterns):
    for pattern in patterns:
        value = first_match(text, pattern)
        if value:
            return value


def all_matches(text, pattern, flags=re.IGNORECASE):
    text = _as_text(text)
    if isinstance(pattern, str):
        pattern = re.compile(pattern, flags)
    values = []
    for m in pattern.finditer(text):
        value = m.group(1) if m.groups() else m.group(0)
        if value and value.strip():
            values.append(value.strip())
    return values


def dedup(items):
    seen = set()
    retval = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        retval.append(item)
    return retval


def parse_int(text):
    m = re.search(r"[0-9][0-9,]*", _as_text(text))
    if not m:
        return None
    return int(m.group(0).replace(",", ""))


def parse_number(text):
    text = clean_key(text).replace(",", "")
    m = re.fullmatch(r"[+-]?[0-9]+(?:\.[0-9]+)?", text)
    if not m:
        return None
    if "." in text:
        return float(text)
    return int(text)


def soup_fragment(html):
    return BeautifulSoup(_as_text(html), "html.parser")


def is_tag_named(element, taglist):
    if type(element) != Tag:
        return False
    elif element.name in taglist:
        return True
    return False


def has_name(tag, name):
    if hasattr(tag, 'name') and tag.name == name:
        return True
    return False


def has_class(tag, token):
    if type(tag) != Tag:
        return False
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return token in classes


def get_text(detail):
    return ''.join(detail.find_all(string=True))


def tag_text(tag):
    if tag is None:
        return ""
    return clean_text(str(tag))

import re
from bs4 import Tag
from universal.utils import soup_fragment, clean_key, clean_text, decode_entities

# Row and cell boundaries are found by string segmentation rather than by a
# parser: source tables routinely omit </tr> and </td>, and html.parser
# nests unclosed rows inside each other.
_TR_SPLIT_RE = re.compile(r"<tr\b", re.IGNORECASE)
_TABLE_RE = re.compile(r"<table\b[\s\S]*?</table>", re.IGNORECASE)
_TBODY_RE = re.compile(r"<tbody\b[^>]*>([\s\S]*?)</tbody>", re.IGNORECASE)
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)%")
_LEVEL_RE = re.compile(r"\bLv\.?\s*([0-9]+)\b", re.IGNORECASE)
_INT_RE = re.compile(r"\b([0-9]+)\b")

IMG_ATTRS = ["src", "data-src", "data-lazy-src", "data-original"]


def _cell_re(tag):
    return re.compile(
        r"<%s\b[^>]*>([\s\S]*?)(?=<t[dhr]\b|</tr\b|</thead\b|<tbody\b|</tbody\b|</table\b|$)"
        % tag, re.IGNORECASE)


_CELL_RES = {"td": _cell_re("td"), "th": _cell_re("th")}
_ANY_CELL_RE = _cell_re("t[dh]")


def find_tables(html):
    if not html:
        return []
    return _TABLE_RE.findall(html)


def first_table(html):
    tables = find_tables(html)
    if tables:
        return tables[0]


def split_table_rows(table_html):
    if not table_html:
        return []
    parts = _TR_SPLIT_RE.split(table_html)
    return ["<tr" + part for part in parts[1:]]


def split_cells(row_html, tag="td"):
    if not row_html:
        return []
    cell_re = _CELL_RES.get(tag) or _cell_re(tag)
    return [m.group(1) for m in cell_re.finditer(row_html)]


def split_row_cells(row_html):
    """Header and data cells of one row, in document order."""
    if not row_html:
        return []
    return [m.group(1) for m in _ANY_CELL_RE.finditer(row_html)]


def extract_tbody_inner(table_html):
    if not table_html:
        return ""
    m = _TBODY_RE.search(table_html)
    if m:
        return m.group(1)
    m = re.search(r"<tbody\b[^>]*>", table_html, re.IGNORECASE)
    if not m:
        return ""
    rest = table_html[m.end():]
    stop = re.search(r"</table\b", rest, re.IGNORECASE)
    if stop:
        return rest[:stop.start()]
    return rest


def parse_level_from_row(row_html):
    """Find the level a table row describes, 0 when it names none.

    A cell holding only a number wins, then a "Lv. N" marker, then the first
    bare integer anywhere in the row text.
    """
    for cell in split_cells(row_html):
        text = clean_text(cell)
        if text.isdigit() and int(text) > 0:
            return int(text)
    text = clean_text(row_html)
    for regex in (_LEVEL_RE, _INT_RE):
        m = regex.search(text)
        if m and int(m.group(1)) > 0:
            return int(m.group(1))
    return 0


def img_url(tag_or_html):
    """Return the raw image location of the first <img>, or None.

    Lazy-loaded images keep their location in data-* attributes, so those are
    tried after src. javascript: placeholders are rejected.
    """
    if tag_or_html is None:
        return None
    if isinstance(tag_or_html, Tag):
        img = tag_or_html if tag_or_html.name == "img" else tag_or_html.find("img")
    else:
        img = soup_fragment(tag_or_html).find("img")
    if img is None:
        return None
    for attr in IMG_ATTRS:
        value = clean_key(decode_entities(img.get(attr) or ""))
        if not value:
            continue
        if value.lower().startswith("javascript"):
            return None
        return value
    return None


def last_percent(text):
    matches = _PERCENT_RE.findall(text or "")
    if matches:
        return "%s%%" % matches[-1]


def dedup_rows(rows, fields):
    seen = set()
    retval = []
    for row in rows:
        key = "|".join([str(row.get(f) or "").lower() for f in fields])
        if key in seen:
            continue
        seen.add(key)
        retval.append(row)
    return retval

import re
from universal.utils import first_match, to_plain_text, soup_fragment, tag_text, has_class, parse_number
from paldb.links import abs_img_url

_SUMMARY_RES = [
    re.compile(r"<h5[^>]*class=[\"']card-title[^\"']*[\"'][^>]*>\s*Summary\s*</h5>\s*<div[^>]*>([\s\S]*?)</div>",
               re.IGNORECASE),
    re.compile(r"<h5[^>]*>\s*Summary\s*</h5>\s*<div[^>]*>([\s\S]*?)</div>", re.IGNORECASE),
]
_WORK_START_RE = re.compile(r"Work Suitability", re.IGNORECASE)
_WORK_HEADING_RE = re.compile(r"<h5\b[^>]*>\s*(?:<span[^>]*>\s*)?Work Suitability", re.IGNORECASE)
_WORK_END_RE = re.compile(r"<div class=[\"']mt-2 d-flex justify-content-between", re.IGNORECASE)
_NEXT_H5_RE = re.compile(r"<h5\b", re.IGNORECASE)
_WORK_ROW_RE = re.compile(r"<div\b[^>]*class=[\"'][^\"']*\bborder-bottom\b", re.IGNORECASE)
_LEVEL_RE = re.compile(r"Lv\.?\s*([0-9]+)", re.IGNORECASE)
WORK_SLICE_LIMIT = 20000


def _is_key_value_row(tag):
    return tag.name == "div" and has_class(tag, "d-flex") \
        and has_class(tag, "justify-content-between")


def key_value_cells(card_html):
    for row in soup_fragment(card_html).find_all(_is_key_value_row):
        cells = row.find_all("div", recursive=False)
        if len(cells) < 2:
            continue
        yield cells[0], cells[1]


def parse_key_value_map(card_html):
    """Stats-style card rows as an ordered {key: value} dict.

    Empty keys or values and one-character keys are skipped. The first
    occurrence of a key wins.
    """
    kv = {}
    if not card_html:
        return kv
    for left, right in key_value_cells(card_html):
        key = tag_text(left)
        value = tag_text(right)
        if not key or not value or len(key) <= 1:
            continue
        if key not in kv:
            kv[key] = value
    return kv


def parse_key_value_rows(card_html):
    rows = []
    if not card_html:
        return rows
    seen = set()
    for left, right in key_value_cells(card_html):
        key = tag_text(left)
        value = tag_text(right)
        if not key or not value or key in seen:
            continue
        seen.add(key)
        row = {"key": key, "value": value}
        icon = abs_img_url(left)
        if icon:
            row["icon_url"] = icon
        rows.append(row)
    return rows


def parse_summary(html):
    for regex in _SUMMARY_RES:
        m = regex.search(html or "")
        if m:
            text = to_plain_text(m.group(1))
            return text or None
    return None


def _work_slice(html, start):
    end = _WORK_END_RE.search(html, start.end())
    if not end:
        end = _NEXT_H5_RE.search(html, start.end())
    stop = end.start() if end else min(len(html), start.end() + WORK_SLICE_LIMIT)
    return html[start.end():stop]


def work_suitability_chunk(html):
    """Slice after the "Work Suitability" heading.

    Without an h5 heading the first bare mention followed by work rows is
    used, so navigation links and partner skill text are skipped.
    """
    heading = _WORK_HEADING_RE.search(html or "")
    if heading:
        return _work_slice(html, heading)
    chunks = [_work_slice(html, m) for m in _WORK_START_RE.finditer(html or "")]
    if not chunks:
        return None
    for chunk in chunks:
        if _WORK_ROW_RE.search(chunk):
            return chunk
    return chunks[0]


def parse_work_suitability(html):
    chunk = work_suitability_chunk(html)
    if not chunk:
        return []
    rows = []
    for row in soup_fragment(chunk).find_all("div", class_="border-bottom"):
        leaves = [d for d in row.find_all("div") if d.find("div") is None]
        if len(leaves) < 2:
            continue
        name = re.sub(r"^Lv\s*", "", tag_text(leaves[0]), flags=re.IGNORECASE).strip()
        level_text = tag_text(leaves[1])
        level = first_match(level_text, _LEVEL_RE) or first_match(level_text, r"([0-9]+)")
        if not name or not level:
            continue
        entry = {"name": name, "level": int(level)}
        icon = abs_img_url(leaves[0])
        if icon:
            entry["icon_url"] = icon
        rows.append(entry)
    return rows


def derive_food(stats, others):
    stats = stats or {}
    others = others or {}
    amount = parse_number(others.get("FoodAmount") or stats.get("FoodAmount"))
    maximum = parse_number(stats.get("Food"))
    if amount is None and maximum is None:
        return None
    return {"amount": amount or 0, "max": maximum or 0}

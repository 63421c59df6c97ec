import re
from universal.utils import clean_text, soup_fragment, tag_text
from universal.tables import last_percent, dedup_rows
from paldb.links import abs_img_url, paldb_slug

DROP_FIELDS = ["item_slug", "item_name", "quantity_text", "probability_text", "icon_url"]

_DROP_TITLE_RE = re.compile(r"data-i18n=[\"']paldex_drop_item_title[\"']", re.IGNORECASE)
_TABLE_RE = re.compile(r"<table\b[\s\S]*?</table>", re.IGNORECASE)
_ITEM_ANCHOR_RE = re.compile(
    r"<a\b[^>]*class=(?:\"[^\"]*\bitemname\b[^\"]*\"|'[^']*\bitemname\b[^']*')[^>]*"
    r"href=(?:\"([^\"]+)\"|'([^']+)')[^>]*>([\s\S]*?)</a>",
    re.IGNORECASE)


def drop_table(html):
    m = _DROP_TITLE_RE.search(html or "")
    if not m:
        return None
    table = _TABLE_RE.search(html, m.end())
    if table:
        return table.group(0)


def _quantity(segment):
    small = soup_fragment(segment).find(class_="itemQuantity")
    if small is not None:
        return tag_text(small) or None


def parse_possible_drops(html):
    """Parse the Possible Drops table of a pal page.

    The table is segmented at each item anchor rather than by row, so rows
    holding several items and rows with broken <tr> markup both work. Each
    segment runs from one anchor to the next.
    """
    table = drop_table(html)
    if not table:
        return []
    anchors = list(_ITEM_ANCHOR_RE.finditer(table))
    drops = []
    for i, m in enumerate(anchors):
        slug = paldb_slug(m.group(1) or m.group(2) or "")
        if not slug:
            continue
        inner = m.group(3)
        end = anchors[i + 1].start() if i + 1 < len(anchors) else len(table)
        segment = table[m.start():end]
        drop = {
            "item_name": clean_text(inner) or slug,
            "item_slug": slug,
        }
        icon = abs_img_url(inner) or abs_img_url(segment)
        if icon:
            drop["icon_url"] = icon
        quantity = _quantity(segment)
        if quantity:
            drop["quantity_text"] = quantity
        probability = last_percent(clean_text(segment))
        if probability:
            drop["probability_text"] = probability
        drops.append(drop)
    return dedup_rows(drops, DROP_FIELDS)

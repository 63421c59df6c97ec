import os
import re
import sys
from universal.utils import first_match, first_of, all_matches, clean_key, dedup, soup_fragment, tag_text
from universal.files import output_struct
from paldb.constants import WORK_SUITABILITY_NAMES
from paldb.links import abs_url, detail_url
from paldb.pal import parse_number_raw
from paldb.schema import validate_against_schema

MAX_ELEMENTS = 3
FALLBACK_WINDOW = 900

_PAL_ANCHOR = 'id="Pal"'
_COL_RE = re.compile(r"<div\s+class=[\"']col[\"'][^>]*>", re.IGNORECASE)
_NUMBER_RES = [
    re.compile(r"<span[^>]*>\s*#\s*([0-9]{1,4}[A-Za-z]?)\s*</span>", re.IGNORECASE),
    re.compile(r"#\s*([0-9]{1,4}[A-Za-z]?)", re.IGNORECASE),
]
_ICON_RES = [
    re.compile(r"<img[^>]+src=\"(https?://cdn\.paldb\.cc/[^\"]+/Pal/Texture/PalIcon/[^\"]+\.(?:png|jpg|jpeg|webp))\"",
               re.IGNORECASE),
    re.compile(r"<img[^>]+src=\"(https?://cdn\.paldb\.cc/[^\"]+PalIcon[^\"]+\.(?:png|jpg|jpeg|webp))\"",
               re.IGNORECASE),
    re.compile(r"<img[^>]+src=\"(https?://cdn\.paldb\.cc/[^\"]+\.(?:png|jpg|jpeg|webp))\"", re.IGNORECASE),
]
_TOOLTIP_RE = re.compile(r"data-bs-title=\"([^\"]+)\"", re.IGNORECASE)
_ELEMENT_RE = re.compile(r"palstatus_element_[^>]*>[\s\S]*?<span[^>]*>\s*([^<]+)\s*</span>",
                         re.IGNORECASE)
_FALLBACK_ANCHOR_RE = re.compile(
    r"<a[^>]+class=\"itemname\"[^>]+href=\"([^\"]+)\"[^>]*>([^<]+)</a>", re.IGNORECASE)


def _is_list_slug(slug):
    return slug and "/" not in slug and not slug.startswith("#") \
        and "javascript" not in slug.lower()


def _column_blocks(html):
    starts = [m.start() for m in _COL_RE.finditer(html)]
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else len(html)
        yield html[start:end]


def _is_work_title(title):
    low = title.lower()
    for name in WORK_SUITABILITY_NAMES:
        if name in low:
            return True
    return False


def _elements(block):
    titles = [t for t in all_matches(block, _TOOLTIP_RE) if not _is_work_title(t)]
    titles.extend(all_matches(block, _ELEMENT_RE))
    return dedup([clean_key(t) for t in titles])[:MAX_ELEMENTS]


def _icon(block):
    img = soup_fragment(block).find("img", class_="size64")
    if img is not None:
        for attr in ("src", "data-src"):
            if img.get(attr):
                return abs_url(img[attr])
    icon = first_of(block, _ICON_RES)
    if icon:
        return abs_url(icon)


def _list_item(slug, name, marker):
    number, number_raw = parse_number_raw(marker)
    item = {"id": slug, "name": clean_key(name), "number": number}
    if number_raw:
        item["number_raw"] = number_raw
    item["url"] = detail_url(slug)
    return item


def parse_pal_list(html):
    """Parse the Paldeck list page into pal list entries.

    Entries are sorted by number (pals without one last), then by the raw
    number so that 5 sorts before 5B, then by name.
    """
    if not html:
        return []
    start = html.find(_PAL_ANCHOR)
    page = html[start:] if start >= 0 else html
    items = []
    seen = set()
    for block in _column_blocks(page):
        anchor = soup_fragment(block).find("a", class_="itemname", href=True)
        if anchor is None:
            continue
        slug = anchor["href"].strip()
        name = tag_text(anchor)
        if not name or not _is_list_slug(slug) or slug in seen:
            continue
        item = _list_item(slug, name, first_of(block, _NUMBER_RES))
        icon = _icon(block)
        if icon:
            item["icon_url"] = icon
        item["elements"] = _elements(block)
        items.append(item)
        seen.add(slug)

    if not items:
        for m in _FALLBACK_ANCHOR_RE.finditer(page):
            slug = m.group(1).strip()
            name = m.group(2).strip()
            if not name or not _is_list_slug(slug) or slug in seen:
                continue
            window = page[m.start():m.start() + FALLBACK_WINDOW]
            item = _list_item(slug, name, first_match(window, _NUMBER_RES[1]))
            item["elements"] = []
            items.append(item)
            seen.add(slug)

    return sorted(items, key=lambda i: (i["number"] or 999999, i.get("number_raw") or "", i["name"]))


def parse_deck(filename, options):
    basename = os.path.basename(filename)
    if not options.stdout:
        sys.stderr.write("%s\n" % basename)
    with open(filename, encoding="utf-8") as fp:
        html = fp.read()
    return output_deck(html, options)


def output_deck(html, options):
    items = parse_pal_list(html)
    if not options.skip_schema:
        validate_against_schema(items, "pal_list.schema.json")
    output_struct(items, options, "pal_list", options.slug or "pals")
    return items

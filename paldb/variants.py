import re
from universal.utils import clean_key, clean_text, soup_fragment
from universal.tables import split_table_rows, split_cells
from universal.universal import table_after_heading
from paldb.links import abs_img_url

VARIANT_KINDS = [
    "normal", "boss", "rampaging", "predator", "tower", "raid", "subspecies", "unknown"]

SLUG_PREFIX_KINDS = [
    ("rampaging_", "rampaging"),
    ("predator_", "predator"),
    ("tower_", "tower"),
    ("raid_", "raid"),
]

SUBSPECIES_HINTS = [
    "_noct", "_ignis", "_cryst", "_terra", "_aqua", "_lux", "_botan", "_inferno"]

_ROLE_AFTER_ANCHOR_RE = re.compile(r"</a>\s*</td>\s*<td[^>]*>\s*([^<]+)", re.IGNORECASE)


def infer_variant_kind(slug, tribe_label=None):
    s = slug.lower()
    label = (tribe_label or "").lower()
    for prefix, kind in SLUG_PREFIX_KINDS:
        if s.startswith(prefix):
            return kind
    if "tribe boss" in label:
        return "boss"
    if "hunter_of_the_" in s or "_boss_" in s or s.startswith("boss_"):
        return "boss"
    for hint in SUBSPECIES_HINTS:
        if hint in s:
            return "subspecies"
    if "tribe normal" in label:
        return "normal"
    return "unknown"


def _variant_slug(href):
    # Variant links may be nested paths; the slug is the last path segment.
    path = (href or "").strip().split("#")[0].split("?")[0]
    segments = [seg for seg in path.split("/") if seg]
    if segments:
        return clean_key(segments[-1])
    return ""


def parse_variant_row(row_html):
    anchor = soup_fragment(row_html).find("a", href=True)
    if anchor is None:
        return None
    slug = _variant_slug(anchor["href"])
    if not slug:
        return None
    name = clean_text(str(anchor)) or slug.replace("_", " ")
    cells = split_cells(row_html)
    label = None
    m = _ROLE_AFTER_ANCHOR_RE.search(row_html)
    if m:
        label = clean_key(m.group(1).replace("&nbsp;", " "))
    elif len(cells) > 1:
        label = clean_text(cells[1])
    variant = {"slug": slug, "name": name}
    icon = abs_img_url(row_html)
    if icon:
        variant["icon_url"] = icon
    if label:
        variant["tribe_label"] = label
    variant["kind"] = infer_variant_kind(slug, label)
    return variant


def parse_pal_variants(html):
    """Every variant listed in a pal page's Tribes table, in table order.

    Variants are deduplicated by slug.
    """
    table = table_after_heading(html, "Tribes")
    if not table:
        return []
    variants = []
    seen = set()
    for row in split_table_rows(table):
        variant = parse_variant_row(row)
        if variant is None:
            continue
        key = variant["slug"].lower()
        if key in seen:
            continue
        seen.add(key)
        variants.append(variant)
    return variants

import re
from universal.utils import clean_text, clean_key, soup_fragment, tag_text, first_match
from universal.tables import split_table_rows, split_cells, dedup_rows
from paldb.constants import TRIBE_BOSS
from paldb.links import abs_url, abs_img_url, paldb_slug

TRIBE_FIELDS = ["pal_slug", "pal_name", "tribe_role"]
SPAWNER_FIELDS = ["pal_slug", "level_range", "source_text"]

_UNIQUE_COMBO_RE = re.compile(r"Unique\s*Combo|\u7368\u7279\u914d\u7a2e", re.IGNORECASE)
_COUNT_RE = re.compile(r"\((\d{1,6})\)")
_IMG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)


def _first_href(html):
    a = soup_fragment(html).find("a", href=True)
    if a is not None:
        return a["href"]
    return ""


def _loose_text(html):
    return clean_key(clean_text(html).replace("_", " "))


def pal_ref(anchor):
    """{pal_slug, pal_name, icon_url?} for an item anchor, None without slug or name."""
    slug = paldb_slug(anchor.get("href"))
    name = clean_text(_IMG_RE.sub(" ", str(anchor)))
    if not slug or not name:
        return None
    ref = {"pal_slug": slug, "pal_name": name}
    icon = abs_img_url(anchor)
    if icon:
        ref["icon_url"] = icon
    return ref


def parse_tribes_table(table_html):
    tribes = []
    for row in split_table_rows(table_html):
        cells = split_cells(row)
        if len(cells) < 2:
            continue
        slug = paldb_slug(_first_href(row))
        name = clean_text(cells[0])
        role = clean_text(cells[1])
        if not slug or not name or not role:
            continue
        tribe = {"pal_slug": slug, "pal_name": name}
        icon = abs_img_url(cells[0])
        if icon:
            tribe["icon_url"] = icon
        tribe["tribe_role"] = role
        tribes.append(tribe)
    return dedup_rows(tribes, TRIBE_FIELDS)


def is_alpha_from_tribes(tribes):
    for tribe in tribes or []:
        if tribe.get("tribe_role", "").lower() == TRIBE_BOSS.lower():
            return True
    return False


def _locations(cell_html):
    locations = []
    for a in soup_fragment(cell_html).find_all("a", href=True):
        slug = paldb_slug(a["href"])
        name = clean_key(tag_text(a).replace("_", " "))
        if slug and name:
            locations.append({"slug": slug, "name": name})
    return locations


def parse_spawner_table(table_html):
    spawner = []
    for row in split_table_rows(table_html):
        cells = split_cells(row)
        if len(cells) < 3:
            continue
        slug = paldb_slug(_first_href(cells[0]))
        name = clean_text(cells[0])
        level_range = _loose_text(cells[1])
        source_text = _loose_text(cells[2])
        if not slug or not name or not level_range or not source_text:
            continue
        entry = {"pal_slug": slug, "pal_name": name}
        icon = abs_img_url(cells[0])
        if icon:
            entry["icon_url"] = icon
        entry["level_range"] = level_range
        entry["source_text"] = source_text
        locations = _locations(cells[2])
        if locations:
            entry["locations"] = locations
        spawner.append(entry)
    return dedup_rows(spawner, SPAWNER_FIELDS)


def parse_unique_combo(card_html):
    """Read the two parents and the child of a unique breeding combination.

    The first three item anchors after the "Unique Combo" marker are parent,
    parent, child.
    """
    if not card_html:
        return None
    m = _UNIQUE_COMBO_RE.search(card_html)
    if not m:
        return None
    anchors = soup_fragment(card_html[m.start():]).find_all("a", class_="itemname")
    if len(anchors) < 3:
        return None
    refs = []
    for anchor in anchors[:3]:
        ref = pal_ref(anchor)
        if ref is None:
            return None
        refs.append(ref)
    return {"parents": [refs[0], refs[1]], "child": refs[2]}


def _habitat_period(anchor_html, href):
    h = ("%s %s" % (anchor_html, href)).lower()
    if "daytimelocations" in h:
        return "day"
    if "nighttimelocations" in h:
        return "night"
    if "timezone_daytime" in h:
        return "day"
    if "timezone_night" in h:
        return "night"
    if re.search(r"\bday\b", h):
        return "day"
    if re.search(r"\bnight\b", h):
        return "night"
    return None


def parse_habitat(card_html):
    if not card_html:
        return None
    habitat = {}
    for a in soup_fragment(card_html).find_all("a", href=True):
        href = a["href"].strip()
        if not href:
            continue
        period = _habitat_period(str(a), href)
        if not period:
            continue
        count = first_match(tag_text(a), _COUNT_RE)
        habitat[period] = {
            "count": int(count) if count else None,
            "map_url": abs_url(href),
        }
    return habitat or None

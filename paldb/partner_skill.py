import re
from universal.utils import (
    first_match, clean_key, clean_text, soup_fragment, tag_text, has_class, has_name,
    is_tag_named, get_text)
from universal.tables import (
    find_tables, split_table_rows, split_cells, split_row_cells, parse_level_from_row,
    last_percent)
from universal.universal import parse_document, best_card_containing
from paldb.links import abs_url, abs_img_url, paldb_slug

PARTNER_SKILL = "Partner Skill"

_TABLE_OPEN_RE = re.compile(r"<table\b[^>]*>", re.IGNORECASE)
_CLASS_ATTR_RE = re.compile(r"\bclass=(?:\"([^\"]*)\"|'([^']*)')", re.IGNORECASE)
_ITEM_I18N_RE = re.compile(r"data-i18n-tw\s*=\s*[\"'](?:\u7269\u54c1|Item)[\"']", re.IGNORECASE)
_ITEM_HEADER_RE = re.compile(r"<th[^>]*>\s*Item\b", re.IGNORECASE)
_PERCENT_RE = re.compile(r"\d+(?:\.\d+)?%")
_SIGNED_PERCENT_RE = re.compile(r"([+-]?\d+(?:\.\d+)?%)")
_LEADING_NUMBER_RE = re.compile(r"^\s*\d+\s*")
_FLEX_GROW_RE = re.compile(r"<div[^>]*class=[\"'][^\"']*\bflex-grow-1\b[^\"']*[\"'][^>]*>", re.IGNORECASE)
_FLEX_END_RE = re.compile(r"<div[^>]*class=[\"']mt-4\s+ps-2[\"'][^>]*>", re.IGNORECASE)
_CARD_TITLE_RE = re.compile(r"<h5\b[^>]*class=[\"']card-title\b", re.IGNORECASE)
_TECH_NUMBER_RES = [
    re.compile(r"Technology</span>\s*<span[^>]*>\s*([0-9]{1,4})\s*</span>", re.IGNORECASE),
    re.compile(r"Technology[\s\S]*?([0-9]{1,4})", re.IGNORECASE),
]
_NAME_RES = [
    re.compile(r"<h5[^>]*>\s*<span>\s*Partner Skill\s*</span>\s*:\s*([^<]+)\s*</h5>", re.IGNORECASE),
    re.compile(r"Partner Skill[\s\S]*?<span[^>]*class=[\"']ms-2[\"'][^>]*>\s*([^<]+)\s*</span>",
               re.IGNORECASE),
]
_LEVEL_RE = re.compile(r"Partner Skill[\s\S]*?</span>\s*Lv\.?\s*([0-9]+)", re.IGNORECASE)
_LOOSE_DESC_RE = re.compile(
    r"Partner Skill[\s\S]*?<div[^>]*class=[\"']flex-grow-1[^\"']*[\"'][^>]*>([\s\S]*?)</div>",
    re.IGNORECASE)
_LOOSE_ACTIVE_RE = re.compile(
    r"Partner Skill[\s\S]*?(<table[^>]*class=[\"'][^\"']*\bactive\b[^\"']*[\"'][\s\S]*?</table>)",
    re.IGNORECASE)
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([.,;!?])")


def _is_card(tag):
    return is_tag_named(tag, ["div"]) and has_class(tag, "card")


def _is_partner_skill_title(tag):
    if not has_name(tag, "h5") or not has_class(tag, "card-title"):
        return False
    for span in tag.find_all("span"):
        if clean_key(get_text(span)) == PARTNER_SKILL:
            return True
    return False


def locate_partner_skill_card(html, doc=None, primary=None):
    """Return the markup of the Partner Skill card, or None.

    The titled card is taken together with any siblings that follow it up to
    the next card, since the skill tables are sometimes rendered outside the
    card itself. When that yields no table the card scorer decides.
    """
    soup = parse_document(html if doc is None else doc)
    h5 = soup.find(_is_partner_skill_title)
    if h5 is not None:
        card = h5.find_parent(_is_card)
        if card is not None:
            parts = [str(card)]
            for sibling in card.next_siblings:
                if getattr(sibling, "name", None) and _is_card(sibling):
                    break
                parts.append(str(sibling))
            fragment = "".join(parts)
            if PARTNER_SKILL.lower() in fragment.lower() and "<table" in fragment.lower():
                return fragment
    card = best_card_containing(html, PARTNER_SKILL, primary)
    if card is not None:
        return card.html
    return None


def _table_classes(table_html):
    m = _TABLE_OPEN_RE.search(table_html)
    if not m:
        return []
    attr = _CLASS_ATTR_RE.search(m.group(0))
    if not attr:
        return []
    return (attr.group(1) or attr.group(2) or "").split()


def classify_table(table_html):
    """"passive", "active", "item" or None, decided by markup, never by position."""
    classes = _table_classes(table_html)
    if "passive" in classes:
        return "passive"
    if "active" in classes:
        return "active"
    if _ITEM_I18N_RE.search(table_html) or _ITEM_HEADER_RE.search(table_html):
        return "item"
    soup = soup_fragment(table_html)
    if soup.find(class_="itemname") is not None:
        if soup.find(class_="itemQuantity") is not None or _PERCENT_RE.search(table_html):
            return "item"
    return None


def parse_passive_effects(table_html):
    effects = []
    for row in split_table_rows(table_html):
        level = parse_level_from_row(row)
        if not level:
            continue
        span = soup_fragment(row).find("span", class_=["negative", "positive"])
        value = tag_text(span) if span is not None else None
        if not value:
            value = first_match(clean_text(row), _SIGNED_PERCENT_RE)
        description = _LEADING_NUMBER_RE.sub("", clean_text(row)).strip()
        if not description:
            continue
        effect = {"level": level, "description": description}
        if value:
            effect["value"] = value
        effects.append(effect)
    return effects


def active_table_headers(table_html):
    header_row = next((row for row in split_table_rows(table_html)
                       if re.search(r"<th\b", row, re.IGNORECASE)), "")
    headers = [clean_text(th) for th in split_cells(header_row, "th")]
    headers = [h for h in headers if h]
    if headers and headers[0].lower().replace(".", "") in ("lv", "level"):
        headers = headers[1:]
    return headers


def parse_active_stats(table_html):
    """Per-level stat rows of an active partner skill table.

    Cell N of a row is keyed by header N-1 (the first cell is the level).
    When several rows claim the same level the last one is kept.
    """
    headers = active_table_headers(table_html)
    if not headers:
        return []
    by_level = {}
    for row in split_table_rows(table_html):
        if not re.search(r"<td\b", row, re.IGNORECASE):
            continue
        cells = [clean_text(cell) for cell in split_row_cells(row)]
        if len(cells) < 2:
            continue
        digits = first_match(cells[0], r"([0-9]+)")
        level = int(digits) if digits and int(digits) > 0 else parse_level_from_row(row)
        if not level:
            continue
        values = {}
        for i, cell in enumerate(cells[1:]):
            key = headers[i] if i < len(headers) else "value%s" % (i + 1)
            values[key] = cell
        by_level[level] = {"level": level, "values": values}
    return [by_level[level] for level in sorted(by_level)]


def parse_ranch_drops(table_html):
    drops = []
    for row in split_table_rows(table_html):
        level = parse_level_from_row(row)
        if not level:
            continue
        soup = soup_fragment(row)
        icon = abs_img_url(soup)
        anchor = soup.find("a", class_="itemname")
        item = clean_text(re.sub(r"<img\b[^>]*>", " ", str(anchor))) if anchor is not None else ""
        if not item or not icon:
            continue
        amount = tag_text(soup.find("small", class_="itemQuantity"))
        probability = tag_text(soup.find("span", class_="float-end"))
        if not probability:
            probability = last_percent(clean_text(row)) or ""
        drops.append({
            "level": level,
            "item": item,
            "icon_url": icon,
            "amount": amount or "-",
            "probability": probability or "-",
        })
    return drops


def flex_grow_html(card_html):
    start = _FLEX_GROW_RE.search(card_html or "")
    if not start:
        return None
    end = _FLEX_END_RE.search(card_html, start.start())
    if end and end.start() > start.start():
        return card_html[start.start():end.start()]
    end = _CARD_TITLE_RE.search(card_html, start.start() + 1)
    if end:
        return card_html[start.start():end.start()]
    return card_html[start.start():]


def parse_technology(flex_html):
    if not flex_html or not re.search("Technology", flex_html, re.IGNORECASE):
        return None
    soup = soup_fragment(flex_html)
    anchor = soup.find("a", href=True)
    if anchor is None:
        return None
    slug = paldb_slug(anchor["href"])
    if not slug:
        return None
    name = tag_text(anchor) or clean_key(slug.replace("_", " "))
    technology = {"item_slug": slug, "item_name": name}
    icon = abs_img_url(anchor) or abs_img_url(soup)
    if icon:
        technology["item_icon_url"] = icon
    for regex in _TECH_NUMBER_RES:
        number = first_match(flex_html, regex)
        if number and int(number) > 0:
            technology["technology"] = int(number)
            break
    return technology


def _is_technology_label(tag):
    return has_name(tag, "span") and clean_key(get_text(tag)) == "Technology" \
        and tag.find("span") is None


def strip_technology_block(flex_html):
    soup = soup_fragment(flex_html)
    for table in soup.find_all("table"):
        table.decompose()
    for label in soup.find_all(_is_technology_label):
        if label.decomposed:
            continue
        wrapper = label.find_parent("div")
        if wrapper is not None and not has_class(wrapper, "flex-grow-1"):
            wrapper.decompose()
            continue
        block = label.find_parent("span", class_="d-inline-block") or label
        block.decompose()
    return str(soup)


def _description(flex_html):
    text = clean_text(strip_technology_block(flex_html))
    return _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)


def _icon(card_html):
    soup = soup_fragment(card_html)
    for img in soup.find_all("img"):
        if "T_icon_skill_pal_" in (img.get("src") or ""):
            return abs_url(img["src"])
    img = soup.find("img", class_="size64")
    if img is not None:
        return abs_img_url(img)


def parse_partner_skill(html, doc=None, primary=None):
    """Collect every partner-skill field of a pal page into one dict.

    Only fields that were found are present.
    """
    struct = {}
    name = None
    for regex in _NAME_RES:
        name = first_match(html, regex)
        if name:
            break
    if name:
        struct["partner_skill_name"] = clean_key(name)
    level = first_match(html, _LEVEL_RE)
    if level:
        struct["partner_skill_level"] = "Lv %s" % level

    card_html = locate_partner_skill_card(html, doc, primary)
    if not card_html:
        loose = first_match(html, _LOOSE_DESC_RE)
        if loose:
            description = clean_text(loose)
            if description:
                struct["partner_skill_description"] = description
            technology = parse_technology(loose)
            if technology:
                struct["partner_skill_technology"] = technology
        return struct

    icon = _icon(card_html)
    if icon:
        struct["partner_skill_icon_url"] = icon
    flex_html = flex_grow_html(card_html)
    if flex_html:
        technology = parse_technology(flex_html)
        if technology:
            struct["partner_skill_technology"] = technology
        description = _description(flex_html)
        if description:
            struct["partner_skill_description"] = description

    active_table = None
    for table in find_tables(card_html):
        kind = classify_table(table)
        if kind == "passive" and "partner_skill_effects" not in struct:
            effects = parse_passive_effects(table)
            if effects:
                struct["partner_skill_effects"] = effects
        elif kind == "item" and "ranch_drops" not in struct:
            drops = parse_ranch_drops(table)
            if drops:
                struct["ranch_drops"] = drops
                struct["is_ranch_pal"] = True
        elif kind == "active" and active_table is None:
            active_table = table
    if active_table is None:
        active_table = first_match(html, _LOOSE_ACTIVE_RE)
    if active_table:
        stats = parse_active_stats(active_table)
        if stats:
            struct["partner_skill_active_stats"] = stats
    return struct

import json
import re
from urllib.parse import unquote
from universal.utils import clean_key, clean_text, soup_fragment, tag_text
from universal.tables import extract_tbody_inner, split_table_rows, split_cells
from universal.universal import parse_document
from paldb.constants import WORK_INGREDIENT_SLUG, WORK_ICON_MARKER
from paldb.links import abs_url, abs_img_url, paldb_slug
from paldb.stats import key_value_cells

_MB0_TABLE_RE = re.compile(
    r"<table\b[^>]*class=(?:\"[^\"]*\btable\b[^\"]*\bmb-0\b[^\"]*\"|'[^']*\btable\b[^']*\bmb-0\b[^']*')"
    r"[\s\S]*?</table>",
    re.IGNORECASE)
_QTY_RE = re.compile(r"([0-9][0-9,]*)")
_DASH_ENTITY_RE = re.compile(r"&ndash;|&#8211;|&#x2013;", re.IGNORECASE)
_IMG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)


def item_ref(html_or_tag):
    """{slug, name, icon_url?} for the first link in a cell, None without one."""
    if html_or_tag is None:
        return None
    node = soup_fragment(html_or_tag) if isinstance(html_or_tag, str) else html_or_tag
    anchor = node if node.name == "a" else node.find("a", href=True)
    if anchor is None or not anchor.get("href"):
        return None
    slug = paldb_slug(anchor["href"])
    if not slug:
        return None
    name = clean_text(_IMG_RE.sub(" ", str(anchor))) or slug
    ref = {"slug": slug, "name": name}
    icon = abs_img_url(anchor)
    if icon:
        ref["icon_url"] = icon
    return ref


def parse_qty_text(qty_text):
    raw = clean_key(qty_text)
    if not raw:
        return None, None
    m = _QTY_RE.search(raw)
    if not m:
        return None, raw
    return int(m.group(1).replace(",", "")), raw


def _with_qty(ref, qty_text):
    qty, raw = parse_qty_text(qty_text)
    ref["qty"] = qty
    if raw:
        ref["qty_text"] = raw
    return ref


def _quantity_text(node):
    small = node.find("small", class_="itemQuantity")
    if small is not None:
        return tag_text(small)


def loose_text(html):
    text = _DASH_ENTITY_RE.sub(" \u2013 ", html or "")
    text = clean_key(clean_text(text).replace("_", " "))
    return text or None


def parse_key_value_item_rows(card_html):
    """Stats/Others rows of an item page, keeping item links on either side."""
    rows = []
    if not card_html:
        return rows
    for left, right in key_value_cells(card_html):
        key_item = item_ref(left)
        key = clean_key(key_item["name"] if key_item else tag_text(left))
        if not key:
            continue
        row = {"key": key, "value_text": tag_text(right) or None}
        if key_item:
            row["key_item"] = key_item
        key_icon = (key_item or {}).get("icon_url") or abs_img_url(left)
        if key_icon:
            row["key_icon_url"] = key_icon
        value_item = item_ref(right)
        if value_item:
            row["value_item"] = value_item
        rows.append(row)
    return rows


def _dedup_by_slug(refs):
    seen = set()
    retval = []
    for ref in refs:
        if ref["slug"] in seen:
            continue
        seen.add(ref["slug"])
        retval.append(ref)
    return retval


def parse_item_links(html):
    refs = []
    for anchor in soup_fragment(html).find_all("a", class_="itemname", href=True):
        ref = item_ref(anchor)
        if ref:
            refs.append(ref)
    return _dedup_by_slug(refs)


def extract_first_mb0_table(block):
    m = _MB0_TABLE_RE.search(block or "")
    if m:
        return m.group(0)


def _table_rows(table_html):
    tbody = extract_tbody_inner(table_html)
    if not tbody:
        return []
    return [split_cells(row) for row in split_table_rows(tbody)]


def _is_plain_span(tag):
    return tag.name == "span" and not tag.attrs


def _work_icon(span):
    for img in span.find_all("img"):
        src = img.get("src") or ""
        if WORK_ICON_MARKER in src:
            return src


def parse_materials_cell(cell_html):
    materials = []
    for span in soup_fragment(cell_html).find_all(_is_plain_span):
        anchor = span.find("a", class_="itemname", href=True)
        if anchor is not None:
            ref = item_ref(anchor)
            if ref:
                materials.append(_with_qty(ref, _quantity_text(span)))
            continue
        icon = _work_icon(span)
        if icon:
            work = {"slug": WORK_INGREDIENT_SLUG, "name": "Work", "icon_url": abs_url(icon)}
            materials.append(_with_qty(work, _quantity_text(span)))
    return _dedup_by_slug(materials)


def parse_product_cell(cell_html):
    node = soup_fragment(cell_html)
    ref = item_ref(node)
    if ref:
        return _with_qty(ref, _quantity_text(node))


def parse_recipe_table(table_html):
    recipes = []
    for cells in _table_rows(table_html):
        if len(cells) < 2:
            continue
        recipes.append({
            "materials": parse_materials_cell(cells[0]),
            "product": parse_product_cell(cells[1]),
            "schematic_text": clean_text(cells[2]) if len(cells) > 2 and clean_text(cells[2]) else None,
        })
    return recipes


def is_work_ingredient(material):
    if material.get("slug") == WORK_INGREDIENT_SLUG:
        return True
    return WORK_ICON_MARKER in (material.get("icon_url") or "")


def filter_out_work(recipes):
    """Drop the Work pseudo-ingredient; rows left with nothing at all go too."""
    retval = []
    for recipe in recipes:
        materials = [m for m in recipe.get("materials", []) if not is_work_ingredient(m)]
        if not materials and recipe.get("product") is None and not recipe.get("schematic_text"):
            continue
        recipe = dict(recipe)
        recipe["materials"] = materials
        retval.append(recipe)
    return retval


def parse_dropped_by_table(table_html):
    rows = []
    for cells in _table_rows(table_html):
        if len(cells) < 3:
            continue
        rows.append({
            "pal": item_ref(cells[0]),
            "qty_text": clean_text(cells[1]) or None,
            "probability_text": clean_text(cells[2]) or None,
        })
    return rows


def parse_treasure_box_table(table_html):
    rows = []
    for cells in _table_rows(table_html):
        if len(cells) < 2:
            continue
        qty_text = _quantity_text(soup_fragment(cells[0]))
        rows.append({
            "item": item_ref(cells[0]),
            "qty_text": loose_text(qty_text) if qty_text else None,
            "source_text": loose_text(cells[1]),
        })
    return rows


def parse_merchant_table(table_html):
    rows = []
    for cells in _table_rows(table_html):
        if len(cells) < 2:
            continue
        rows.append({
            "item": item_ref(cells[0]),
            "source_text": loose_text(cells[1]),
        })
    return rows


def _treant_name(slug):
    if not slug:
        return None
    last = [seg for seg in slug.split("/") if seg]
    base = re.sub(r"[#?].*$", "", last[-1] if last else slug)
    name = clean_key(unquote(base).replace("_", " "))
    return name or None


def _treant_qty(value):
    try:
        return float(value) if "." in str(value) else int(value)
    except (TypeError, ValueError):
        return None


def _treant_node(node):
    if not isinstance(node, dict):
        node = {}
    link = node.get("link") if isinstance(node.get("link"), dict) else {}
    href = link.get("href") or link.get("url")
    slug = clean_key(href) or None
    text = node.get("text") if isinstance(node.get("text"), dict) else {}
    image = node.get("image")
    children = node.get("children") if isinstance(node.get("children"), list) else []
    return {
        "slug": slug,
        "name": _treant_name(slug),
        "icon_url": abs_url(image) if image else None,
        "qty": _treant_qty(text.get("name")),
        "children": [_treant_node(child) for child in children],
    }


def parse_treant(html):
    """Crafting tree from the page's data-treant JSON attribute, None if absent or unreadable."""
    if not html:
        return None
    node = parse_document(html).find(attrs={"data-treant": True})
    if node is None:
        return None
    raw = node["data-treant"].strip()
    if not raw:
        return None
    try:
        tree = json.loads(raw)
    except ValueError:
        return None
    return _treant_node(tree)


def card_table(card, parse):
    if card is None:
        return []
    table = extract_first_mb0_table(card.html)
    if table:
        return parse(table)
    return []

import os
import re
import sys
from universal.utils import first_match, first_of, clean_key, soup_fragment, to_plain_text, is_tag_named
from universal.universal import extract_cards, find_card, parse_document
from universal.files import output_struct
from paldb.links import abs_url
from paldb.detail_kit import (
    card_table, parse_key_value_item_rows, parse_item_links, parse_recipe_table,
    parse_dropped_by_table, parse_treasure_box_table, parse_merchant_table,
    parse_treant, extract_first_mb0_table)
from paldb.schema import validate_against_schema

_TITLE_RE = re.compile(r"<title>\s*([^<]+?)\s*</title>", re.IGNORECASE)
_H2_RE = re.compile(r"<h2\b[^>]*>\s*([^<]+?)\s*</h2>", re.IGNORECASE)
_INVENTORY_ICON_RES = [
    re.compile(r"<img\b[^>]*\bsrc=\"([^\"]+InventoryItemIcon[^\"]+)\"", re.IGNORECASE),
    re.compile(r"<img\b[^>]*\bsrc='([^']+InventoryItemIcon[^']+)'", re.IGNORECASE),
    re.compile(r"(https?://cdn\.paldb\.cc/[^\"'\s<>]+T_itemicon_[^\"'\s<>]+\.(?:png|jpg|jpeg|webp))",
               re.IGNORECASE),
]
_DESCRIPTION_RE = re.compile(
    r"<div\b[^>]*class=[\"']card-body[^\"']*[\"'][^>]*>\s*<div>([\s\S]*?)</div>\s*</div>",
    re.IGNORECASE)
_PRODUCED_AT_CLASSES = ["row", "row-cols-1", "row-cols-lg-2", "g-2"]


def _item_name(html, slug):
    name = first_match(html, _H2_RE)
    if not name:
        title = first_match(html, _TITLE_RE)
        if title:
            name = title.split(" - ")[0]
    return clean_key(name) or slug


def _meta(doc, *keys):
    for key in keys:
        tag = doc.find("meta", attrs={"property": key}) or doc.find("meta", attrs={"name": key})
        if tag is not None and clean_key(tag.get("content")):
            return clean_key(tag["content"])


def _item_icon(doc, html):
    icon = _meta(doc, "og:image")
    if icon:
        return abs_url(icon)
    img = doc.find("img", class_="size128")
    if img is not None:
        for attr in ("src", "data-src"):
            if img.get(attr):
                return abs_url(img[attr])
    icon = first_of(html, _INVENTORY_ICON_RES)
    if icon:
        return abs_url(icon)


def _item_description(doc, html):
    description = _meta(doc, "og:description", "description")
    if description:
        return description
    body = first_match(html, _DESCRIPTION_RE)
    if body:
        return to_plain_text(body) or None


def _is_produced_at_row(tag):
    classes = tag.get("class") or []
    return is_tag_named(tag, ["div"]) and all(c in classes for c in _PRODUCED_AT_CLASSES)


def _produced_at(card):
    row = soup_fragment(card.html).find(_is_produced_at_row)
    if row is None:
        return []
    return parse_item_links(str(row))


def parse_item_detail(html, slug):
    """Build the item record for one item page.

    Cards that are missing contribute no field. Only an empty document is an
    error.
    """
    if not isinstance(html, str) or not html.strip():
        raise ValueError("Empty document for item %s" % slug)
    doc = parse_document(html)
    struct = {"id": slug, "name": _item_name(html, slug)}
    icon_url = _item_icon(doc, html)
    if icon_url:
        struct["icon_url"] = icon_url
    description = _item_description(doc, html)
    if description:
        struct["description"] = description

    cards = extract_cards(html, doc)
    for title, key in (("stats", "stats"), ("others", "others")):
        card = find_card(cards, title)
        if card is not None:
            _add(struct, key, parse_key_value_item_rows(card.html))

    production = find_card(cards, "production")
    if production is not None:
        _add(struct, "produced_at", _produced_at(production))
        table = extract_first_mb0_table(production.html)
        if table:
            _add(struct, "production", parse_recipe_table(table))
    _add(struct, "crafting_materials",
         card_table(find_card(cards, "crafting materials"), parse_recipe_table))
    _add(struct, "dropped_by",
         card_table(find_card(cards, "dropped by"), parse_dropped_by_table))
    _add(struct, "treasure_box",
         card_table(find_card(cards, "treasure box"), parse_treasure_box_table))
    _add(struct, "wandering_merchant",
         card_table(find_card(cards, "wandering merchant"), parse_merchant_table))
    _add(struct, "treant", parse_treant(html))
    return struct


def _add(struct, key, value):
    if value:
        struct[key] = value


def parse_item(filename, options):
    basename = os.path.basename(filename)
    if not options.stdout:
        sys.stderr.write("%s\n" % basename)
    slug = options.slug or os.path.splitext(basename)[0]
    with open(filename, encoding="utf-8") as fp:
        html = fp.read()
    return output_item(html, slug, options)


def output_item(html, slug, options):
    struct = parse_item_detail(html, slug)
    if not options.skip_schema:
        validate_against_schema(struct, "item_detail.schema.json")
    output_struct(struct, options, "item", struct["id"])
    return struct

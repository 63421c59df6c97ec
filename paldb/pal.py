import os
import re
import sys
from universal.utils import first_match, first_of, all_matches, clean_key, dedup, tag_text
from universal.universal import (
    parse_document, extract_primary_cards, extract_fallback_cards, find_card, best_card_containing,
    table_after_heading)
from universal.files import output_struct
from paldb.constants import YOUTUBE_THUMBNAIL
from paldb.links import abs_url, breed_url
from paldb.drops import parse_possible_drops
from paldb.skills import parse_active_skills
from paldb.partner_skill import parse_partner_skill
from paldb.variants import parse_pal_variants
from paldb.relations import (
    parse_tribes_table, parse_spawner_table, is_alpha_from_tribes,
    parse_unique_combo, parse_habitat)
from paldb.stats import (
    parse_key_value_map, parse_key_value_rows, parse_summary,
    parse_work_suitability, derive_food)
from paldb.schema import validate_against_schema

_NUMBER_RES = [
    re.compile(r"<span[^>]*class=[\"']text-white-50[\"'][^>]*>\s*#\s*([0-9]{1,4}[A-Za-z]?)\s*</span>",
               re.IGNORECASE),
    re.compile(r"<span[^>]*>\s*#\s*([0-9]{1,4}[A-Za-z]?)\s*</span>", re.IGNORECASE),
]
_NUMBER_RAW_RE = re.compile(r"#?\s*([0-9]{1,4}[A-Za-z]?)")
_ELEMENT_RE = re.compile(r"palstatus_element_[^>]*>[\s\S]*?<span[^>]*>\s*([^<]+)\s*</span>",
                         re.IGNORECASE)
_ICON_RES = [
    re.compile(r"<img[^>]+src=\"(https?://cdn\.paldb\.cc/[^\"]+/Pal/Texture/PalIcon/[^\"]+\.(?:png|jpg|jpeg|webp))\"",
               re.IGNORECASE),
    re.compile(r"<img[^>]+src=\"(https?://cdn\.paldb\.cc/[^\"]+PalIcon[^\"]+\.(?:png|jpg|jpeg|webp))\"",
               re.IGNORECASE),
]
_HOVER_RES = [
    re.compile(r"data-hover=\"([^\"]+/cache/[^\"]+Game_Pals_hover/[^\"]+)\"", re.IGNORECASE),
    re.compile(r"data-hover=\"(/cache/[^\"]+Game_Pals_hover/[^\"]+)\"", re.IGNORECASE),
]
_DIRECT_IMAGE_RES = [
    re.compile(r"(https?://paldb\.cc/[^\"']+\.(?:png|jpg|jpeg|webp))", re.IGNORECASE),
    re.compile(r"(/[^\"'\s<>]+\.(?:png|jpg|jpeg|webp))", re.IGNORECASE),
]
_VIDEO_RE = re.compile(r"data-video-id=[\"']([^\"']+)[\"']", re.IGNORECASE)
_TRIBES_TITLE = r"<h5[^>]*class=[\"']card-title[^\"']*text-info[^\"']*[\"'][^>]*>\s*Tribes\s*</h5>"
_SPAWNER_TITLE = r"<h5[^>]*class=[\"']card-title[^\"']*text-info[^\"']*[\"'][^>]*>\s*Spawner\s*</h5>"


def parse_number_raw(marker):
    """"#5B" -> (5, "5B"); (0, None) when there is no number."""
    m = _NUMBER_RAW_RE.search(clean_key(marker))
    if not m:
        return 0, None
    raw = m.group(1)
    return int(re.match(r"[0-9]+", raw).group(0)), raw


def _pal_name(doc):
    for a in doc.find_all("a", class_="itemname", href=True):
        if a.find(True) is not None:
            continue
        name = tag_text(a)
        if name:
            return name


def _image_url(html):
    hover = first_of(html, _HOVER_RES)
    if hover:
        return abs_url(hover)
    direct = first_of(html, _DIRECT_IMAGE_RES)
    if direct:
        return abs_url(direct)


def _relation_table(html, cards, primary, title, title_pattern, parse):
    card = find_card(cards, title.lower())
    if card is not None:
        rows = parse(table_after_heading(card.html, title))
        if rows:
            return rows
    for pattern in (title_pattern, title):
        card = best_card_containing(html, pattern, primary)
        if card is None:
            continue
        rows = parse(table_after_heading(card.html, title))
        if rows:
            return rows
    return []


def _card_map(cards, title):
    card = find_card(cards, title)
    if card is not None:
        return parse_key_value_map(card.html)


def parse_pal_detail(html, slug):
    """Build the pal record for one pal page.

    Every section is optional: a section that cannot be found contributes no
    field. Only an empty document is an error.
    """
    if not isinstance(html, str) or not html.strip():
        raise ValueError("Empty document for pal %s" % slug)
    doc = parse_document(html)
    primary = extract_primary_cards(doc)
    cards = primary or extract_fallback_cards(html)
    struct = {"id": slug}
    struct["name"] = _pal_name(doc) or slug
    number, number_raw = parse_number_raw(first_of(html, _NUMBER_RES))
    struct["number"] = number
    if number_raw:
        struct["number_raw"] = number_raw
    struct["elements"] = dedup([clean_key(e) for e in all_matches(html, _ELEMENT_RE)])
    image_url = _image_url(html)
    if image_url:
        struct["image_url"] = image_url
    icon_url = first_of(html, _ICON_RES)
    if icon_url:
        struct["icon_url"] = abs_url(icon_url)

    summary = parse_summary(html)
    if summary:
        struct["summary"] = summary
    video = first_match(html, _VIDEO_RE)
    if video:
        struct["partner_skill_video"] = {
            "id": video, "thumbnail": YOUTUBE_THUMBNAIL % video}
    _add(struct, "possible_drops", parse_possible_drops(html))
    struct.update(parse_partner_skill(html, doc, primary))
    _add(struct, "work_suitability", parse_work_suitability(html))
    _add(struct, "active_skills", parse_active_skills(html))

    stats = _card_map(cards, "stats")
    _add(struct, "stats", stats)
    stats_card = find_card(cards, "stats")
    if stats_card is not None:
        _add(struct, "stats_rows", parse_key_value_rows(stats_card.html))
    _add(struct, "movement", _card_map(cards, "movement"))
    _add(struct, "level65", _card_map(cards, "level 65"))
    others = _card_map(cards, "others")
    _add(struct, "others", others)
    _add(struct, "food", derive_food(stats, others))

    tribes = _relation_table(html, cards, primary, "Tribes", _TRIBES_TITLE, parse_tribes_table)
    _add(struct, "tribes", tribes)
    struct["is_alpha"] = is_alpha_from_tribes(tribes)
    _add(struct, "variants", parse_pal_variants(html))
    _add(struct, "spawner",
         _relation_table(html, cards, primary, "Spawner", _SPAWNER_TITLE, parse_spawner_table))

    breeding_card = find_card(cards, "breeding farm")
    if breeding_card is not None:
        _add(struct, "unique_combo", parse_unique_combo(breeding_card.html))
    habitat_card = find_card(cards, "habitat")
    if habitat_card is not None:
        _add(struct, "habitat", parse_habitat(habitat_card.html))

    code = clean_key((stats or {}).get("Code") or (others or {}).get("Code"))
    if code:
        struct["pal_code"] = code
        struct["breeding_parent_calc_url"] = breed_url(code)
    return struct


def _add(struct, key, value):
    if value:
        struct[key] = value


def parse_pal(filename, options):
    basename = os.path.basename(filename)
    if not options.stdout:
        sys.stderr.write("%s\n" % basename)
    slug = options.slug or os.path.splitext(basename)[0]
    with open(filename, encoding="utf-8") as fp:
        html = fp.read()
    return output_pal(html, slug, options)


def output_pal(html, slug, options):
    struct = parse_pal_detail(html, slug)
    if not options.skip_schema:
        validate_against_schema(struct, "pal_detail.schema.json")
    output_struct(struct, options, "pal", struct["id"])
    return struct

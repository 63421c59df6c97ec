import re
from universal.utils import first_match, first_of, clean_text, soup_fragment, tag_text, parse_number
from universal.universal import slice_section_by_heading
from paldb.constants import ACTIVE_SKILL_NEXT_HEADINGS
from paldb.links import abs_img_url, paldb_slug

_ACTIVE_SKILL_RE = re.compile(
    r"<div\s+class=[\"']card\s+itemPopup\s+activeSkill[\"'][^>]*>", re.IGNORECASE)
_LEVEL_RES = [
    re.compile(r"Lv\.\s*([0-9]{1,3})", re.IGNORECASE),
    re.compile(r"Lv\s*\.?\s*([0-9]{1,3})", re.IGNORECASE),
]
_NAME_RE = re.compile(r"Lv\.?\s*[0-9]{1,3}\s*<a[^>]*>([\s\S]*?)</a>", re.IGNORECASE)
_COOL_TIME_RES = [
    re.compile(r"data-bs-title=[\"']CoolTime[\"'][\s\S]*?:\s*<span[^>]*>\s*([^<]+)\s*</span>",
               re.IGNORECASE),
    re.compile(r"data-bs-title=[\"']CoolTime[\"'][\s\S]*?:\s*([^<\s]+)\s*<", re.IGNORECASE),
]
_POWER_RE = re.compile(r"Power:\s*<span[^>]*>\s*([^<]+)\s*</span>", re.IGNORECASE)
_AGGREGATE_STATUS_RE = re.compile(
    r"Aggregate:\s*</span>\s*<span[^>]*>\s*([^<]+)\s*</span>", re.IGNORECASE)


def active_skill_cards(html):
    chunk = slice_section_by_heading(html, "Active Skills", ACTIVE_SKILL_NEXT_HEADINGS)
    if not chunk:
        return []
    parts = _ACTIVE_SKILL_RE.split(chunk)
    return ['<div class="card itemPopup activeSkill">' + part for part in parts[1:]]


def _aggregate(soup):
    block = soup.find("div", class_="Aggregate")
    if block is None:
        return None
    status = first_match(str(block), _AGGREGATE_STATUS_RE)
    status = clean_text(status) if status else None
    magnitude = tag_text(block.find("div", class_="ms-auto")) or None
    if status and magnitude:
        return "%s \u2022 %s" % (status, magnitude)
    return status


def _skill_fruit(soup):
    anchor = soup.find("a", href=re.compile("Skill_Fruit"))
    if anchor is None:
        return None
    slug = paldb_slug(anchor.get("href"))
    if not slug:
        return None
    fruit = {"slug": slug}
    icon = abs_img_url(anchor)
    if icon:
        fruit["icon_url"] = icon
    return fruit


def parse_active_skill(card_html):
    level = first_of(card_html, _LEVEL_RES)
    name = first_match(card_html, _NAME_RE)
    name = clean_text(name) if name else None
    if not level or not name or int(level) <= 0:
        return None
    soup = soup_fragment(card_html)
    skill = {"level": int(level), "name": name}
    bar = soup.find("div", class_="me-auto")
    element = tag_text(bar.find("span")) if bar is not None else ""
    if element:
        skill["element"] = element
    cool_time = parse_number(first_of(card_html, _COOL_TIME_RES))
    if cool_time is not None:
        skill["cool_time"] = cool_time
    power = parse_number(first_match(card_html, _POWER_RE))
    if power is not None:
        skill["power"] = power
    aggregate = _aggregate(soup)
    if aggregate:
        skill["aggregate"] = aggregate
    description = tag_text(soup.find("div", class_="card-body"))
    if description:
        skill["description"] = description
    fruit = _skill_fruit(soup)
    if fruit:
        skill["skill_fruit"] = fruit
    return skill


def parse_active_skills(html):
    skills = []
    for card_html in active_skill_cards(html):
        skill = parse_active_skill(card_html)
        if skill:
            skills.append(skill)
    return skills

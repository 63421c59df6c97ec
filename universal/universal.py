import re
from bs4 import BeautifulSoup, Tag
from universal.utils import clean_text, has_class, soup_fragment

# Structural signals a card is scored on when several cards match the same
# content query. Booleans count once, "tables" counts per table and "length"
# per 10k characters of markup.
CARD_SCORE_WEIGHTS = {
    "tables": 10,
    "flex_grow": 2,
    "skill_icon": 5,
    "passive_table": 50,
    "active_table": 45,
    "item_quantity": 25,
    "item_name": 5,
    "length": 1,
}

SECTION_SLICE_LIMIT = 220000

_CARD_OPEN_RE = re.compile(r"<div\s+class=[\"']card(?=[\s\"'])", re.IGNORECASE)
_H5_RE = re.compile(r"<h5\b[^>]*>([\s\S]*?)</h5>", re.IGNORECASE)


class Card():
    def __init__(self, title, html, node=None):
        self.title = title
        self.html = html
        self.node = node

    def __repr__(self):
        return "<Card %s (%s chars)>" % (self.title, len(self.html))


def _is_card(tag):
    return tag.name == "div" and has_class(tag, "card")


def _own_title(card):
    for h5 in card.find_all("h5", class_="card-title"):
        if h5.find_parent(_is_card) is card:
            return h5


def parse_document(html):
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "lxml")


def extract_primary_cards(html):
    soup = parse_document(html)
    cards = []
    for div in soup.find_all(_is_card):
        h5 = _own_title(div)
        if h5 is None:
            continue
        title = clean_text(str(h5))
        if not title:
            continue
        cards.append(Card(title, str(div), div))
    return cards


def extract_fallback_cards(html):
    """Slice the raw markup at every card opening tag.

    Used when the markup is too broken for the parser to find any titled
    card; the title comes from the first <h5> in each slice.
    """
    html = html or ""
    starts = [m.start() for m in _CARD_OPEN_RE.finditer(html)]
    cards = []
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else len(html)
        chunk = html[start:end]
        m = _H5_RE.search(chunk)
        if not m:
            continue
        title = clean_text(m.group(1))
        if not title:
            continue
        cards.append(Card(title, chunk))
    return cards


def extract_cards(html, doc=None):
    cards = extract_primary_cards(html if doc is None else doc)
    if cards:
        return cards
    return extract_fallback_cards(html)


def find_card(cards, title):
    needle = title.lower()
    for card in cards:
        if needle in card.title.lower():
            return card


def find_card_by_title(html, title):
    return find_card(extract_cards(html), title)


def card_signals(fragment):
    if isinstance(fragment, Tag):
        node = fragment
        length = len(str(fragment))
    else:
        fragment = fragment or ""
        node = soup_fragment(fragment)
        length = len(fragment)
    skill_icon = False
    for img in node.find_all("img"):
        if "T_icon_skill_pal_" in (img.get("src") or ""):
            skill_icon = True
            break
    if not skill_icon:
        skill_icon = node.find(class_="size64") is not None
    return {
        "tables": len(node.find_all("table")),
        "flex_grow": node.find(class_="flex-grow-1") is not None,
        "skill_icon": skill_icon,
        "passive_table": node.find("table", class_="passive") is not None,
        "active_table": node.find("table", class_="active") is not None,
        "item_quantity": node.find(class_="itemQuantity") is not None,
        "item_name": node.find("a", class_="itemname") is not None,
        "length": length / 10000.0,
    }


def score_signals(signals, weights=CARD_SCORE_WEIGHTS):
    score = 0
    for key, weight in weights.items():
        score += weight * float(signals.get(key, 0))
    return score


def score_card(card, weights=CARD_SCORE_WEIGHTS):
    fragment = card.node if card.node is not None else card.html
    return score_signals(card_signals(fragment), weights)


def _best_of(cards, regex):
    best = None
    best_score = None
    for card in cards:
        if not regex.search(card.html):
            continue
        score = score_card(card)
        if best is None or score > best_score:
            best = card
            best_score = score
    return best


def best_card_containing(html, pattern, primary=None):
    """Pick the most plausible card whose markup matches pattern.

    Candidates come from the parsed card tier first and the raw-slice tier
    only when no parsed card matches. Ties keep the earliest card. Callers
    that already extracted the parsed cards pass them as primary.
    """
    regex = re.compile(pattern, re.IGNORECASE)
    if primary is None:
        primary = extract_primary_cards(html)
    best = _best_of(primary, regex)
    if best is None:
        best = _best_of(extract_fallback_cards(html), regex)
    return best


def _heading_re(title):
    return re.compile(
        r"<h5[^>]*>\s*(?:<span[^>]*>\s*)?%s\s*(?:</span>\s*)?</h5>" % re.escape(title),
        re.IGNORECASE)


def slice_section_by_heading(html, title, next_titles, limit=SECTION_SLICE_LIMIT):
    if not html:
        return None
    start = _heading_re(title).search(html)
    if not start:
        return None
    after = start.end()
    end = None
    for next_title in next_titles:
        m = _heading_re(next_title).search(html, after)
        if m and (end is None or m.start() < end):
            end = m.start()
    if end is None:
        end = min(len(html), start.start() + limit)
    return html[start.start():end]


def table_after_heading(fragment, title):
    if not fragment:
        return None
    heading = _heading_re(title).search(fragment)
    if not heading:
        return None
    m = re.compile(r"<table\b[\s\S]*?</table>", re.IGNORECASE).search(
        fragment, heading.end())
    if m:
        return m.group(0)

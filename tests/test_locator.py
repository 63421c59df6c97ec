from universal.universal import (
    CARD_SCORE_WEIGHTS, Card, extract_primary_cards, extract_fallback_cards,
    extract_cards, find_card, find_card_by_title, card_signals, score_signals,
    score_card, best_card_containing, slice_section_by_heading, table_after_heading,
    parse_document)


def card(title, body):
    return '<div class="card"><h5 class="card-title">%s</h5>%s</div>' % (title, body)


class TestWeights:
    def test_weight_table(self):
        assert CARD_SCORE_WEIGHTS == {
            "tables": 10,
            "flex_grow": 2,
            "skill_icon": 5,
            "passive_table": 50,
            "active_table": 45,
            "item_quantity": 25,
            "item_name": 5,
            "length": 1,
        }

    def test_score_signals(self):
        signals = {"tables": 2, "passive_table": True, "flex_grow": False, "length": 0.5}
        assert score_signals(signals) == 70.5

    def test_score_signals_custom_weights(self):
        assert score_signals({"tables": 3}, {"tables": 1}) == 3


class TestCardSignals:
    def test_signals(self):
        html = ('<div><div class="flex-grow-1"><img src="/image/T_icon_skill_pal_01.png"></div>'
                '<table class="passive"></table><table class="active"></table>'
                '<a class="itemname" href="/en/Wool">Wool</a><small class="itemQuantity">1</small></div>')
        signals = card_signals(html)
        assert signals["tables"] == 2
        assert signals["flex_grow"]
        assert signals["skill_icon"]
        assert signals["passive_table"]
        assert signals["active_table"]
        assert signals["item_quantity"]
        assert signals["item_name"]
        assert signals["length"] == len(html) / 10000.0

    def test_size64_counts_as_icon(self):
        assert card_signals('<img class="size64" src="/a.png">')["skill_icon"]

    def test_empty(self):
        signals = card_signals("")
        assert signals["tables"] == 0
        assert not signals["item_name"]
        assert score_signals(signals) == 0


class TestExtractCards:
    def test_primary_cards(self):
        html = "<html><body>%s%s</body></html>" % (
            card("Stats", "<p>a</p>"), card("Others", "<p>b</p>"))
        cards = extract_primary_cards(html)
        assert [c.title for c in cards] == ["Stats", "Others"]
        assert cards[0].node is not None
        assert "<p>a</p>" in cards[0].html

    def test_untitled_cards_skipped(self):
        html = '<div class="card itemPopup activeSkill"><p>x</p></div>' + card("Stats", "")
        assert [c.title for c in extract_cards(html)] == ["Stats"]

    def test_parsed_document_reused(self):
        html = card("Stats", "<p>a</p>")
        doc = parse_document(html)
        cards = extract_cards(html, doc)
        assert any(div is cards[0].node for div in doc.find_all("div"))

    def test_nested_cards_keep_their_own_title(self):
        html = card("Outer", card("Inner", "<p>x</p>"))
        assert [c.title for c in extract_cards(html)] == ["Outer", "Inner"]

    def test_fallback_when_no_titled_card(self):
        html = '<div class="card"><h5>Stats</h5><p>a</p><div class="card"><h5>Others</h5>'
        assert extract_primary_cards(html) == []
        cards = extract_cards(html)
        assert [c.title for c in cards] == ["Stats", "Others"]
        assert cards[0].node is None
        assert cards[0].html.startswith('<div class="card"><h5>Stats</h5>')

    def test_fallback_skips_untitled_slices(self):
        html = '<div class="card"><p>x</p><div class="card"><h5>Only</h5>'
        assert [c.title for c in extract_fallback_cards(html)] == ["Only"]

    def test_nothing(self):
        assert extract_cards("") == []
        assert extract_cards("<p>no cards</p>") == []


class TestFindCard:
    def test_case_insensitive_substring(self):
        cards = [Card("Stats", "<div></div>"), Card("Level 65", "<div></div>")]
        assert find_card(cards, "level 65").title == "Level 65"
        assert find_card(cards, "STATS").title == "Stats"

    def test_missing(self):
        assert find_card([], "stats") is None

    def test_find_card_by_title(self):
        html = card("Movement", "<p>speed</p>")
        assert find_card_by_title(html, "movement").title == "Movement"
        assert find_card_by_title(html, "habitat") is None


class TestBestCardContaining:
    def test_highest_score_wins(self):
        html = (card("Plain", "<p>Partner Skill</p>")
                + card("Rich", '<p>Partner Skill</p><table class="passive"><tr><td>1</td></tr></table>'))
        assert best_card_containing(html, "Partner Skill").title == "Rich"

    def test_tie_keeps_first(self):
        html = card("One", "<p>Partner Skill</p>") + card("Two", "<p>Partner Skill</p>")
        assert best_card_containing(html, "Partner Skill").title == "One"

    def test_reuses_parsed_cards(self):
        html = card("One", "<p>Partner Skill</p>") + card("Two", "<p>Partner Skill</p>")
        primary = extract_primary_cards(parse_document(html))
        found = best_card_containing(html, "Partner Skill", primary)
        assert found is primary[0]

    def test_score_card_matches_signals(self):
        c = extract_cards(card("Rich", '<table class="active"></table>'))[0]
        assert score_card(c) == score_signals(card_signals(c.node))

    def test_fallback_tier(self):
        html = '<div class="card"><h5>Tribes</h5><table><tr><td>x</td></tr></table>'
        found = best_card_containing(html, "Tribes")
        assert found is not None
        assert found.title == "Tribes"

    def test_no_match(self):
        assert best_card_containing(card("Stats", "<p>a</p>"), "Partner Skill") is None
        assert best_card_containing("", "Partner Skill") is None


class TestSections:
    def test_slice_until_next_heading(self):
        html = "<h5>Active Skills</h5>AAA<h5>Passive Skills</h5>BBB<h5>Tribes</h5>"
        assert slice_section_by_heading(html, "Active Skills", ["Tribes", "Passive Skills"]) == \
            "<h5>Active Skills</h5>AAA"

    def test_slice_span_heading(self):
        html = '<h5 class="card-title"><span>Active Skills</span></h5>AAA'
        assert slice_section_by_heading(html, "Active Skills", ["Tribes"]).endswith("AAA")

    def test_slice_limit(self):
        html = "<h5>Active Skills</h5>" + "x" * 100
        assert slice_section_by_heading(html, "Active Skills", [], limit=30) == html[:30]

    def test_slice_missing(self):
        assert slice_section_by_heading("<p>x</p>", "Active Skills", []) is None
        assert slice_section_by_heading(None, "Active Skills", []) is None

    def test_table_after_heading(self):
        html = "<table><tr><td>before</td></tr></table><h5>Tribes</h5><p>x</p><table><tr><td>after</td></tr></table>"
        table = table_after_heading(html, "Tribes")
        assert "after" in table
        assert "before" not in table

    def test_table_after_heading_missing(self):
        assert table_after_heading("<h5>Tribes</h5><p>no table</p>", "Tribes") is None
        assert table_after_heading("<table></table>", "Tribes") is None

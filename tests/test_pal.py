import pytest
from bs4 import BeautifulSoup
import universal.universal
from paldb.pal import parse_number_raw, parse_pal_detail
from paldb.schema import validate_against_schema

PAL_PAGE = """<html><head><title>Lamball - Palworld - paldb.cc</title></head><body>
<div class="card">
<div class="d-flex"><span class="text-white-50">#1</span> <a class="itemname" href="/en/Lamball">Lamball</a></div>
<div class="palstatus_element_neutral"><img src="/image/Neutral.png"><span>Neutral</span></div>
<div data-hover="/cache/images/Game_Pals_hover/SheepBall.webp"></div>
<img src="https://cdn.paldb.cc/image/Pal/Texture/PalIcon/Normal/T_SheepBall_icon_normal.webp">
</div>
<div class="card"><h5 class="card-title">Summary</h5><div class="card-body">Fluffy sheep.</div></div>
<div class="card"><h5 class="card-title text-info">Stats</h5>
<div class="d-flex justify-content-between"><div>HP</div><div>70</div></div>
<div class="d-flex justify-content-between"><div>Food</div><div>3</div></div>
<div class="d-flex justify-content-between"><div>Code</div><div>SheepBall</div></div>
</div>
<div class="card"><h5 class="card-title text-info">Others</h5>
<div class="d-flex justify-content-between"><div>FoodAmount</div><div>2</div></div>
</div>
<div class="card"><h5 class="card-title text-info">Tribes</h5>
<table class="table">
<tr><td><a class="itemname" href="/en/Lamball"><img src="/image/Lamball.png">Lamball</a></td><td>Tribe Normal</td></tr>
<tr><td><a class="itemname" href="/en/BOSS_SheepBall"><img src="/image/Lamball.png">Lamball</a></td><td>Tribe Boss</td></tr>
</table>
</div>
</body></html>"""


def _urls(value, key=""):
    if isinstance(value, dict):
        for k, v in value.items():
            for url in _urls(v, k):
                yield url
    elif isinstance(value, list):
        for v in value:
            for url in _urls(v, key):
                yield url
    elif isinstance(value, str) and key.endswith("url"):
        yield value


class TestParseNumberRaw:
    def test_plain(self):
        assert parse_number_raw("#12") == (12, "12")

    def test_suffix(self):
        assert parse_number_raw("#5B") == (5, "5B")

    def test_missing(self):
        assert parse_number_raw(None) == (0, None)
        assert parse_number_raw("none") == (0, None)


class TestParsePalDetail:
    def test_identity(self):
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        assert struct["id"] == "Lamball"
        assert struct["name"] == "Lamball"
        assert struct["number"] == 1
        assert struct["number_raw"] == "1"
        assert struct["elements"] == ["Neutral"]

    def test_images(self):
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        assert struct["image_url"] == \
            "https://cdn.paldb.cc/cache/images/Game_Pals_hover/SheepBall.webp"
        assert struct["icon_url"] == \
            "https://cdn.paldb.cc/image/Pal/Texture/PalIcon/Normal/T_SheepBall_icon_normal.webp"

    def test_cards(self):
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        assert struct["summary"] == "Fluffy sheep."
        assert struct["stats"] == {"HP": "70", "Food": "3", "Code": "SheepBall"}
        assert struct["stats_rows"][0] == {"key": "HP", "value": "70"}
        assert struct["others"] == {"FoodAmount": "2"}
        assert struct["food"] == {"amount": 2, "max": 3}
        assert "movement" not in struct
        assert "level65" not in struct

    def test_breeding_code(self):
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        assert struct["pal_code"] == "SheepBall"
        assert struct["breeding_parent_calc_url"] == "https://paldb.cc/en/Breed?child=SheepBall"

    def test_tribe_boss_is_alpha(self):
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        assert [t["tribe_role"] for t in struct["tribes"]] == ["Tribe Normal", "Tribe Boss"]
        assert struct["is_alpha"] is True

    def test_absent_sections_omitted(self):
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        for key in ["possible_drops", "active_skills", "work_suitability", "spawner",
                    "unique_combo", "habitat", "partner_skill_name", "ranch_drops"]:
            assert key not in struct

    def test_idempotent(self):
        assert parse_pal_detail(PAL_PAGE, "Lamball") == parse_pal_detail(PAL_PAGE, "Lamball")

    def test_urls_are_absolute(self):
        urls = list(_urls(parse_pal_detail(PAL_PAGE, "Lamball")))
        assert urls
        for url in urls:
            assert url.startswith("https://")

    def test_schema(self):
        validate_against_schema(parse_pal_detail(PAL_PAGE, "Lamball"), "pal_detail.schema.json")

    def test_name_falls_back_to_slug(self):
        struct = parse_pal_detail("<html><body><p>hi</p></body></html>", "Lamball")
        assert struct == {
            "id": "Lamball",
            "name": "Lamball",
            "number": 0,
            "elements": [],
            "is_alpha": False,
        }

    def test_slug_fallback_is_verbatim(self):
        assert parse_pal_detail("<p>hi</p>", "Foo  Bar")["name"] == "Foo  Bar"

    def test_variants(self):
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        assert struct["variants"] == [
            {"slug": "Lamball", "name": "Lamball",
             "icon_url": "https://cdn.paldb.cc/image/Lamball.png",
             "tribe_label": "Tribe Normal", "kind": "normal"},
            {"slug": "BOSS_SheepBall", "name": "Lamball",
             "icon_url": "https://cdn.paldb.cc/image/Lamball.png",
             "tribe_label": "Tribe Boss", "kind": "boss"},
        ]

    def test_document_parsed_once(self, monkeypatch):
        parses = []

        class CountingSoup(BeautifulSoup):
            def __init__(self, *args, **kwargs):
                parses.append(1)
                super().__init__(*args, **kwargs)

        monkeypatch.setattr(universal.universal, "BeautifulSoup", CountingSoup)
        struct = parse_pal_detail(PAL_PAGE, "Lamball")
        assert struct["tribes"]
        assert len(parses) == 1

    def test_empty_document(self):
        with pytest.raises(ValueError):
            parse_pal_detail("", "Lamball")
        with pytest.raises(ValueError):
            parse_pal_detail("   ", "Lamball")
        with pytest.raises(ValueError):
            parse_pal_detail(None, "Lamball")

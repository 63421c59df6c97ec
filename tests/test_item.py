import pytest
from paldb.item import parse_item_detail
from paldb.schema import validate_against_schema

ITEM_PAGE = """<html><head><title>Wool - Palworld - paldb.cc</title>
<meta property="og:image" content="https://cdn.paldb.cc/image/Others/InventoryItemIcon/Texture/T_itemicon_Material_Wool.webp">
<meta property="og:description" content="Fluffy wool.">
</head><body>
<h2>Wool</h2>
<div class="card"><h5 class="card-title">Stats</h5>
<div class="d-flex justify-content-between"><div>Rarity</div><div>Common</div></div>
<div class="d-flex justify-content-between"><div>Weight</div><div>0.1</div></div>
</div>
<div class="card"><h5 class="card-title">Production</h5>
<div class="row row-cols-1 row-cols-lg-2 g-2"><div class="col"><a class="itemname" href="/en/Primitive_Workbench"><img src="/image/Workbench.png">Primitive Workbench</a></div></div>
<table class="table mb-0"><tbody>
<tr><td><span><a class="itemname" href="/en/Wood"><img src="/image/Wood.png">Wood</a><small class="itemQuantity">x2</small></span></td><td><a class="itemname" href="/en/Cloth">Cloth</a><small class="itemQuantity">1</small></td></tr>
</tbody></table>
</div>
<div class="card"><h5 class="card-title">Dropped By</h5>
<table class="table mb-0"><tbody>
<tr><td><a class="itemname" href="/en/Lamball">Lamball</a></td><td>1-3</td><td>100%</td></tr>
</tbody></table></div>
<div class="card"><h5 class="card-title">Wandering Merchant</h5>
<table class="table mb-0"><tbody>
<tr><td><a class="itemname" href="/en/Wool">Wool</a></td><td>Wandering_Merchant</td></tr>
</tbody></table></div>
<div data-treant='{"link":{"href":"Cloth"},"text":{"name":"1"},"children":[]}'></div>
</body></html>"""


class TestParseItemDetail:
    def test_header(self):
        item = parse_item_detail(ITEM_PAGE, "Wool")
        assert item["id"] == "Wool"
        assert item["name"] == "Wool"
        assert item["icon_url"] == \
            "https://cdn.paldb.cc/image/Others/InventoryItemIcon/Texture/T_itemicon_Material_Wool.webp"
        assert item["description"] == "Fluffy wool."

    def test_stats(self):
        item = parse_item_detail(ITEM_PAGE, "Wool")
        assert item["stats"] == [
            {"key": "Rarity", "value_text": "Common"},
            {"key": "Weight", "value_text": "0.1"},
        ]
        assert "others" not in item

    def test_production(self):
        item = parse_item_detail(ITEM_PAGE, "Wool")
        assert item["produced_at"] == [{
            "slug": "Primitive_Workbench",
            "name": "Primitive Workbench",
            "icon_url": "https://cdn.paldb.cc/image/Workbench.png",
        }]
        recipe = item["production"][0]
        assert recipe["materials"][0]["slug"] == "Wood"
        assert recipe["materials"][0]["qty"] == 2
        assert recipe["product"]["slug"] == "Cloth"
        assert "crafting_materials" not in item

    def test_sources(self):
        item = parse_item_detail(ITEM_PAGE, "Wool")
        assert item["dropped_by"][0]["pal"]["slug"] == "Lamball"
        assert item["dropped_by"][0]["probability_text"] == "100%"
        assert item["wandering_merchant"][0]["source_text"] == "Wandering Merchant"
        assert "treasure_box" not in item

    def test_treant(self):
        item = parse_item_detail(ITEM_PAGE, "Wool")
        assert item["treant"]["slug"] == "Cloth"
        assert item["treant"]["qty"] == 1

    def test_schema(self):
        validate_against_schema(parse_item_detail(ITEM_PAGE, "Wool"), "item_detail.schema.json")

    def test_idempotent(self):
        assert parse_item_detail(ITEM_PAGE, "Wool") == parse_item_detail(ITEM_PAGE, "Wool")

    def test_title_and_size128_fallbacks(self):
        html = ('<html><head><title>Cloth - Palworld</title></head><body>'
                '<img class="size128" data-src="/image/Cloth.png"></body></html>')
        item = parse_item_detail(html, "Cloth_slug")
        assert item["name"] == "Cloth"
        assert item["icon_url"] == "https://cdn.paldb.cc/image/Cloth.png"

    def test_name_falls_back_to_slug(self):
        assert parse_item_detail("<html><body><p>x</p></body></html>", "Cloth") == {
            "id": "Cloth", "name": "Cloth"}

    def test_description_from_card_body(self):
        html = '<div class="card-body"><div>Made from wool.<br>Soft.</div></div>'
        assert parse_item_detail(html, "Cloth")["description"] == "Made from wool.\nSoft."

    def test_empty_document(self):
        with pytest.raises(ValueError):
            parse_item_detail("", "Cloth")

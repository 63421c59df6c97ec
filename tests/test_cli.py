import json
import os
import pytest
from paldb.cli import parse_main, fetch_main

LIST_PAGE = ('<div id="Pal"><div class="col"><a class="itemname" href="Lamball">Lamball</a>'
             '<span>#1</span><span data-bs-title="Neutral"></span></div></div>')


class FakeClient():
    def __init__(self):
        self.calls = []

    def fetch_pal_list(self, force=False):
        self.calls.append("list")
        return LIST_PAGE

    def fetch_pal_detail(self, slug, force=False):
        self.calls.append(slug)
        return "<html><body><h1>%s</h1></body></html>" % slug

    def fetch_item_detail(self, slug, force=False):
        self.calls.append(slug)
        return "<html><body><h2>%s</h2></body></html>" % slug


class TestParseMain:
    def test_stdout(self, tmp_path, capsys):
        html = tmp_path / "pals.html"
        html.write_text(LIST_PAGE, encoding="utf-8")
        parse_main(["list", "-d", "-s", str(html)])
        items = json.loads(capsys.readouterr().out)
        assert [i["id"] for i in items] == ["Lamball"]

    def test_output_dir(self, tmp_path, capsys):
        html = tmp_path / "pals.html"
        html.write_text(LIST_PAGE, encoding="utf-8")
        out = tmp_path / "out"
        out.mkdir()
        parse_main(["list", "-o", str(out), str(html)])
        filename = os.path.join(str(out), "pal_list", "pals.json")
        assert os.path.exists(filename)
        assert "pal_list: " in capsys.readouterr().out

    def test_unknown_type(self):
        with pytest.raises(SystemExit) as e:
            parse_main(["monster", "-d", "x.html"])
        assert e.value.code == 1

    def test_output_required(self, tmp_path):
        with pytest.raises(SystemExit):
            parse_main(["list", str(tmp_path / "pals.html")])


class TestFetchMain:
    def test_list(self, capsys):
        client = FakeClient()
        fetch_main(["list", "-d", "-s"], client=client)
        assert client.calls == ["list"]
        assert json.loads(capsys.readouterr().out)[0]["name"] == "Lamball"

    def test_items(self, capsys):
        client = FakeClient()
        fetch_main(["item", "-d", "-s", "-k", "Wool"], client=client)
        assert client.calls == ["Wool"]
        assert json.loads(capsys.readouterr().out)["name"] == "Wool"

    def test_slug_required(self):
        with pytest.raises(SystemExit) as e:
            fetch_main(["pal", "-d"], client=FakeClient())
        assert e.value.code == 1

# tests/test_loader.py
"""
Tests for the JSON and S-expression input readers.
"""

import json

import pytest

from regionviz.errors import LoadError, RegionTreeError
from regionviz.loader import (
    detect_format,
    function_from_dict,
    load_file,
    load_json,
    load_sexp,
    select_functions,
)
from regionviz.render import RenderConfig, render_regions
from tests.conftest import LOOP_JSON, LOOP_SEXP, make_loop


def _shape(info):
    """Structure of a loaded function, independent of object identity."""
    fn = info.function
    return (
        fn.name,
        [bb.name for bb in fn.blocks],
        [(e.src.name, e.dst.name) for e in fn.edges],
        [
            (r.id, r.entry.name, r.exit.name if r.exit else None,
             [bb.name for bb in r.owned_blocks()], r.depth)
            for r in info.regions()
        ],
    )


class TestJson:

    def test_loop(self):
        (info,) = load_json(LOOP_JSON)
        assert _shape(info)[:3] == _shape(make_loop())[:3]
        assert _shape(info)[3] == _shape(make_loop())[3]
        assert info.function.block("entry").instructions == ["br label %H"]
        assert info.function.block("H").instructions == []

    def test_renders_like_hand_built_tree(self):
        (info,) = load_json(LOOP_JSON)
        config = RenderConfig(simple=True)
        assert render_regions(info, config) == render_regions(make_loop(), config)

    def test_function_list(self):
        doc = json.loads(LOOP_JSON)
        other = dict(doc, function="loop2")
        infos = load_json(json.dumps({"functions": [doc, other]}))
        assert [i.function.name for i in infos] == ["loop", "loop2"]
        assert len(load_json(json.dumps([doc, other]))) == 2

    def test_missing_region_tree_gives_single_region(self):
        (info,) = load_json('{"function": "f", "blocks": ["a", "b"], "edges": [["a", "b"]]}')
        root = info.top_level_region
        assert root.children == []
        assert [bb.name for bb in root.owned_blocks()] == ["a", "b"]
        assert root.entry.name == "a"

    def test_explicit_simple_flag(self):
        doc = json.loads(LOOP_JSON)
        doc["regions"]["children"][0]["simple"] = False
        (info,) = load_json(json.dumps(doc))
        assert not info.top_level_region.children[0].is_simple()

    def test_bad_simple_flag(self):
        doc = json.loads(LOOP_JSON)
        doc["regions"]["children"][0]["simple"] = "yes"
        with pytest.raises(LoadError, match="boolean"):
            load_json(json.dumps(doc))

    def test_syntax_error_carries_path(self):
        with pytest.raises(LoadError) as excinfo:
            load_json("{not json", path="in.json")
        assert str(excinfo.value).startswith("in.json: JSON syntax error")

    @pytest.mark.parametrize(
        "doc, message",
        [
            ({"function": "f", "blocks": ["a"], "edges": [["a", "zz"]]}, "unknown block 'zz'"),
            ({"function": "f", "blocks": ["a"], "edges": [["a"]]}, "pair"),
            ({"function": "f", "blocks": [7]}, "bad block"),
            ({"function": "f", "blocks": ["a", "a"]}, "duplicate"),
            ({"function": "f", "blocks": []}, "no blocks"),
            ({"function": "f", "blocks": ["a"], "regions": {"blocks": ["a"]}}, "entry"),
        ],
    )
    def test_malformed(self, doc, message):
        with pytest.raises(LoadError, match=message):
            function_from_dict(doc)

    def test_broken_partition(self):
        doc = json.loads(LOOP_JSON)
        doc["regions"]["blocks"] = ["entry"]
        with pytest.raises(RegionTreeError, match="exit"):
            load_json(json.dumps(doc))


class TestSexp:

    def test_loop(self):
        (info,) = load_sexp(LOOP_SEXP)
        (expected,) = load_json(LOOP_JSON)
        assert _shape(info) == _shape(expected)

    def test_simple_keyword(self):
        text = LOOP_SEXP.replace(":exit exit", ":exit exit :simple false")
        (info,) = load_sexp(text)
        assert not info.top_level_region.children[0].is_simple()
        text = LOOP_SEXP.replace(":entry entry", ":entry entry :simple true")
        (info,) = load_sexp(text)
        assert info.top_level_region.is_simple()

    def test_several_functions(self):
        text = LOOP_SEXP + "\n(function tiny (block only))\n"
        infos = load_sexp(text)
        assert [i.function.name for i in infos] == ["loop", "tiny"]
        assert infos[1].top_level_region.entry.name == "only"

    def test_nil_exit(self):
        (info,) = load_sexp("(function f (block a) (region :entry a :exit nil (blocks a)))")
        assert info.top_level_region.exit is None

    def test_numeric_block_names(self):
        (info,) = load_sexp("(function f (block 1) (block 2) (edge 1 2))")
        assert [bb.name for bb in info.function.blocks] == ["1", "2"]

    @pytest.mark.parametrize(
        "text, message",
        [
            ("(function f (block a)", "syntax error"),
            ("(graph f)", "expected \\(function"),
            ("(function f (block a) (edge a b))", "unknown block 'b'"),
            ("(function f (block a) (edge a))", "edge must be"),
            ("(function f (block a) (loop a))", "unexpected form"),
            ("(function f (block a) (region (blocks a)))", ":entry"),
            ("(function f (block a) (region :entry a (blocks a) (oops)))", "unexpected form in region"),
            ("(function f (block a) (region :entry a :simple maybe (blocks a)))", "boolean"),
            ("(function f (block a) (region :entry a (blocks a)) (region :entry a))", "more than one"),
        ],
    )
    def test_malformed(self, text, message):
        with pytest.raises(LoadError, match=message):
            load_sexp(text)


class TestFiles:

    def test_detect_format(self):
        assert detect_format("x.json") == "json"
        assert detect_format("x.SEXP") == "sexp"
        assert detect_format("x.rgn") == "sexp"
        with pytest.raises(LoadError, match="--format"):
            detect_format("x.txt")

    def test_load_file_by_extension(self, tmp_path):
        (tmp_path / "loop.json").write_text(LOOP_JSON, encoding="utf-8")
        (tmp_path / "loop.sexp").write_text(LOOP_SEXP, encoding="utf-8")
        (a,) = load_file(tmp_path / "loop.json")
        (b,) = load_file(tmp_path / "loop.sexp")
        assert _shape(a) == _shape(b)

    def test_explicit_format_overrides_extension(self, tmp_path):
        path = tmp_path / "loop.txt"
        path.write_text(LOOP_SEXP, encoding="utf-8")
        (info,) = load_file(path, "sexp")
        assert info.function.name == "loop"

    def test_errors_name_the_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"function": "f", "blocks": ["a"], "edges": [["a", "q"]]}')
        with pytest.raises(LoadError) as excinfo:
            load_file(path)
        assert excinfo.value.path == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError, match="cannot read"):
            load_file(tmp_path / "nope.json")

    def test_select_functions(self):
        infos = load_sexp(LOOP_SEXP + "(function tiny (block only))")
        assert select_functions(infos) == infos
        assert select_functions(infos, ["tiny"]) == [infos[1]]
        with pytest.raises(LoadError, match="no such function: zz"):
            select_functions(infos, ["zz"])


class TestJsonListFields:

    @pytest.mark.parametrize(
        "doc, key",
        [
            ({"function": "f", "blocks": "entry"}, "blocks"),
            ({"function": "f", "blocks": [{"name": "a", "instructions": "ret void"}]},
             "instructions"),
            ({"function": "f", "blocks": ["a"], "edges": "a"}, "edges"),
            ({"function": "f", "blocks": ["a"],
              "regions": {"entry": "a", "blocks": "a"}}, "blocks"),
            ({"function": "f", "blocks": ["a"],
              "regions": {"entry": "a", "blocks": ["a"], "children": {}}}, "children"),
        ],
    )
    def test_string_where_list_expected(self, doc, key):
        with pytest.raises(LoadError, match=f"'{key}' in function 'f' must be a list"):
            function_from_dict(doc)

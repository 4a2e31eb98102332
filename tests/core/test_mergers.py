"""Tests for core/mergers.py - Merge strategies."""

import json

import pytest

from scaffolder.core.contributions import FileContribution
from scaffolder.core.errors import MergeError
from scaffolder.core.mergers import (
    AppendMerger,
    AstTransformMerger,
    InsertAfterMerger,
    InsertBeforeMerger,
    JsonDeepMerger,
    JsonMerger,
    LineMerger,
    PrependMerger,
    ReplaceMerger,
    SectionMerger,
    deep_merge,
)


def _c(content, strategy="replace", **kwargs):
    return FileContribution(plugin_id="test", path="file", content=content, merge_strategy=strategy, **kwargs)


# ===========================================================================
# Whole-file / JSON
# ===========================================================================
class TestReplaceMerger:

    def test_replaces(self):
        assert ReplaceMerger.merge("old", _c("new")) == "new"


class TestDeepMerge:

    def test_nested_objects(self):
        assert deep_merge({"a": {"x": 1}}, {"a": {"y": 2}}) == {"a": {"x": 1, "y": 2}}

    def test_arrays_concatenate_without_duplicates(self):
        assert deep_merge([1, 2], [2, 3]) == [1, 2, 3]

    def test_scalar_source_wins(self):
        assert deep_merge({"a": 1}, {"a": 2}) == {"a": 2}

    def test_none_source_keeps_target(self):
        assert deep_merge({"a": 1}, None) == {"a": 1}

    def test_type_mismatch_source_wins(self):
        assert deep_merge({"a": [1]}, {"a": {"b": 1}}) == {"a": {"b": 1}}


class TestJsonMerger:

    def test_shallow_top_level_wins(self):
        existing = json.dumps({"a": {"x": 1}, "b": 1})
        result = JsonMerger.merge(existing, _c(json.dumps({"a": {"y": 2}})))
        assert json.loads(result) == {"a": {"y": 2}, "b": 1}

    def test_output_format(self):
        result = JsonMerger.merge("", _c('{"a": 1}'))
        assert result == '{\n  "a": 1\n}\n'

    def test_deep(self):
        existing = json.dumps({"scripts": {"build": "tsc"}, "keywords": ["a"]})
        incoming = json.dumps({"scripts": {"test": "vitest"}, "keywords": ["a", "b"]})
        result = json.loads(JsonDeepMerger.merge(existing, _c(incoming)))
        assert result == {"scripts": {"build": "tsc", "test": "vitest"}, "keywords": ["a", "b"]}

    def test_invalid_existing_json(self):
        with pytest.raises(MergeError, match="invalid JSON in existing"):
            JsonMerger.merge("{nope", _c("{}"))

    def test_invalid_contributed_json(self):
        with pytest.raises(MergeError, match="invalid JSON in contributed"):
            JsonMerger.merge("{}", _c("{nope"))

    def test_non_object_rejected(self):
        with pytest.raises(MergeError, match="JSON objects"):
            JsonMerger.merge("[1]", _c("{}"))

    def test_error_carries_path(self):
        with pytest.raises(MergeError) as exc_info:
            JsonMerger.merge("{nope", _c("{}"))
        assert exc_info.value.path == "file"
        assert exc_info.value.plugin_id == "test"


# ===========================================================================
# Text
# ===========================================================================
class TestAppendPrepend:

    def test_append_to_empty(self):
        assert AppendMerger.merge("", _c("b\n")) == "b\n"

    def test_append(self):
        assert AppendMerger.merge("a\n", _c("b\n")) == "a\nb\n"

    def test_append_idempotent(self):
        once = AppendMerger.merge("a\n", _c("b\n"))
        assert AppendMerger.merge(once, _c("b\n")) == once

    def test_append_blank_content(self):
        assert AppendMerger.merge("a\n", _c("\n")) == "a\n"

    def test_prepend(self):
        assert PrependMerger.merge("b\n", _c("a")) == "a\nb\n"

    def test_prepend_idempotent(self):
        once = PrependMerger.merge("b\n", _c("a"))
        assert PrependMerger.merge(once, _c("a")) == once


class TestInsertMergers:

    SOURCE = "import x from 'x'\nconst y = 1\nexport default y\n"

    def test_insert_after(self):
        result = InsertAfterMerger.merge(self.SOURCE, _c("import z from 'z'", marker=r"^import x.*$"))
        assert result == "import x from 'x'\nimport z from 'z'\nconst y = 1\nexport default y\n"

    def test_insert_before(self):
        result = InsertBeforeMerger.merge(self.SOURCE, _c("y += 1", marker=r"^export default"))
        assert result == "import x from 'x'\nconst y = 1\ny += 1\nexport default y\n"

    def test_insert_idempotent(self):
        contribution = _c("import z from 'z'", marker=r"^import x.*$")
        once = InsertAfterMerger.merge(self.SOURCE, contribution)
        assert InsertAfterMerger.merge(once, contribution) == once

    @pytest.mark.parametrize("merger", [InsertAfterMerger, InsertBeforeMerger])
    @pytest.mark.parametrize("content", ["", "\n", "   "])
    def test_blank_content_leaves_file_unchanged(self, merger, content):
        contribution = _c(content, marker=r"^import x.*$")
        assert merger.merge(self.SOURCE, contribution) == self.SOURCE

    def test_missing_marker_raises(self):
        with pytest.raises(MergeError, match="marker 'nothing' not found"):
            InsertAfterMerger.merge(self.SOURCE, _c("z", marker="nothing"))

    def test_marker_required(self):
        with pytest.raises(MergeError, match="marker is required"):
            InsertBeforeMerger.merge(self.SOURCE, _c("z"))

    def test_invalid_pattern(self):
        with pytest.raises(MergeError, match="invalid marker pattern"):
            InsertAfterMerger.merge(self.SOURCE, _c("z", marker="("))


class TestLineMerger:

    def test_adds_new_lines_only(self):
        assert LineMerger.merge("node_modules\n", _c("node_modules\ndist\n")) == "node_modules\ndist\n"

    def test_empty_existing(self):
        assert LineMerger.merge("", _c("dist\n.env\n")) == "dist\n.env\n"

    def test_nothing_new_returns_existing(self):
        assert LineMerger.merge("dist\n", _c("  dist  \n\n")) == "dist\n"


class TestSectionMerger:

    def test_creates_section_in_empty_file(self):
        result = SectionMerger.merge("", _c("A=1", section="db"))
        assert result == "# --- SECTION: db ---\nA=1\n# --- END SECTION: db ---\n"

    def test_appends_section(self):
        result = SectionMerger.merge("X=0\n", _c("A=1", section="db"))
        assert result == "X=0\n\n# --- SECTION: db ---\nA=1\n# --- END SECTION: db ---\n"

    def test_replaces_section_body(self):
        existing = "X=0\n\n# --- SECTION: db ---\nA=1\n# --- END SECTION: db ---\nY=2\n"
        result = SectionMerger.merge(existing, _c("A=2\nB=3", section="db"))
        assert result == "X=0\n\n# --- SECTION: db ---\nA=2\nB=3\n# --- END SECTION: db ---\nY=2\n"

    def test_idempotent(self):
        contribution = _c("A=1", section="db")
        once = SectionMerger.merge("X=0\n", contribution)
        assert SectionMerger.merge(once, contribution) == once

    def test_section_required(self):
        with pytest.raises(MergeError, match="section name is required"):
            SectionMerger.merge("", _c("A=1"))

    def test_missing_end_marker(self):
        with pytest.raises(MergeError, match="no end marker"):
            SectionMerger.merge("# --- SECTION: db ---\nA=1\n", _c("A=2", section="db"))


# ===========================================================================
# Source transforms
# ===========================================================================
class TestAstTransformMerger:

    def test_add_import_after_last_import(self):
        existing = "import a from 'a'\n\nconst x = 1\n"
        result = AstTransformMerger.merge(existing, _c("import b from 'b'", ast_transform="add-import"))
        assert result == "import a from 'a'\nimport b from 'b'\n\nconst x = 1\n"

    def test_add_import_without_imports(self):
        result = AstTransformMerger.merge("const x = 1\n", _c("import b from 'b'", ast_transform="add-import"))
        assert result == "import b from 'b'\nconst x = 1\n"

    def test_add_import_skips_existing_module(self):
        existing = 'import { a } from "b"\n'
        result = AstTransformMerger.merge(existing, _c("import { c } from 'b'", ast_transform="add-import"))
        assert result == existing

    def test_add_export(self):
        existing = "export * from './a'\n"
        result = AstTransformMerger.merge(existing, _c("export * from './b'", ast_transform="add-export"))
        assert result == "export * from './a'\nexport * from './b'\n"

    def test_add_export_idempotent(self):
        existing = "export * from './a'\n"
        assert AstTransformMerger.merge(existing, _c("export * from './a'", ast_transform="add-export")) == existing

    def test_add_array_item(self):
        existing = "export const plugins = [a, b]\n"
        result = AstTransformMerger.merge(existing, _c("plugins:c", ast_transform="add-array-item"))
        assert result == "export const plugins = [a, b,\n  c\n]\n"

    def test_add_array_item_to_empty(self):
        result = AstTransformMerger.merge("plugins = []", _c("plugins:a", ast_transform="add-array-item"))
        assert result == "plugins = [\n  a\n]"

    def test_add_array_item_present(self):
        existing = "plugins: [a, b]"
        assert AstTransformMerger.merge(existing, _c("plugins:b", ast_transform="add-array-item")) == existing

    def test_add_array_item_bad_format(self):
        with pytest.raises(MergeError, match="arrayName:value"):
            AstTransformMerger.merge("plugins = []", _c("plugins", ast_transform="add-array-item"))

    def test_add_array_item_missing_array(self):
        with pytest.raises(MergeError, match="array 'modules' not found"):
            AstTransformMerger.merge("plugins = []", _c("modules:a", ast_transform="add-array-item"))

    def test_unsupported_transform(self):
        with pytest.raises(MergeError, match="unsupported transform"):
            AstTransformMerger.merge("", _c("x", ast_transform="rename"))

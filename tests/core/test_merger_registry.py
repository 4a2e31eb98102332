"""Tests for core/merger_registry.py."""

import pytest

from scaffolder.core.errors import MergeError
from scaffolder.core.merger_registry import MergerRegistry
from scaffolder.core.mergers import MERGER_CLASSES, LineMerger, ReplaceMerger, create_default_merger_registry


class TestMergerRegistry:

    def test_register_and_get(self):
        registry = MergerRegistry()
        registry.register_strategy(LineMerger)
        assert registry.get_merger("line-merge") is LineMerger

    def test_unknown_strategy_raises(self):
        with pytest.raises(MergeError, match="Unknown merge strategy: nope"):
            MergerRegistry().get_merger("nope")

    def test_extension_without_dot(self):
        registry = MergerRegistry()
        registry.register_extension("YAML", "section-merge")
        assert registry.get_default_strategy("config.yaml") == "section-merge"

    def test_filename_beats_extension(self):
        registry = MergerRegistry()
        registry.register_extension(".json", "json-merge")
        registry.register_filename("tsconfig.json", "json-merge-deep")
        assert registry.get_default_strategy("apps/web/tsconfig.json") == "json-merge-deep"
        assert registry.get_default_strategy("package.json") == "json-merge"

    def test_default_fallback(self):
        registry = MergerRegistry()
        registry.set_default("append")
        assert registry.get_default_strategy("Dockerfile") == "append"

    def test_list_registered_mergers(self):
        registry = MergerRegistry()
        registry.register_strategy(ReplaceMerger)
        registry.register_filename(".gitignore", "line-merge")
        listing = registry.list_registered_mergers()
        assert listing["strategies"] == ["replace"]
        assert listing["filenames"] == {".gitignore": "line-merge"}
        assert listing["default"] == "replace"


class TestDefaultMergerRegistry:

    def test_all_strategies_registered(self):
        registry = create_default_merger_registry()
        assert set(registry.strategies) == {cls.STRATEGY for cls in MERGER_CLASSES}

    @pytest.mark.parametrize("path, strategy", [
        ("package.json", "json-merge"),
        (".gitignore", "line-merge"),
        ("sub/.DOCKERIGNORE", "line-merge"),
        ("src/app.css", "append"),
        ("README.md", "append"),
        ("src/index.ts", "replace"),
        ("Dockerfile", "replace"),
    ])
    def test_file_type_defaults(self, path, strategy):
        assert create_default_merger_registry().get_default_strategy(path) == strategy

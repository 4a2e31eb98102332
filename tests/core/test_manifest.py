"""Tests for core/manifest.py - Ownership manifest."""

from unittest.mock import patch

import yaml

from scaffolder.core.manifest import (
    MANIFEST_DIR,
    content_hash,
    dump_manifest,
    empty_manifest,
    file_hash,
    files_owned_by,
    find_entry,
    forget_plugin,
    is_managed,
    is_unmodified,
    manifest_path,
    read_manifest,
    record_file,
    remove_empty_dirs,
    write_manifest,
)


# ===========================================================================
# Helpers
# ===========================================================================
class TestHashes:

    def test_content_hash_is_sha256(self):
        assert len(content_hash("hello")) == 64

    def test_file_hash_matches_content_hash(self, tmp_path):
        f = tmp_path / "a.txt"
        f.write_text("hello")
        assert file_hash(f) == content_hash("hello")

    def test_missing_file_returns_empty(self, tmp_path):
        assert file_hash(tmp_path / "missing.txt") == ""


class TestManifestPath:

    def test_returns_correct_path(self, tmp_path):
        assert manifest_path(tmp_path) == tmp_path / ".scaffolder" / "manifest"


# ===========================================================================
# Read / Write
# ===========================================================================
class TestReadManifest:

    def test_returns_empty_when_missing(self, tmp_path):
        assert read_manifest(tmp_path) == empty_manifest()

    def test_reads_valid_manifest(self, tmp_path):
        mdir = tmp_path / MANIFEST_DIR
        mdir.mkdir()
        data = {
            "generated_at": "2026-02-13T15:30:00+00:00",
            "plugins": ["typescript"],
            "files": [{"name": "tsconfig.json", "plugins": ["typescript"], "hash": "abc"}],
        }
        (mdir / "manifest").write_text(yaml.dump(data))

        m = read_manifest(tmp_path)
        assert m["generated_at"] == "2026-02-13T15:30:00+00:00"
        assert m["files"][0]["name"] == "tsconfig.json"

    def test_fills_missing_keys(self, tmp_path):
        (tmp_path / MANIFEST_DIR).mkdir()
        (tmp_path / MANIFEST_DIR / "manifest").write_text("files: []\n")
        m = read_manifest(tmp_path)
        assert m["plugins"] == []
        assert m["generated_at"] is None

    def test_non_mapping_returns_empty(self, tmp_path):
        (tmp_path / MANIFEST_DIR).mkdir()
        (tmp_path / MANIFEST_DIR / "manifest").write_text("- a\n- b\n")
        assert read_manifest(tmp_path) == empty_manifest()

    def test_invalid_yaml_warns(self, tmp_path):
        (tmp_path / MANIFEST_DIR).mkdir()
        (tmp_path / MANIFEST_DIR / "manifest").write_text("files: [\n")
        with patch("scaffolder.core.manifest.message") as mock_msg:
            m = read_manifest(tmp_path)
        assert m == empty_manifest()
        assert "could not read manifest" in mock_msg.call_args[0][0]


class TestWriteManifest:

    def test_round_trip(self, tmp_path):
        manifest = empty_manifest()
        manifest["plugins"] = ["typescript"]
        record_file(manifest, "tsconfig.json", ["typescript"], "{}")
        with patch("scaffolder.core.manifest.message"):
            write_manifest(tmp_path, manifest)

        m = read_manifest(tmp_path)
        assert m["plugins"] == ["typescript"]
        assert m["files"] == manifest["files"]
        assert m["generated_at"] is not None

    def test_dump_stamps_time(self):
        manifest = empty_manifest()
        text = dump_manifest(manifest)
        assert manifest["generated_at"] is not None
        assert yaml.safe_load(text)["generated_at"] == manifest["generated_at"]


# ===========================================================================
# Queries
# ===========================================================================
class TestQueries:

    MANIFEST = {
        "files": [
            {"name": "a.ts", "plugins": ["drizzle"], "hash": "x"},
            {"name": ".env", "plugins": ["drizzle", "redis"], "hash": "y"},
        ],
    }

    def test_find_entry(self):
        assert find_entry(self.MANIFEST, "a.ts")["hash"] == "x"
        assert find_entry(self.MANIFEST, "b.ts") is None

    def test_is_managed(self):
        assert is_managed(self.MANIFEST, ".env")
        assert not is_managed(self.MANIFEST, "README.md")

    def test_files_owned_by_sole_owner(self):
        assert files_owned_by(self.MANIFEST, "drizzle") == ["a.ts"]
        assert files_owned_by(self.MANIFEST, "redis") == []

    def test_is_unmodified(self, tmp_path):
        (tmp_path / "a.ts").write_text("generated")
        manifest = {"files": []}
        record_file(manifest, "a.ts", ["drizzle"], "generated")
        assert is_unmodified(manifest, tmp_path, "a.ts")

        (tmp_path / "a.ts").write_text("edited")
        assert not is_unmodified(manifest, tmp_path, "a.ts")

    def test_is_unmodified_unknown_entry(self, tmp_path):
        assert not is_unmodified({"files": []}, tmp_path, "a.ts")


# ===========================================================================
# Updates
# ===========================================================================
class TestRecordFile:

    def test_new_entry(self):
        manifest = empty_manifest()
        record_file(manifest, ".env", ["drizzle", "drizzle"], "A=1")
        assert manifest["files"] == [{"name": ".env", "plugins": ["drizzle"], "hash": content_hash("A=1")}]

    def test_existing_entry_appends_plugins_and_rehashes(self):
        manifest = empty_manifest()
        record_file(manifest, ".env", ["drizzle"], "A=1")
        record_file(manifest, ".env", ["redis", "drizzle"], "A=1\nB=2")
        entry = manifest["files"][0]
        assert entry["plugins"] == ["drizzle", "redis"]
        assert entry["hash"] == content_hash("A=1\nB=2")
        assert len(manifest["files"]) == 1


class TestForgetPlugin:

    def test_returns_orphans_and_keeps_shared(self):
        manifest = {
            "plugins": ["drizzle", "redis"],
            "files": [
                {"name": "drizzle.config.ts", "plugins": ["drizzle"], "hash": "a"},
                {"name": ".env", "plugins": ["drizzle", "redis"], "hash": "b"},
            ],
        }
        orphaned = forget_plugin(manifest, "drizzle")
        assert orphaned == ["drizzle.config.ts"]
        assert manifest["files"] == [{"name": ".env", "plugins": ["redis"], "hash": "b"}]
        assert manifest["plugins"] == ["redis"]

    def test_unknown_plugin_changes_nothing(self):
        manifest = {"plugins": ["a"], "files": [{"name": "x", "plugins": ["a"], "hash": "h"}]}
        assert forget_plugin(manifest, "b") == []
        assert len(manifest["files"]) == 1


class TestRemoveEmptyDirs:

    def test_removes_nested_empty_dirs(self, tmp_path):
        (tmp_path / "src" / "db" / "schema").mkdir(parents=True)
        removed = remove_empty_dirs(tmp_path, ["src/db/schema/users.ts"])
        assert removed == ["src/db/schema", "src/db", "src"]
        assert not (tmp_path / "src").exists()
        assert tmp_path.exists()

    def test_stops_at_non_empty(self, tmp_path):
        (tmp_path / "src" / "db").mkdir(parents=True)
        (tmp_path / "src" / "index.ts").write_text("x")
        removed = remove_empty_dirs(tmp_path, ["src/db/client.ts"])
        assert removed == ["src/db"]
        assert (tmp_path / "src").exists()

    def test_root_level_file(self, tmp_path):
        assert remove_empty_dirs(tmp_path, [".env"]) == []

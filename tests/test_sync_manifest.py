"""Tests for the .shairc manifest store."""

import pytest

from pyshai.exceptions import ManifestNotFoundError, ShaiInvalidInputError
from pyshai.sync.manifest import (
    SyncManifest,
    load_manifest,
    manifest_exists,
    read_manifest_slug,
    remove_manifest,
    save_manifest,
)


class TestManifest:
    """Tests for loading and saving manifests."""

    def test_save_and_load(self, tmp_path):
        manifest = SyncManifest(
            slug="my-config",
            include=[".claude/**"],
            exclude=["**/*.local.*"],
        )

        path = save_manifest(manifest, tmp_path)

        assert path.name == ".shairc"
        assert path.read_text().startswith("# .shairc - Shai configuration\n")
        assert load_manifest(tmp_path) == manifest

    def test_load_handwritten_file(self, tmp_path):
        (tmp_path / ".shairc").write_text(
            "slug: alice/cfg\ninclude:\n  - CLAUDE.md\n"
        )

        manifest = load_manifest(tmp_path)

        assert manifest.slug == "alice/cfg"
        assert manifest.include == ["CLAUDE.md"]
        assert manifest.exclude == []

    def test_missing_manifest(self, tmp_path):
        assert not manifest_exists(tmp_path)
        with pytest.raises(ManifestNotFoundError, match="No .shairc file found"):
            load_manifest(tmp_path)

    def test_missing_slug(self, tmp_path):
        (tmp_path / ".shairc").write_text("include: []\n")

        with pytest.raises(ShaiInvalidInputError, match="Missing required field: slug"):
            load_manifest(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / ".shairc").write_text("slug: [unclosed\n")

        with pytest.raises(ShaiInvalidInputError, match="Invalid .shairc file"):
            load_manifest(tmp_path)

    def test_patterns_must_be_lists(self, tmp_path):
        (tmp_path / ".shairc").write_text("slug: cfg\ninclude: '.claude/**'\n")

        with pytest.raises(ShaiInvalidInputError, match="'include' must be a list"):
            load_manifest(tmp_path)

    def test_read_manifest_slug(self, tmp_path):
        assert read_manifest_slug(tmp_path) == "unknown"
        save_manifest(SyncManifest(slug="cfg"), tmp_path)
        assert read_manifest_slug(tmp_path) == "cfg"

    def test_remove_manifest(self, tmp_path):
        save_manifest(SyncManifest(slug="cfg"), tmp_path)

        assert remove_manifest(tmp_path) is True
        assert remove_manifest(tmp_path) is False
        assert not manifest_exists(tmp_path)

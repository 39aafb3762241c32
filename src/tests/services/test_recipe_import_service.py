"""
Tests for the Recipe Import Service.

Tests cover:
- open_archive() errors (missing file, not a ZIP)
- Manifest validation (missing, invalid, version range, unknown type)
- Per-entry failures do not stop an import
- Export followed by import gives back the exported recipes
- One-way formats are rejected
- Restoring embedded images
"""

import json
import zipfile

import pytest

from barpack.models.cocktail import Cocktail
from barpack.services.database import session_scope
from barpack.services.exceptions import (
    ArchiveCorruptError,
    ArchiveNotFoundError,
    MalformedRecordError,
    UnsupportedExportTypeError,
    UnsupportedVersionError,
)
from barpack.services.external_models import ImageExternal, IngredientUse, RecipeExternal
from barpack.services.recipe_encoders import ExportType, SchemaEncoder
from barpack.services.recipe_export_service import export_bar
from barpack.services.recipe_import_service import (
    import_archive,
    materialize_images,
    open_archive,
    parse_version,
)
from barpack.services.unit_converter import ForceUnits
from barpack.utils.file_storage import LocalFileStorage


def _write_archive(path, manifest, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
        if manifest is not None:
            zf.writestr("_meta.json", json.dumps(manifest) if isinstance(manifest, dict) else manifest)
    return path


def _manifest(version="0.1.0", export_type="schema"):
    return {
        "version": version,
        "date": "2026-01-01T00:00:00+00:00",
        "called_from": "tests",
        "type": export_type,
        "bar_id": 1,
        "units": "original",
        "schema": None,
    }


def _recipe(index):
    return RecipeExternal(
        id=f"sour-{index}",
        name=f"Sour {index}",
        instructions="Shake.",
        ingredients=(IngredientUse(ingredient_id="lemon-juice-1", amount=22.5, units="ml"),),
    )


@pytest.fixture
def mixed_archive(tmp_path):
    """Archive with five valid schema entries and one corrupt entry."""
    encoder = SchemaEncoder()
    entries = {f"cocktails/sour-{i}/recipe.json": encoder.encode(_recipe(i)) for i in range(1, 6)}
    entries["cocktails/broken-6/recipe.json"] = b'{"_id": "broken-6", "name": '
    entries["cocktails/sour-1/sour.jpg"] = b"jpeg"
    return _write_archive(tmp_path / "mixed.zip", _manifest(), entries)


class TestOpenArchive:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ArchiveNotFoundError):
            open_archive(tmp_path / "missing.zip")

    def test_not_a_zip(self, tmp_path):
        path = tmp_path / "bogus.zip"
        path.write_bytes(b"this is not a zip file")

        with pytest.raises(ArchiveCorruptError):
            open_archive(path)


class TestReadManifest:
    def test_valid_manifest(self, mixed_archive):
        with open_archive(mixed_archive) as handle:
            manifest = handle.read_manifest()

        assert manifest.version == "0.1.0"
        assert manifest.export_type is ExportType.SCHEMA
        assert manifest.called_from == "tests"

    def test_missing_manifest(self, tmp_path):
        path = _write_archive(tmp_path / "a.zip", None, {"cocktails/x-1/recipe.json": b"{}"})
        with open_archive(path) as handle, pytest.raises(ArchiveCorruptError):
            handle.read_manifest()

    def test_invalid_manifest_json(self, tmp_path):
        path = _write_archive(tmp_path / "a.zip", "{broken", {})
        with open_archive(path) as handle, pytest.raises(ArchiveCorruptError):
            handle.read_manifest()

    def test_unknown_type(self, tmp_path):
        path = _write_archive(tmp_path / "a.zip", _manifest(export_type="pdf"), {})
        with open_archive(path) as handle, pytest.raises(ArchiveCorruptError):
            handle.read_manifest()

    @pytest.mark.parametrize("version", ["99.0.0", "0.2.0", "0.0.9", "abc", None, ""])
    def test_unsupported_versions(self, tmp_path, version):
        path = _write_archive(tmp_path / "a.zip", _manifest(version=version), {})
        with open_archive(path) as handle, pytest.raises(UnsupportedVersionError) as exc_info:
            handle.read_manifest()
        assert exc_info.value.version == version

    def test_newer_version_decodes_nothing(self, tmp_path):
        entries = {"cocktails/sour-1/recipe.json": SchemaEncoder().encode(_recipe(1))}
        path = _write_archive(tmp_path / "a.zip", _manifest(version="9.0.0"), entries)

        with open_archive(path) as handle:
            with pytest.raises(UnsupportedVersionError):
                handle.load_recipes()
            with pytest.raises(UnsupportedVersionError):
                handle.iter_entries()

    def test_version_follows_running_application(self, tmp_path, monkeypatch):
        from barpack.utils.config import Config, set_config

        monkeypatch.setenv("BARPACK_VERSION", "1.4.0")
        set_config(Config(base_dir=tmp_path / "home"))

        path = _write_archive(tmp_path / "a.zip", _manifest(version="1.2.0"), {})
        with open_archive(path) as handle:
            assert handle.read_manifest().version == "1.2.0"

    def test_parse_version(self):
        assert parse_version("1.10.2") > parse_version("1.9.9")
        with pytest.raises(ValueError):
            parse_version("1.x")


class TestLoadRecipes:
    def test_corrupt_entry_is_reported(self, mixed_archive):
        result = import_archive(mixed_archive)

        assert sorted(r.id for r in result.recipes) == [f"sour-{i}" for i in range(1, 6)]
        assert len(result.failures) == 1
        assert result.failures[0].path == "cocktails/broken-6/recipe.json"
        assert isinstance(result.failures[0].cause, MalformedRecordError)
        assert "Failed:  1" in result.get_summary()

    def test_entry_missing_required_field(self, tmp_path):
        entries = {
            "cocktails/sour-1/recipe.json": SchemaEncoder().encode(_recipe(1)),
            "cocktails/anon/recipe.json": json.dumps({"name": "No id"}).encode(),
        }
        path = _write_archive(tmp_path / "a.zip", _manifest(), entries)

        result = import_archive(path)

        assert [r.id for r in result.recipes] == ["sour-1"]
        assert result.failures[0].path == "cocktails/anon/recipe.json"

    def test_iter_entries_is_lazy_and_repeatable(self, mixed_archive):
        with open_archive(mixed_archive) as handle:
            first = handle.iter_entries()
            second = handle.iter_entries()
            assert next(first)[0] == next(second)[0]
            assert len(list(handle.iter_entries())) == 6

    def test_images_are_not_recipe_entries(self, mixed_archive):
        with open_archive(mixed_archive) as handle:
            names = handle.recipe_entry_names()
        assert "cocktails/sour-1/sour.jpg" not in names

    @pytest.mark.parametrize("export_type", ["markdown", "json-ld"])
    def test_one_way_formats_rejected(self, tmp_path, export_type):
        path = _write_archive(tmp_path / "a.zip", _manifest(export_type=export_type), {})
        with pytest.raises(UnsupportedExportTypeError):
            import_archive(path)


class TestExportImportRoundTrip:
    @pytest.mark.parametrize("export_type", [ExportType.SCHEMA, ExportType.XML, ExportType.YAML])
    @pytest.mark.parametrize("units", [ForceUnits.ORIGINAL, ForceUnits.ML])
    def test_recipes_survive(self, sample_bar, tmp_path, export_type, units):
        exported = export_bar(
            sample_bar["bar_id"], tmp_path / "bar.zip", export_type=export_type, units=units
        )

        with session_scope() as session:
            expected = [
                RecipeExternal.from_model(c, to_units=units)
                for c in session.query(Cocktail).all()
            ]

        result = import_archive(exported.file_path)
        assert result.failures == []
        assert sorted(result.recipes, key=lambda r: r.id) == sorted(expected, key=lambda r: r.id)

    def test_materialize_images(self, sample_bar, tmp_path):
        exported = export_bar(sample_bar["bar_id"], tmp_path / "bar.zip")
        restore = LocalFileStorage(tmp_path / "restored")

        with open_archive(exported.file_path) as handle:
            result = handle.load_recipes()
            recipe = next(r for r in result.recipes if r.name == "Old Fashioned")
            written = materialize_images(handle, recipe, restore, recipe.id)

        assert [p.name for p in written] == [
            "old-fashioned-1.jpg",
            "old-fashioned-2.jpg",
            "old-fashioned-3.png",
        ]
        assert all(p.is_file() for p in written)

    def test_materialize_skips_missing_entries(self, sample_bar, storage, tmp_path):
        storage.resolve_path(sample_bar["old_fashioned_images"][0]).unlink()
        exported = export_bar(sample_bar["bar_id"], tmp_path / "bar.zip")
        restore = LocalFileStorage(tmp_path / "restored")

        with open_archive(exported.file_path) as handle:
            recipe = next(r for r in handle.load_recipes().recipes if r.name == "Old Fashioned")
            written = materialize_images(handle, recipe, restore, "of")

        assert [p.name for p in written] == ["old-fashioned-2.jpg", "old-fashioned-3.png"]


class TestMaterializeImagePaths:
    def _hostile_archive(self, tmp_path, recipe_id, uri="pwn.txt"):
        recipe = RecipeExternal(id=recipe_id, name="Evil", images=(ImageExternal(uri=uri),))
        entries = {
            "cocktails/evil-1/recipe.json": SchemaEncoder().encode(recipe),
            f"cocktails/{recipe_id}/{uri}": b"payload",
        }
        return _write_archive(tmp_path / "evil.zip", _manifest(), entries)

    @pytest.mark.parametrize("recipe_id", ["absolute", "../escape", "nested/dir", ".."])
    def test_unsafe_recipe_id_is_skipped(self, tmp_path, caplog, recipe_id):
        if recipe_id == "absolute":
            recipe_id = str(tmp_path / "outside")
        archive = self._hostile_archive(tmp_path, recipe_id)
        restore = LocalFileStorage(tmp_path / "restore")

        with caplog.at_level("WARNING", logger="barpack.services.recipe_import_service"):
            with open_archive(archive) as handle:
                recipe = handle.load_recipes().recipes[0]
                written = materialize_images(handle, recipe, restore, recipe.id)

        assert written == []
        assert not (tmp_path / "outside").exists()
        assert not (tmp_path / "escape").exists()
        assert "unsafe_path" in caplog.text

    def test_unsafe_file_name_is_skipped(self, tmp_path, caplog):
        archive = self._hostile_archive(tmp_path, "evil-1", uri="..\\pwn.txt")
        restore = LocalFileStorage(tmp_path / "restore")

        with caplog.at_level("WARNING", logger="barpack.services.recipe_import_service"):
            with open_archive(archive) as handle:
                recipe = handle.load_recipes().recipes[0]
                written = materialize_images(handle, recipe, restore, recipe.id)

        assert written == []
        assert "unsafe_path" in caplog.text

    def test_unsafe_target_dir_is_skipped(self, tmp_path, caplog):
        archive = self._hostile_archive(tmp_path, "evil-1")
        restore = LocalFileStorage(tmp_path / "restore")

        with caplog.at_level("WARNING", logger="barpack.services.recipe_import_service"):
            with open_archive(archive) as handle:
                recipe = handle.load_recipes().recipes[0]
                written = materialize_images(handle, recipe, restore, "../outside")

        assert written == []
        assert not (tmp_path / "outside").exists()
        assert "unsafe_path" in caplog.text

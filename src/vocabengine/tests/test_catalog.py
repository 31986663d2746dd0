"""Tests for the word catalog."""
import json

import pytest
from faker import Faker

from vocabengine.errors import CatalogLoadError
from vocabengine.models.word_models import Direction, Word
from vocabengine.services.catalog import WordCatalog

fake = Faker()


@pytest.fixture
def catalog_data() -> dict:
    """Create catalog data in the JSON file layout."""
    return {
        "de": {
            "words": [
                {"id": "de-haus", "term": "Haus", "definition": "house",
                 "context": {"sentence": "Das Haus ist alt.", "translation": "The house is old."}},
                {"id": "de-baum", "term": "Baum", "definition": "tree", "level": 2},
                {"term": fake.word(), "definition": fake.word(), "direction": "definition-to-term"},
            ],
            "modules": {"basics": ["de-haus", "de-baum"]},
        },
        "es": {
            "words": [{"id": "es-casa", "term": "casa", "definition": "house", "module": "basics"}],
        },
    }


def test_from_dict(catalog_data: dict):
    """Test building a catalog from plain data."""
    catalog = WordCatalog.from_dict(catalog_data)

    assert len(catalog) == 4
    assert catalog.languages() == ["de", "es"]
    assert catalog.modules("de") == ["basics"]
    assert [w.id for w in catalog.words_for("de", "basics")] == ["de-haus", "de-baum"]
    assert len(catalog.words_for("de")) == 3
    assert "de-2" in catalog
    assert catalog.get("de-2").direction == Direction.DEFINITION_TO_TERM
    assert catalog.get("de-haus").has_context
    assert not catalog.get("de-baum").has_context
    assert catalog.get("de-baum").level == 2
    assert catalog.words_for("es", "basics")[0].id == "es-casa"


def test_unknown_scope_is_empty(catalog_data: dict):
    """Test that unknown languages and modules yield no words."""
    catalog = WordCatalog.from_dict(catalog_data)
    assert catalog.words_for("fr") == []
    assert catalog.words_for("de", "advanced") == []
    assert catalog.get("missing") is None


def test_from_json(tmp_path, catalog_data: dict):
    """Test loading a catalog file."""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_data), encoding="utf-8")

    catalog = WordCatalog.from_json(path)

    assert len(catalog) == 4


def test_invalid_files_raise(tmp_path):
    """Test that unreadable catalogs raise CatalogLoadError."""
    with pytest.raises(CatalogLoadError):
        WordCatalog.from_json(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(CatalogLoadError):
        WordCatalog.from_json(broken)

    listing = tmp_path / "list.json"
    listing.write_text("[]", encoding="utf-8")
    with pytest.raises(CatalogLoadError):
        WordCatalog.from_json(listing)


def test_invalid_words_raise():
    """Test that malformed entries raise CatalogLoadError."""
    with pytest.raises(CatalogLoadError):
        WordCatalog.from_dict({"de": {"words": [{"term": "Haus"}]}})
    with pytest.raises(CatalogLoadError):
        WordCatalog.from_dict({"de": ["Haus"]})


def test_duplicate_ids_rejected():
    """Test that word ids must be unique."""
    word = Word(id="x", term="a", definition="b", language="de")
    with pytest.raises(ValueError):
        WordCatalog([word, word])


if __name__ == "__main__":
    pytest.main([__file__])

"""Tests for configuration settings."""
import pytest

from vocabengine.config import (
    GroupSettings,
    MasterySettings,
    SelectionSettings,
    Settings,
    ensure_directories,
    settings,
)


def test_directories_are_created(tmp_path, mocker):
    """Test that ensure_directories creates the data layout."""
    data_dir = tmp_path / "data"
    mocker.patch("vocabengine.config.DATA_DIR", data_dir)
    mocker.patch("vocabengine.config.CATALOGS_DIR", data_dir / "catalogs")

    ensure_directories()

    assert data_dir.exists()
    assert (data_dir / "catalogs").exists()


def test_settings_defaults():
    """Test default settings values."""
    assert settings.mastery.review_interval_hours == [4, 24, 72, 168]
    assert settings.mastery.max_mastery == 100.0
    assert settings.selection.recent_window_size == 8
    assert settings.selection.max_recent_window_size == 50
    assert settings.selection.used_set_cap == 100
    assert settings.selection.weight_decay == 0.5
    assert settings.groups.cache_expiry_hours == 24
    assert settings.groups.ideal_group_size == 6
    assert settings.groups.max_review_words == 3


def test_settings_sections_are_independent():
    """Test that each Settings instance gets its own mutable sections."""
    first = Settings()
    second = Settings()
    first.mastery.review_interval_hours.append(720)

    assert second.mastery.review_interval_hours == [4, 24, 72, 168]
    second.validate()


@pytest.mark.parametrize("intervals", [[4, 24, 72], [0, 24, 72, 168], [24, 4, 72, 168]])
def test_invalid_intervals_rejected(intervals):
    """Test that malformed review intervals fail validation."""
    with pytest.raises(ValueError):
        Settings(mastery=MasterySettings(review_interval_hours=intervals)).validate()


def test_invalid_selection_settings_rejected():
    """Test that the recent window cannot exceed its hard limit."""
    with pytest.raises(ValueError):
        Settings(selection=SelectionSettings(recent_window_size=60, max_recent_window_size=50)).validate()
    with pytest.raises(ValueError):
        Settings(selection=SelectionSettings(weight_decay=0)).validate()


def test_invalid_group_sizes_rejected():
    """Test that group sizes must be ordered."""
    with pytest.raises(ValueError):
        Settings(groups=GroupSettings(min_group_size=8, ideal_group_size=6, max_group_size=7)).validate()


if __name__ == "__main__":
    pytest.main([__file__])

import dataclasses

import pytest

from src.overlay.models import (
    DEFAULT_SETTINGS,
    MODE_CONFIGS,
    ContainerBounds,
    DisplayMode,
    OverlaySettings,
)


def test_defaults():
    assert DEFAULT_SETTINGS.to_dict() == {
        "fontSize": 14,
        "messageWidth": 300,
        "opacity": 0.8,
        "showUsername": True,
        "design": "topRight",
        "maxMessages": 200,
    }


def test_mode_table():
    assert MODE_CONFIGS[DisplayMode.BOTTOM_BUBBLE].max_body_length == 30
    assert MODE_CONFIGS[DisplayMode.BOTTOM_BUBBLE].layout == "bubble"
    for mode in (DisplayMode.TOP_RIGHT, DisplayMode.TOP_LEFT, DisplayMode.BOTTOM_RIGHT, DisplayMode.BOTTOM_LEFT):
        assert MODE_CONFIGS[mode].max_body_length == 200
        assert MODE_CONFIGS[mode].layout == "stack"
    assert {c.visible_duration_ms for c in MODE_CONFIGS.values()} == {5000}


def test_settings_are_immutable_snapshots():
    changed = DEFAULT_SETTINGS.with_changes(max_visible=3)

    assert changed.max_visible == 3
    assert DEFAULT_SETTINGS.max_visible == 200
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_SETTINGS.opacity = 0.1


def test_settings_are_normalized():
    settings = OverlaySettings(opacity=3, max_visible=0, mode="bottomBubble")

    assert settings.opacity == 1.0
    assert settings.max_visible == 1
    assert settings.mode is DisplayMode.BOTTOM_BUBBLE


def test_from_dict_round_trip_and_fallbacks():
    stored = OverlaySettings(font_size_px=18, mode=DisplayMode.BOTTOM_LEFT, show_author=False).to_dict()

    assert OverlaySettings.from_dict(stored) == OverlaySettings(
        font_size_px=18, mode=DisplayMode.BOTTOM_LEFT, show_author=False
    )

    broken = OverlaySettings.from_dict({"design": "sideways", "fontSize": "big", "showUsername": "yes", "opacity": 0.5})
    assert broken.mode is DisplayMode.TOP_RIGHT
    assert broken.font_size_px == 14
    assert broken.show_author is True
    assert broken.opacity == 0.5


def test_container_bounds_measurable():
    assert ContainerBounds(10, 10).is_measurable
    assert not ContainerBounds(0, 10).is_measurable

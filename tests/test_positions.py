"""Tests for per-template slide geometry."""

import pytest

from aso_forge.models import ContentMode, ScreenshotTemplate, TextAlign, default_position
from aso_forge.positions import (
    POSITION_FIELDS,
    get_position,
    new_slide,
    reset_position,
    reset_position_field,
    set_template,
    update_position,
)


class TestPositions:
    """Tests for position editing."""

    def setup_method(self):
        """Set up test fixtures."""
        self.slide = new_slide("s1", headline="Save Tabs", template=ScreenshotTemplate.DEVICE)

    def test_new_slide_defaults(self):
        assert self.slide.content_mode == ContentMode.SCREENSHOT
        assert self.slide.text_align == TextAlign.LEFT
        for template in ScreenshotTemplate:
            assert get_position(self.slide, template) == default_position(template)

    @pytest.mark.parametrize("field", ["scale", "x", "rotate", "img_zoom", "text_y", "headline_size"])
    def test_patch_touches_only_active_template(self, field):
        """Test one field of one template changes and every other template stays put."""
        before = {t: get_position(self.slide, t) for t in ScreenshotTemplate}

        updated = update_position(self.slide, **{field: 7.5})

        assert getattr(get_position(updated), field) == 7.5
        for template in ScreenshotTemplate:
            if template != ScreenshotTemplate.DEVICE:
                assert get_position(updated, template) == before[template]
        for other in POSITION_FIELDS:
            if other != field:
                assert getattr(get_position(updated), other) == getattr(before[ScreenshotTemplate.DEVICE], other)

    def test_input_slide_is_not_mutated(self):
        update_position(self.slide, x=99)
        assert get_position(self.slide).x == 40.0

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown position field"):
            update_position(self.slide, zoomies=2)

    def test_switching_templates_keeps_positions(self):
        """Test adjustments survive switching to another template and back."""
        slide = update_position(self.slide, scale=1.4, rotate=-6)
        slide = set_template(slide, ScreenshotTemplate.SPLIT)
        slide = update_position(slide, y=25)
        slide = set_template(slide, ScreenshotTemplate.DEVICE)

        device = get_position(slide)
        assert (device.scale, device.rotate, device.y) == (1.4, -6, 0.0)
        assert get_position(slide, ScreenshotTemplate.SPLIT).y == 25

    def test_reset_single_field(self):
        slide = update_position(self.slide, x=10, scale=2.0)
        slide = reset_position_field(slide, "x")
        assert get_position(slide).x == 40.0
        assert get_position(slide).scale == 2.0

    def test_reset_whole_template(self):
        slide = set_template(self.slide, ScreenshotTemplate.MINIMAL)
        slide = update_position(slide, x=10, show_logo=False)
        slide = update_position(set_template(slide, ScreenshotTemplate.DEVICE), x=5)
        slide = reset_position(set_template(slide, ScreenshotTemplate.MINIMAL))

        assert get_position(slide) == default_position(ScreenshotTemplate.MINIMAL)
        assert get_position(slide, ScreenshotTemplate.DEVICE).x == 5

    def test_reset_unknown_field(self):
        with pytest.raises(ValueError):
            reset_position_field(self.slide, "nope")

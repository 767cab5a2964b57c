"""Per-template geometry of store graphic slides.

Every slide stores one ``ImagePosition`` per template. All edits target the
slide's active template only, so switching templates never loses the
adjustments made under another one. Functions return updated copies and
leave their input untouched.
"""

import logging
from typing import Any, Optional

from .models import (
    ContentMode,
    ImagePosition,
    ScreenshotData,
    ScreenshotTemplate,
    TemplatePositions,
    TextAlign,
    default_position,
)

logger = logging.getLogger(__name__)

POSITION_FIELDS = tuple(ImagePosition.model_fields)


def new_slide(
    slide_id: str,
    preview_url: str = "",
    headline: str = "",
    subheadline: str = "",
    highlight_text: str = "",
    template: ScreenshotTemplate = ScreenshotTemplate.DEVICE,
    content_mode: ContentMode = ContentMode.SCREENSHOT,
    text_align: TextAlign = TextAlign.LEFT,
    natural_width: int = 0,
    natural_height: int = 0,
    source_file: Optional[str] = None,
) -> ScreenshotData:
    """Create a slide with default geometry for every template."""
    return ScreenshotData(
        id=slide_id,
        source_file=source_file,
        preview_url=preview_url,
        headline=headline,
        subheadline=subheadline,
        highlight_text=highlight_text,
        template=template,
        content_mode=content_mode,
        text_align=text_align,
        natural_width=natural_width,
        natural_height=natural_height,
        positions=TemplatePositions(),
    )


def get_position(slide: ScreenshotData, template: Optional[ScreenshotTemplate] = None) -> ImagePosition:
    """Geometry of ``slide`` under ``template`` (its active template by default)."""
    return slide.positions.get(template or slide.template)


def _with_position(slide: ScreenshotData, position: ImagePosition) -> ScreenshotData:
    positions = slide.positions.model_copy(update={slide.template.value: position})
    return slide.model_copy(update={"positions": positions})


def update_position(slide: ScreenshotData, **changes: Any) -> ScreenshotData:
    """
    Patch fields of the active template's position.

    Args:
        slide: Slide to update
        **changes: ``ImagePosition`` field values

    Returns:
        Updated copy of the slide

    Raises:
        ValueError: If a field name is not part of ``ImagePosition``
    """
    unknown = set(changes) - set(POSITION_FIELDS)
    if unknown:
        raise ValueError(f"Unknown position field(s): {', '.join(sorted(unknown))}")

    current = get_position(slide)
    updated = ImagePosition.model_validate({**current.model_dump(), **changes})
    return _with_position(slide, updated)


def reset_position_field(slide: ScreenshotData, field: str) -> ScreenshotData:
    """Restore one field of the active template's position to its default."""
    if field not in POSITION_FIELDS:
        raise ValueError(f"Unknown position field: {field}")
    default_value = getattr(default_position(slide.template), field)
    return update_position(slide, **{field: default_value})


def reset_position(slide: ScreenshotData) -> ScreenshotData:
    """Restore the whole active template's position to its defaults."""
    return _with_position(slide, default_position(slide.template))


def set_template(slide: ScreenshotData, template: ScreenshotTemplate) -> ScreenshotData:
    """Switch the active template; stored positions are kept as they are."""
    template = ScreenshotTemplate(template)
    logger.debug(f"Slide {slide.id}: template {slide.template.value} -> {template.value}")
    return slide.model_copy(update={"template": template})

"""Sequential rendering of every store graphic in a project."""

import asyncio
import logging
from typing import Callable, List, Optional

from .compositor import JPEG_QUALITY_BATCH, RenderSpec, image_to_data_url, render
from .models import GraphicCategory, ProjectState, ScreenshotData

logger = logging.getLogger(__name__)

RENDER_ORDER = (GraphicCategory.SCREENSHOTS, GraphicCategory.SMALL_TILE, GraphicCategory.MARQUEE)

ProgressCallback = Callable[[GraphicCategory, ScreenshotData], None]


def render_slide(project: ProjectState, slide: ScreenshotData, category: GraphicCategory, quality: int) -> ScreenshotData:
    """Render one slide and return a copy carrying the JPEG data URL."""
    image = render(RenderSpec.for_project(project, slide, category))
    return slide.model_copy(update={"rendered_url": image_to_data_url(image, "JPEG", quality)})


async def render_all(
    project: ProjectState,
    quality: int = JPEG_QUALITY_BATCH,
    on_progress: Optional[ProgressCallback] = None,
) -> ProjectState:
    """
    Render screenshots, then small tiles, then marquees, one at a time.

    A slide that fails to render keeps its previous state and the batch
    carries on.

    Args:
        project: Project whose collections are rendered
        quality: JPEG quality of the rendered outputs
        on_progress: Called with each slide before it is rendered

    Returns:
        Project copy with updated ``rendered_url`` values
    """
    updates = {}
    rendered = failed = 0

    for category in RENDER_ORDER:
        slides: List[ScreenshotData] = []
        for slide in project.collection(category):
            if on_progress is not None:
                on_progress(category, slide)
            try:
                slides.append(render_slide(project, slide, category, quality))
                rendered += 1
            except Exception as e:
                logger.error(f"Failed to render {category.value} slide {slide.id}: {e}")
                slides.append(slide)
                failed += 1
            await asyncio.sleep(0)
        updates[_collection_field(category)] = slides

    logger.info(f"Rendered {rendered} store graphics ({failed} failed)")
    return project.model_copy(update=updates)


def _collection_field(category: GraphicCategory) -> str:
    return {
        GraphicCategory.SCREENSHOTS: "screenshots",
        GraphicCategory.SMALL_TILE: "small_tiles",
        GraphicCategory.MARQUEE: "marquees",
    }[category]

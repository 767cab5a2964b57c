"""Rounded multi-size icon export."""

import logging
from typing import Dict, List

from PIL import Image

from .compositor import decode_image, encode_image, image_to_data_url, rounded_mask
from .models import AssetUsage, GeneratedAsset

logger = logging.getLogger(__name__)

MAIN_ICON_SIZE = 1024
ICON_SIZES = [128, 48, 32, 16]
CORNER_RADIUS_RATIO = 0.22


def round_icon(source: Image.Image, size: int) -> Image.Image:
    """
    Resize ``source`` to a ``size`` square and round its corners.

    The mask is rasterised at the target size, so the rounding stays crisp
    and proportional at every resolution.
    """
    icon = source.convert("RGBA").resize((size, size), Image.Resampling.LANCZOS)
    mask = rounded_mask((size, size), size * CORNER_RADIUS_RATIO)
    rounded = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    rounded.paste(icon, (0, 0), mask)
    return rounded


def icon_file_name(size: int, main: bool = False) -> str:
    if main:
        return f"icon_main_{size}.png"
    return f"icon_{size}x{size}.png"


def export_icon_set(source: Image.Image) -> Dict[str, bytes]:
    """Render the main icon plus every resized variant as PNG files keyed by file name."""
    files = {icon_file_name(MAIN_ICON_SIZE, main=True): encode_image(round_icon(source, MAIN_ICON_SIZE), "PNG")}
    for size in ICON_SIZES:
        files[icon_file_name(size)] = encode_image(round_icon(source, size), "PNG")
    logger.debug(f"Exported icon set: {', '.join(files)}")
    return files


def resized_icon_assets(main_icon: GeneratedAsset) -> List[GeneratedAsset]:
    """Derive the ``ICON_RESIZED`` assets for a main icon."""
    source = decode_image(main_icon.url)
    assets = []
    for size in ICON_SIZES:
        assets.append(
            GeneratedAsset(
                id=f"icon-{size}",
                usage=AssetUsage.ICON_RESIZED,
                url=image_to_data_url(round_icon(source, size)),
                prompt_used=main_icon.prompt_used,
                dimensions=f"{size}x{size}",
            )
        )
    return assets

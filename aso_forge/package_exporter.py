"""Zip packaging of the finished store listing."""

import io
import json
import logging
import re
import zipfile
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from .ai_client import InlineImage
from .compositor import decode_image
from .icon_exporter import export_icon_set
from .models import ProjectState, ScreenshotData

logger = logging.getLogger(__name__)


class ExportSubset(str, Enum):
    """Partial exports; both omit the text assets."""

    ICONS = "ICONS"
    BANNERS = "BANNERS"


def project_slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return slug or "extension"


def archive_name(project: ProjectState, subset: Optional[ExportSubset] = None) -> str:
    slug = project_slug(project.display_name)
    if subset is None:
        return f"{slug}_complete_package.zip"
    return f"{slug}_{ExportSubset(subset).value.lower()}.zip"


def listing_metadata(project: ProjectState) -> Dict[str, object]:
    """Structured summary of the listing written as ``metadata.json``."""
    analysis = project.analysis
    return {
        "name": project.display_name,
        "tagline": project.selected_name.tagline if project.selected_name else "",
        "category": analysis.category if analysis else "",
        "keywords": list(analysis.primary_keywords) if analysis else [],
        "features": list(analysis.core_features) if analysis else [],
        "audience": analysis.target_audience if analysis else "",
    }


def _rendered_files(slides: List[ScreenshotData], folder: str, prefix: str) -> Dict[str, bytes]:
    files = {}
    rendered = [s for s in slides if s.rendered_url]
    for number, slide in enumerate(rendered, start=1):
        files[f"{folder}/{prefix}_{number}.jpg"] = InlineImage.from_data_url(slide.rendered_url).data
    return files


def package_files(project: ProjectState, subset: Optional[ExportSubset] = None) -> Dict[str, bytes]:
    """
    Collect every archive entry as ``{path: bytes}``.

    Only slides with a rendered image are included; unrendered drafts are
    left out of the package.
    """
    files: Dict[str, bytes] = {}
    include_text = subset is None
    include_icons = subset in (None, ExportSubset.ICONS)
    include_graphics = subset in (None, ExportSubset.BANNERS)

    if include_text:
        short = project.selected_short_description.text if project.selected_short_description else ""
        files["text_assets/short_description.txt"] = short.encode("utf-8")
        files["text_assets/store_listing.md"] = (project.full_description or "").encode("utf-8")
        files["text_assets/privacy_policy.md"] = (project.privacy_policy or "").encode("utf-8")
        files["text_assets/metadata.json"] = json.dumps(listing_metadata(project), indent=2).encode("utf-8")

    if include_icons:
        main_icon = project.main_icon()
        if main_icon is not None:
            for name, data in export_icon_set(decode_image(main_icon.url)).items():
                files[f"icons/{name}"] = data
        else:
            logger.warning("Project has no main icon; icons/ will be empty")

    if include_graphics:
        files.update(_rendered_files(project.marquees, "promo_graphics", "marquee"))
        files.update(_rendered_files(project.small_tiles, "promo_graphics", "small_promo"))
        files.update(_rendered_files(project.screenshots, "screenshots", "screenshot"))

    return files


def build_archive(project: ProjectState, subset: Optional[ExportSubset] = None) -> bytes:
    """Build the zip archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path, data in package_files(project, subset).items():
            archive.writestr(path, data)
    return buffer.getvalue()


def export_package(
    project: ProjectState,
    output_dir: Union[str, Path],
    subset: Optional[ExportSubset] = None,
) -> Path:
    """
    Write the listing archive to ``output_dir``.

    Args:
        project: Project to package
        output_dir: Destination directory (created if needed)
        subset: Export only icons or only banners

    Returns:
        Path of the written archive
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / archive_name(project, subset)
    path.write_bytes(build_archive(project, subset))
    logger.info(f"Exported package to {path}")
    return path

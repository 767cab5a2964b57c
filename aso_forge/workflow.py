"""The listing wizard: one active project, its generation steps and autosave."""

import io
import logging
import time
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from openai import AsyncOpenAI
from PIL import Image

from .ai_client import GenerationClient, InlineImage
from .batch_renderer import render_all
from .brand_generator import BrandGenerator
from .compositor import JPEG_QUALITY_SINGLE, RenderSpec, encode_image, image_to_data_url, render
from .config import ForgeConfig
from .copy_generator import CopyGenerator, rank_candidates
from .icon_exporter import MAIN_ICON_SIZE, resized_icon_assets
from .idea_analyzer import IdeaAnalyzer
from .image_generator import ImageGenerator
from .models import (
    AnalysisResult,
    AssetType,
    AssetUsage,
    BrandIdentity,
    ContentMode,
    GeneratedAsset,
    GeneratedName,
    GraphicCategory,
    ProjectState,
    ScoredDescription,
    ScreenshotData,
    ScreenshotTemplate,
    StoreGraphicsPreferences,
    TextAlign,
)
from .package_exporter import ExportSubset, export_package
from .positions import new_slide, reset_position, reset_position_field, set_template, update_position
from .project_store import DebouncedSaver, ProjectStore

logger = logging.getLogger(__name__)

UNTITLED_PROJECT = "Untitled Project"
DEFAULT_TILE_DESCRIPTION = "Boost your productivity with AI tools."
DEFAULT_TILE_CLOSER = "Install now for free."
DEFAULT_SLIDE_SUBHEADLINE = "Boost your productivity today."
DEFAULT_NATURAL_SIZE = 512


class WizardStep(str, Enum):
    """Wizard steps in the order a project moves through them."""

    INPUT_ANALYSIS = "INPUT_ANALYSIS"
    NAMING = "NAMING"
    SHORT_DESCRIPTION = "SHORT_DESCRIPTION"
    BRAND_ASSETS = "BRAND_ASSETS"
    DESCRIPTION = "DESCRIPTION"
    STORE_GRAPHICS = "STORE_GRAPHICS"
    PRIVACY = "PRIVACY"
    FINALIZE = "FINALIZE"


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_project(now_ms: Optional[int] = None) -> ProjectState:
    """An empty project with a time-based id."""
    return ProjectState(id=f"proj_{now_ms if now_ms is not None else _now_ms()}", name=UNTITLED_PROJECT)


def resume_step(project: ProjectState) -> WizardStep:
    """The step to reopen a project at, judged from the data it already has."""
    if project.privacy_policy:
        return WizardStep.FINALIZE
    if project.generated_assets:
        return WizardStep.STORE_GRAPHICS
    if project.selected_short_description:
        return WizardStep.BRAND_ASSETS
    if project.selected_name:
        return WizardStep.SHORT_DESCRIPTION
    if project.analysis:
        return WizardStep.NAMING
    return WizardStep.INPUT_ANALYSIS


def default_screenshots(project: ProjectState, timestamp: Optional[int] = None) -> List[ScreenshotData]:
    """Three logo-based screenshots: name and tagline, features, call to action."""
    timestamp = timestamp if timestamp is not None else _now_ms()
    icon = project.main_icon()
    name = project.selected_name
    headlines = [
        (name.name if name else "Headline", name.tagline if name else "Tagline"),
        ("Powerful Features", DEFAULT_SLIDE_SUBHEADLINE),
        ("Install Now", DEFAULT_SLIDE_SUBHEADLINE),
    ]
    return [
        new_slide(
            f"def_{GraphicCategory.SCREENSHOTS.value}_{timestamp}_{i}",
            preview_url=icon.url if icon else "",
            headline=headline,
            subheadline=subheadline,
            content_mode=ContentMode.ICON,
            natural_width=DEFAULT_NATURAL_SIZE,
            natural_height=DEFAULT_NATURAL_SIZE,
        )
        for i, (headline, subheadline) in enumerate(headlines)
    ]


def default_marquee(source: ScreenshotData, timestamp: Optional[int] = None) -> ScreenshotData:
    """A SPLIT marquee sharing the content of ``source`` but with its own geometry."""
    timestamp = timestamp if timestamp is not None else _now_ms()
    slide = new_slide(
        f"def_{GraphicCategory.MARQUEE.value}_{timestamp}_0",
        preview_url=source.preview_url,
        headline=source.headline,
        subheadline=source.subheadline,
        highlight_text=source.highlight_text,
        template=ScreenshotTemplate.SPLIT,
        content_mode=source.content_mode,
        natural_width=source.natural_width,
        natural_height=source.natural_height,
        source_file=source.source_file,
    )
    return slide


def small_tile(tile_id: str, headline: str, subheadline: str = "") -> ScreenshotData:
    return new_slide(
        tile_id,
        headline=headline,
        subheadline=subheadline,
        template=ScreenshotTemplate.CENTERED,
        text_align=TextAlign.CENTER,
        natural_width=DEFAULT_NATURAL_SIZE,
        natural_height=DEFAULT_NATURAL_SIZE,
    )


def default_small_tiles(project: ProjectState, timestamp: Optional[int] = None) -> List[ScreenshotData]:
    """Name and tagline, then the short description split over two tiles."""
    timestamp = timestamp if timestamp is not None else _now_ms()
    name = project.selected_name
    description = (
        project.selected_short_description.text if project.selected_short_description else ""
    ) or DEFAULT_TILE_DESCRIPTION
    words = description.split(" ")
    first = " ".join(words[:5])
    second = " ".join(words[5:10]) if len(words) > 5 else DEFAULT_TILE_CLOSER
    return [
        small_tile(f"st_{timestamp}_1", name.name if name else "App Name", name.tagline if name else ""),
        small_tile(f"st_{timestamp}_2", first),
        small_tile(f"st_{timestamp}_3", second),
    ]


def image_size(data: bytes) -> Tuple[int, int]:
    """Pixel size of an encoded image."""
    with Image.open(io.BytesIO(data)) as img:
        return img.size


class Forge:
    """The generation services used by a session, sharing one client."""

    def __init__(self, client: GenerationClient, styles: Optional[Dict[str, Any]] = None):
        self.client = client
        self.analyzer = IdeaAnalyzer(client)
        self.copy = CopyGenerator(client)
        self.brand = BrandGenerator(client)
        self.images = ImageGenerator(client, styles)

    @classmethod
    def from_config(cls, config: ForgeConfig) -> "Forge":
        """
        Build the services from configuration.

        Raises:
            ValueError: If no OpenAI API key is configured
        """
        if not config.openai_api_key:
            raise ValueError("OPENAI_API_KEY is not set")
        client = GenerationClient(
            AsyncOpenAI(api_key=config.openai_api_key),
            text_model=config.text_model,
            image_model=config.image_model,
        )
        return cls(client)


class ProjectSession:
    """
    Holds the single active project.

    Every step applies a partial update to the project and schedules a
    debounced save, so a burst of edits ends in one write of the latest
    state.
    """

    def __init__(
        self,
        project: ProjectState,
        store: Optional[ProjectStore] = None,
        forge: Optional[Forge] = None,
        save_delay: float = 1.0,
    ):
        self.project = project
        self.forge = forge
        self.saver = DebouncedSaver(store, save_delay) if store is not None else None

    def _services(self) -> Forge:
        if self.forge is None:
            raise RuntimeError("This session has no generation services configured")
        return self.forge

    def _require_analysis(self) -> AnalysisResult:
        if self.project.analysis is None:
            raise ValueError("Analyze the project idea first")
        return self.project.analysis

    def update(self, **changes: Any) -> ProjectState:
        """Apply a partial update to the project and schedule a save."""
        self.project = self.project.model_copy(update=changes)
        if self.saver is not None:
            self.saver.schedule(self.project)
        return self.project

    async def close(self) -> None:
        """Write any pending save immediately."""
        if self.saver is not None:
            await self.saver.flush()

    # --- Text steps ---

    async def analyze(self, idea_text: str) -> AnalysisResult:
        analysis = await self._services().analyzer.analyze(idea_text)
        self.update(analysis=analysis, description_input=idea_text)
        return analysis

    async def generate_names(self) -> List[GeneratedName]:
        """Generate name candidates; they replace any earlier list."""
        names = await self._services().copy.generate_names(self._require_analysis())
        self.update(generated_names=names)
        return names

    def select_name(self, name: GeneratedName) -> None:
        self.update(selected_name=name, name=name.name)

    async def generate_short_descriptions(self) -> List[ScoredDescription]:
        """Generate ranked short descriptions; they replace any earlier list."""
        if self.project.selected_name is None:
            raise ValueError("Select a name first")
        descriptions = await self._services().copy.generate_short_descriptions(
            self._require_analysis(), self.project.selected_name.name
        )
        ranked = rank_candidates(descriptions)
        self.update(generated_short_descriptions=ranked)
        return ranked

    def select_short_description(self, description: ScoredDescription) -> None:
        self.update(selected_short_description=description)

    async def generate_long_description(self) -> str:
        short = self.project.selected_short_description
        text = await self._services().copy.generate_long_description(
            self._require_analysis(), self.project.display_name, short.text if short else ""
        )
        self.update(full_description=text)
        return text

    async def generate_privacy_policy(
        self, manifest: Optional[Dict[str, Any]] = None, today: Optional[date] = None
    ) -> str:
        if manifest is not None:
            self.update(manifest=manifest)
        policy = await self._services().copy.generate_privacy_policy(
            self.project.display_name, self._require_analysis(), self.project.manifest, today
        )
        self.update(privacy_policy=policy)
        return policy

    async def enhance_privacy_policy(self, today: Optional[date] = None) -> str:
        if not self.project.privacy_policy:
            raise ValueError("Generate a privacy policy first")
        policy = await self._services().copy.enhance_privacy_policy(
            self.project.privacy_policy, self.project.display_name, today
        )
        self.update(privacy_policy=policy)
        return policy

    # --- Brand and icon ---

    async def generate_brand(self, guidance: Optional[str] = None) -> BrandIdentity:
        identity = await self._services().brand.generate(
            self._require_analysis(), self.project.display_name, guidance
        )
        self.update(brand_identity=identity)
        return identity

    async def generate_icon(
        self,
        style: Optional[str] = None,
        user_subject: Optional[str] = None,
        reference_image: Optional[InlineImage] = None,
        background_override: Optional[str] = None,
        subject_override: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> List[InlineImage]:
        """
        Draft a prompt (unless given), render logo variants and adopt the first.

        The chosen variant becomes the main icon, the resized icon set is
        derived from it, and default store graphics are seeded when the
        project has none yet.

        Returns:
            Every rendered variant
        """
        forge = self._services()
        analysis = self._require_analysis()
        style = style or self.project.visual_style.value

        style_reference = None
        if reference_image is not None:
            style_reference = await forge.images.analyze_style_reference(reference_image)

        if prompt is None:
            prompt = await forge.images.draft_image_prompt(
                style,
                analysis,
                self.project.display_name,
                asset_type=AssetType.ICON,
                brand=self.project.brand_identity,
                style_reference=style_reference,
                user_subject=user_subject,
                background_override=background_override,
                subject_override=subject_override,
            )

        variants = await forge.images.generate_logo_variants(prompt, reference_image=reference_image)
        self.adopt_icon(variants[0], prompt)
        return variants

    def adopt_icon(self, image: InlineImage, prompt: str = "") -> GeneratedAsset:
        """Make ``image`` the main icon and regenerate the resized set."""
        main = GeneratedAsset(
            id="icon-main",
            usage=AssetUsage.ICON_MAIN,
            url=image.to_data_url(),
            prompt_used=prompt,
            dimensions=f"{MAIN_ICON_SIZE}x{MAIN_ICON_SIZE}",
        )
        others = [
            a for a in self.project.generated_assets
            if a.usage not in (AssetUsage.ICON_MAIN, AssetUsage.ICON_RESIZED)
        ]
        self.update(generated_assets=[main, *resized_icon_assets(main), *others])
        self.ensure_default_graphics()
        return main

    # --- Store graphics ---

    def ensure_default_graphics(self) -> None:
        """Seed empty collections with the default slides."""
        timestamp = _now_ms()
        changes: Dict[str, Any] = {}
        screenshots = self.project.screenshots
        if not screenshots:
            screenshots = default_screenshots(self.project, timestamp)
            changes["screenshots"] = screenshots
        if not self.project.marquees and screenshots:
            changes["marquees"] = [default_marquee(screenshots[0], timestamp)]
        if not self.project.small_tiles:
            changes["small_tiles"] = default_small_tiles(self.project, timestamp)
        if changes:
            self.update(**changes)

    def find_slide(self, category: GraphicCategory, slide_id: str) -> ScreenshotData:
        for slide in self.project.collection(category):
            if slide.id == slide_id:
                return slide
        raise KeyError(f"No {GraphicCategory(category).value} slide with id {slide_id}")

    def replace_slide(self, category: GraphicCategory, slide: ScreenshotData) -> None:
        category = GraphicCategory(category)
        field = {
            GraphicCategory.SCREENSHOTS: "screenshots",
            GraphicCategory.SMALL_TILE: "small_tiles",
            GraphicCategory.MARQUEE: "marquees",
        }[category]
        slides = [slide if s.id == slide.id else s for s in self.project.collection(category)]
        self.update(**{field: slides})

    def add_screenshot(
        self,
        data: bytes,
        category: GraphicCategory = GraphicCategory.SCREENSHOTS,
        source_file: Optional[str] = None,
        mime_type: str = "image/png",
    ) -> ScreenshotData:
        """
        Add an uploaded image as a new slide.

        An upload to SCREENSHOTS also seeds a paired SPLIT marquee
        (``mq_<id>``) with its own positions; an upload to MARQUEE creates
        only the marquee.

        Returns:
            The slide added to ``category``
        """
        category = GraphicCategory(category)
        width, height = image_size(data)
        slide_id = f"{_now_ms()}{len(self.project.screenshots) + len(self.project.marquees):03d}"
        tile = category == GraphicCategory.SMALL_TILE
        slide = new_slide(
            slide_id,
            preview_url=InlineImage(mime_type, data).to_data_url(),
            headline="New Feature",
            subheadline="Description",
            template=ScreenshotTemplate.CENTERED if tile else ScreenshotTemplate.DEVICE,
            text_align=TextAlign.CENTER if tile else TextAlign.LEFT,
            natural_width=width or 1000,
            natural_height=height or 1000,
            source_file=source_file,
        )
        marquee = new_slide(
            f"mq_{slide_id}",
            preview_url=slide.preview_url,
            headline=slide.headline,
            subheadline=slide.subheadline,
            template=ScreenshotTemplate.SPLIT,
            natural_width=slide.natural_width,
            natural_height=slide.natural_height,
            source_file=source_file,
        )

        if tile:
            self.update(small_tiles=[*self.project.small_tiles, slide])
            return slide
        if category == GraphicCategory.MARQUEE:
            self.update(marquees=[*self.project.marquees, marquee])
            return marquee
        self.update(
            screenshots=[*self.project.screenshots, slide],
            marquees=[*self.project.marquees, marquee],
        )
        logger.info(f"Added screenshot {slide_id} ({width}x{height}) with marquee mq_{slide_id}")
        return slide

    def add_small_tile(self) -> ScreenshotData:
        tile = small_tile(f"st_{_now_ms()}_{len(self.project.small_tiles) + 1}", "New Promo")
        self.update(small_tiles=[*self.project.small_tiles, tile])
        return tile

    def edit_slide(
        self,
        category: GraphicCategory,
        slide_id: str,
        template: Optional[ScreenshotTemplate] = None,
        **changes: Any,
    ) -> ScreenshotData:
        """
        Change a slide's template, copy fields and/or active-template position.

        Keyword arguments naming ``ImagePosition`` fields patch the position;
        ``headline``, ``subheadline``, ``highlight_text``, ``text_align`` and
        ``content_mode`` patch the slide itself.
        """
        slide = self.find_slide(category, slide_id)
        if template is not None:
            slide = set_template(slide, template)

        slide_fields = {"headline", "subheadline", "highlight_text", "text_align", "content_mode"}
        slide_changes = {k: v for k, v in changes.items() if k in slide_fields}
        position_changes = {k: v for k, v in changes.items() if k not in slide_fields}
        if slide_changes:
            slide = ScreenshotData.model_validate({**slide.model_dump(), **slide_changes})
        if position_changes:
            slide = update_position(slide, **position_changes)

        self.replace_slide(category, slide)
        return slide

    def reset_slide_position(
        self, category: GraphicCategory, slide_id: str, field: Optional[str] = None
    ) -> ScreenshotData:
        """Reset one position field, or the whole position, of the slide's active template."""
        slide = self.find_slide(category, slide_id)
        slide = reset_position(slide) if field is None else reset_position_field(slide, field)
        self.replace_slide(category, slide)
        return slide

    def set_graphics_preferences(self, **changes: Any) -> StoreGraphicsPreferences:
        """
        Change the background settings shared by every store graphic.

        Args:
            **changes: ``StoreGraphicsPreferences`` fields, e.g. ``bg_style``,
                ``active_color`` or ``gradient_index``

        Returns:
            The validated preferences now stored on the project
        """
        current = self.project.store_graphics_preferences or StoreGraphicsPreferences()
        preferences = StoreGraphicsPreferences.model_validate({**current.model_dump(), **changes})
        self.update(store_graphics_preferences=preferences)
        return preferences

    async def write_slide_copy(self, category: GraphicCategory, slide_id: str) -> ScreenshotData:
        """Let the model write headline, subheadline and highlight for a slide."""
        category = GraphicCategory(category)
        forge = self._services()
        analysis = self._require_analysis()
        slide = self.find_slide(category, slide_id)
        name = self.project.display_name

        if category == GraphicCategory.SMALL_TILE:
            short = self.project.selected_short_description
            copy = await forge.copy.generate_small_tile_copy(analysis, name, short.text if short else "")
        else:
            icon = self.project.main_icon()
            source = icon.url if slide.content_mode == ContentMode.ICON and icon else slide.preview_url
            if not source:
                raise ValueError(f"Slide {slide_id} has no image to write copy for")
            copy = await forge.copy.generate_screenshot_copy(
                InlineImage.from_data_url(source), name, analysis.tone
            )

        slide = slide.model_copy(
            update={
                "headline": copy.headline,
                "subheadline": copy.subheadline,
                "highlight_text": copy.highlight_text,
            }
        )
        self.replace_slide(category, slide)
        return slide

    def render_slide(
        self, category: GraphicCategory, slide_id: str, quality: int = JPEG_QUALITY_SINGLE
    ) -> bytes:
        """Render one slide as a JPEG download and record it as the slide's rendered image."""
        category = GraphicCategory(category)
        slide = self.find_slide(category, slide_id)
        image = render(RenderSpec.for_project(self.project, slide, category))
        self.replace_slide(category, slide.model_copy(update={"rendered_url": image_to_data_url(image, "JPEG", quality)}))
        return encode_image(image, "JPEG", quality)

    async def render_all(self) -> ProjectState:
        project = await render_all(self.project)
        return self.update(
            screenshots=project.screenshots,
            small_tiles=project.small_tiles,
            marquees=project.marquees,
        )

    # --- Export ---

    def export(self, output_dir: Union[str, Path], subset: Optional[ExportSubset] = None) -> Path:
        return export_package(self.project, output_dir, subset)

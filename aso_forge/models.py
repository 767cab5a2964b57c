"""Domain models for the ASO Forge store listing generator."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .colors import DEFAULT_BRAND_COLORS, normalize_hex_color

CURRENT_SCHEMA_VERSION = 2


class NameType(str, Enum):
    """Naming strategy of a generated name candidate."""

    SEO = "SEO"
    CREATIVE = "CREATIVE"


class AssetUsage(str, Enum):
    ICON_MAIN = "ICON_MAIN"
    ICON_RESIZED = "ICON_RESIZED"
    MARQUEE = "MARQUEE"
    SMALL_TILE = "SMALL_TILE"
    SCREENSHOT = "SCREENSHOT"


class ScreenshotTemplate(str, Enum):
    """Layout compositions available for store graphics."""

    DEVICE = "DEVICE"
    SPLIT = "SPLIT"
    CENTERED = "CENTERED"
    MINIMAL = "MINIMAL"
    OVERLAY = "OVERLAY"


class GraphicCategory(str, Enum):
    """Store graphic collections, each with its own canvas size."""

    SCREENSHOTS = "SCREENSHOTS"
    SMALL_TILE = "SMALL_TILE"
    MARQUEE = "MARQUEE"


class ContentMode(str, Enum):
    SCREENSHOT = "SCREENSHOT"
    ICON = "ICON"


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class BackgroundStyle(str, Enum):
    SOLID = "solid"
    GRADIENT = "gradient"
    MESH = "mesh"


class VisualStyle(str, Enum):
    """Icon art directions offered during brand asset generation."""

    MODERN_MASCOT = "Modern Mascot"
    GEOMETRIC_3D = "3D Geometric"
    ABSTRACT = "Abstract"
    LETTER_3D = "3D Letter"
    MODERN_MINIMALIST = "Modern Minimalist"
    SHAPES_3D = "3D Shapes"


class AssetType(str, Enum):
    """What an image prompt is drafted for."""

    ICON = "ICON"
    BANNER = "BANNER"


class AnalysisResult(BaseModel):
    """Validated market analysis of a product idea."""

    category: str = Field(..., description="Chrome Web Store category")
    target_audience: str = Field(..., description="Who the extension is for")
    core_features: List[str] = Field(..., description="Main features of the extension")
    primary_keywords: List[str] = Field(..., description="High-volume search keywords")
    tone: str = Field(..., description="Comma-joined tone adjectives")
    seo_strategy: str = Field(default="", description="Keyword strategy for the listing")
    market_analysis: str = Field(default="", description="Competitors and gaps")
    customer_psychology: str = Field(default="", description="Pain points and desires")
    is_junk: bool = Field(default=False, description="Input was not a real project idea")

    class Config:
        """Pydantic configuration."""

        json_schema_extra = {
            "example": {
                "category": "Productivity",
                "target_audience": "Remote workers juggling many tabs",
                "core_features": ["Tab grouping", "Session restore"],
                "primary_keywords": ["tab manager", "session saver"],
                "tone": "Professional, Calm, Efficient",
                "seo_strategy": "Lead with 'tab manager' in title and first sentence",
                "market_analysis": "Crowded space; few tools handle sessions well",
                "customer_psychology": "Fear of losing work; desire for focus",
                "is_junk": False,
            }
        }


class RawAnalysisResponse(BaseModel):
    """Analysis payload exactly as the model returns it, before validation.

    Every field is optional and loosely typed; ``IdeaAnalyzer`` decides
    whether the payload is complete enough to become an ``AnalysisResult``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    category: Optional[str] = None
    target_audience: Optional[str] = Field(default=None, alias="targetAudience")
    core_features: Optional[List[str]] = Field(default=None, alias="coreFeatures")
    primary_keywords: Optional[List[str]] = Field(default=None, alias="primaryKeywords")
    tone: Optional[Union[List[str], str]] = None
    seo_strategy: Optional[str] = Field(default=None, alias="seoStrategy")
    market_analysis: Optional[str] = Field(default=None, alias="marketAnalysis")
    customer_psychology: Optional[str] = Field(default=None, alias="customerPsychology")
    is_junk: Optional[bool] = Field(default=None, alias="isJunk")

    def tone_text(self) -> str:
        """Flatten the tone adjectives to a comma-joined string."""
        if isinstance(self.tone, list):
            return ", ".join(t.strip() for t in self.tone if t and t.strip())
        return (self.tone or "").strip()


def _clamp_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(100.0, score))


class GeneratedName(BaseModel):
    """A scored extension name candidate."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Extension name")
    tagline: str = Field(default="", description="Short catchy tagline")
    type: NameType = Field(..., description="SEO or CREATIVE naming strategy")
    reasoning: str = Field(default="", description="Why the name works")
    score: float = Field(default=0.0, description="Quality score 0-100")
    strategy: Optional[str] = Field(None, description="Creative technique used, e.g. Word Fusion")

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> float:
        return _clamp_score(value)


class ScoredDescription(BaseModel):
    """A scored short-description candidate."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="Short description text (< 132 characters)")
    score: float = Field(default=0.0, description="Quality score 0-100")
    reasoning: str = Field(default="", description="Why the description works")
    keywords_used: List[str] = Field(
        default_factory=list, alias="keywordsUsed", description="Keywords included in the text"
    )

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> float:
        return _clamp_score(value)


class SlideCopy(BaseModel):
    """Headline, subheadline and highlight for one store graphic."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    headline: str = ""
    subheadline: str = ""
    highlight_text: str = Field(default="", alias="highlightText")

    @field_validator("headline", "subheadline", "highlight_text", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()


class BrandColors(BaseModel):
    """The eight-slot brand palette.

    Every slot is normalised independently: a value that is not exactly
    ``#RRGGBB`` (or is all zeros) falls back to that slot's default.
    """

    primary1: str = DEFAULT_BRAND_COLORS["primary1"]
    primary2: str = DEFAULT_BRAND_COLORS["primary2"]
    accent1: str = DEFAULT_BRAND_COLORS["accent1"]
    accent2: str = DEFAULT_BRAND_COLORS["accent2"]
    neutral_white: str = DEFAULT_BRAND_COLORS["neutral_white"]
    neutral_black: str = DEFAULT_BRAND_COLORS["neutral_black"]
    neutral_gray: str = DEFAULT_BRAND_COLORS["neutral_gray"]
    highlight_neon: str = DEFAULT_BRAND_COLORS["highlight_neon"]

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex(cls, value: Any, info) -> str:
        return normalize_hex_color(value, DEFAULT_BRAND_COLORS[info.field_name])

    def palette(self) -> List[str]:
        """The five colours used as image-prompt context."""
        return [self.primary1, self.primary2, self.accent1, self.accent2, self.highlight_neon]


DEFAULT_HEADING_FONT = "Inter"
DEFAULT_BODY_FONT = "Roboto"
DEFAULT_TYPOGRAPHY_REASONING = "Clean and modern."
DEFAULT_VISUAL_STYLE_DESCRIPTION = "Modern dark mode."


class Typography(BaseModel):
    """Font pairing for the brand; blank values fall back to the defaults."""

    model_config = ConfigDict(populate_by_name=True)

    heading_font: str = Field(default=DEFAULT_HEADING_FONT, alias="headingFont")
    body_font: str = Field(default=DEFAULT_BODY_FONT, alias="bodyFont")
    reasoning: str = DEFAULT_TYPOGRAPHY_REASONING

    @field_validator("heading_font", "body_font", "reasoning", mode="before")
    @classmethod
    def fill_blank(cls, value: Any, info) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return {
            "heading_font": DEFAULT_HEADING_FONT,
            "body_font": DEFAULT_BODY_FONT,
            "reasoning": DEFAULT_TYPOGRAPHY_REASONING,
        }[info.field_name]


class BrandIdentity(BaseModel):
    """Colours, typography and a visual style description for the brand."""

    model_config = ConfigDict(populate_by_name=True)

    colors: BrandColors = Field(default_factory=BrandColors)
    typography: Typography = Field(default_factory=Typography)
    visual_style_description: str = Field(
        default=DEFAULT_VISUAL_STYLE_DESCRIPTION, alias="visualStyleDescription"
    )

    @field_validator("colors", "typography", mode="before")
    @classmethod
    def missing_section(cls, value: Any, info) -> Any:
        if value is None:
            return BrandColors() if info.field_name == "colors" else Typography()
        return value

    @field_validator("visual_style_description", mode="before")
    @classmethod
    def fill_style(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return DEFAULT_VISUAL_STYLE_DESCRIPTION


class GeneratedAsset(BaseModel):
    """A generated or rendered image held as a data URL."""

    id: str = Field(..., description="Unique asset identifier")
    usage: AssetUsage = Field(..., description="Where the asset is used in the listing")
    url: str = Field(..., description="Inline data URL of the bitmap")
    prompt_used: str = Field(default="", description="Prompt that produced the asset")
    dimensions: Optional[str] = Field(None, description="Pixel size such as 128x128")


class ImagePosition(BaseModel):
    """Geometry of one asset under one template.

    Frame transform (scale, x, y, rotate) moves the whole framed container,
    image transform (img_zoom, img_x, img_y) pans the content inside the
    frame, and text transform offsets and scales the text block.
    """

    scale: float = 1.0
    x: float = 0.0
    y: float = 0.0
    rotate: float = 0.0

    img_zoom: float = 1.0
    img_x: float = 0.0
    img_y: float = 0.0

    text_x: float = 0.0
    text_y: float = 0.0
    headline_size: float = Field(default=100.0, description="Headline scale in percent")
    subheadline_size: float = Field(default=100.0, description="Subheadline scale in percent")
    logo_size: float = Field(default=100.0, description="Logo scale in percent")
    show_logo: bool = True
    show_name: bool = True


def default_position(template: ScreenshotTemplate) -> ImagePosition:
    """Default geometry for ``template``; DEVICE frames start nudged right."""
    if template == ScreenshotTemplate.DEVICE:
        return ImagePosition(x=40.0)
    return ImagePosition()


class TemplatePositions(BaseModel):
    """One complete ``ImagePosition`` for every template."""

    DEVICE: ImagePosition = Field(default_factory=lambda: default_position(ScreenshotTemplate.DEVICE))
    SPLIT: ImagePosition = Field(default_factory=lambda: default_position(ScreenshotTemplate.SPLIT))
    CENTERED: ImagePosition = Field(default_factory=lambda: default_position(ScreenshotTemplate.CENTERED))
    MINIMAL: ImagePosition = Field(default_factory=lambda: default_position(ScreenshotTemplate.MINIMAL))
    OVERLAY: ImagePosition = Field(default_factory=lambda: default_position(ScreenshotTemplate.OVERLAY))

    def get(self, template: ScreenshotTemplate) -> ImagePosition:
        return getattr(self, ScreenshotTemplate(template).value)


class ScreenshotData(BaseModel):
    """A store graphic slide: source image, copy and per-template geometry."""

    id: str = Field(..., description="Slide identifier")
    source_file: Optional[str] = Field(None, description="Path of the uploaded source file")
    preview_url: str = Field(default="", description="Source image (upload or logo) as data URL")
    rendered_url: Optional[str] = Field(None, description="Final composited image as data URL")
    headline: str = ""
    subheadline: str = ""
    highlight_text: str = Field(default="", description="Part of the headline to emphasise")
    is_stylized: bool = False
    natural_width: int = 0
    natural_height: int = 0
    template: ScreenshotTemplate = ScreenshotTemplate.DEVICE
    text_align: TextAlign = TextAlign.LEFT
    content_mode: ContentMode = ContentMode.SCREENSHOT
    positions: TemplatePositions = Field(default_factory=TemplatePositions)

    @property
    def position(self) -> ImagePosition:
        """Geometry for the active template."""
        return self.positions.get(self.template)


class StoreGraphicsPreferences(BaseModel):
    """Background settings shared by every store graphic of a project."""

    bg_style: BackgroundStyle = BackgroundStyle.MESH
    active_color: Optional[str] = Field(None, description="Background colour; brand accent1 if unset")
    gradient_index: int = Field(default=0, ge=0, le=3, description="Which brand gradient to use")
    corner_radius: int = Field(default=32, ge=0, description="Frame corner radius in pixels")
    headline_color: Optional[str] = Field(None, description="Headline colour; contrast colour if unset")
    subheadline_color: Optional[str] = None
    highlight_color: Optional[str] = Field(None, description="Highlight colour; brand neon if unset")

    @field_validator("active_color", "headline_color", "subheadline_color", "highlight_color", mode="before")
    @classmethod
    def valid_color_or_unset(cls, value: Any) -> Optional[str]:
        """An invalid colour falls back to the brand-derived default."""
        if value is None:
            return None
        return normalize_hex_color(value, None)


class ProjectState(BaseModel):
    """Everything the wizard knows about one extension listing."""

    id: str = Field(..., description="Project identifier")
    name: str = Field(default="Untitled Project")
    description_input: str = Field(default="", description="Raw idea text entered by the user")
    analysis: Optional[AnalysisResult] = None
    generated_names: List[GeneratedName] = Field(default_factory=list)
    selected_name: Optional[GeneratedName] = None
    generated_short_descriptions: List[ScoredDescription] = Field(default_factory=list)
    selected_short_description: Optional[ScoredDescription] = None
    visual_style: VisualStyle = VisualStyle.MODERN_MASCOT
    generated_assets: List[GeneratedAsset] = Field(default_factory=list)
    full_description: Optional[str] = None
    brand_identity: Optional[BrandIdentity] = None
    screenshots: List[ScreenshotData] = Field(default_factory=list)
    small_tiles: List[ScreenshotData] = Field(default_factory=list)
    marquees: List[ScreenshotData] = Field(default_factory=list)
    store_graphics_preferences: Optional[StoreGraphicsPreferences] = None
    privacy_policy: Optional[str] = None
    manifest: Optional[dict] = Field(None, description="Uploaded manifest.json, if any")
    schema_version: int = CURRENT_SCHEMA_VERSION
    updated_at: Optional[datetime] = None

    def main_icon(self) -> Optional[GeneratedAsset]:
        for asset in self.generated_assets:
            if asset.usage == AssetUsage.ICON_MAIN:
                return asset
        return None

    def collection(self, category: GraphicCategory) -> List[ScreenshotData]:
        return {
            GraphicCategory.SCREENSHOTS: self.screenshots,
            GraphicCategory.SMALL_TILE: self.small_tiles,
            GraphicCategory.MARQUEE: self.marquees,
        }[GraphicCategory(category)]

    @property
    def display_name(self) -> str:
        return self.selected_name.name if self.selected_name else self.name

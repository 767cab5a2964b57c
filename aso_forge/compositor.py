"""Headless rendering of store graphics (screenshots, small tiles, marquees).

``render(spec)`` draws background, framed imagery, header chip and copy onto
a fixed-size canvas and returns a Pillow image; ``render_to_bytes`` encodes
it. Nothing here depends on a UI surface.
"""

import io
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from .ai_client import InlineImage
from .colors import Gradient, brand_gradients, contrast_color, hex_to_rgb
from .models import (
    BackgroundStyle,
    BrandIdentity,
    ContentMode,
    GraphicCategory,
    ImagePosition,
    ProjectState,
    ScreenshotData,
    ScreenshotTemplate,
    StoreGraphicsPreferences,
    TextAlign,
)
from .typography import TextSegment, load_font, segment_headline, split_words, wrap_text, wrap_words

logger = logging.getLogger(__name__)

CANVAS_SIZES: Dict[GraphicCategory, Tuple[int, int]] = {
    GraphicCategory.SCREENSHOTS: (1280, 800),
    GraphicCategory.SMALL_TILE: (440, 280),
    GraphicCategory.MARQUEE: (1400, 560),
}

DEVICE_ASPECT_RATIO = 16 / 10

CHROME_BAR_HEIGHT = 56
CHROME_BAR_COLOR = "#1a1a1a"
CHROME_DOT_COLORS = ("#FF5F57", "#FEBC2E", "#28C840")
ADDRESS_BAR_COLOR = "#2b2b2b"
FRAME_BORDER_WIDTH = 6
FRAME_BORDER_COLOR = "#252525"
FRAME_FILL_COLOR = "#1e1e1e"
SCREEN_FILL_COLOR = "#111827"

# Hand-drawn underline "M5,45 C50,25 250,20 345,40" in a 350x50 view box
BRUSH_STROKE_POINTS = ((5, 45), (50, 25), (250, 20), (345, 40))
BRUSH_VIEWBOX = (350, 50)
BRUSH_OPACITY = 0.8

MESH_ALPHA = 0x99 / 255
MESH_REACH = 0.4

JPEG_QUALITY_BATCH = 90
JPEG_QUALITY_SINGLE = 95

Box = Tuple[float, float, float, float]


@dataclass(frozen=True)
class TextStyle:
    """Base text metrics for one canvas category (before per-slide scaling)."""

    headline_px: float
    subheadline_px: float
    gap: float
    headline_max_width: float
    subheadline_max_width: float
    header_scale: float
    brush_height: float
    brush_offset: float
    brush_stroke: float


TEXT_STYLES: Dict[GraphicCategory, TextStyle] = {
    GraphicCategory.SCREENSHOTS: TextStyle(96, 36, 24, 896, 672, 1.0, 30, 5, 20),
    GraphicCategory.MARQUEE: TextStyle(80, 24, 16, 1152, 672, 0.8, 30, 5, 20),
    GraphicCategory.SMALL_TILE: TextStyle(32, 13.6, 8, 896, 672, 1.1, 16, 2, 12),
}


@dataclass(frozen=True)
class TemplateLayout:
    """Where the copy and the framed image go on a canvas.

    ``image_fit`` is "height" or "width" (frame sized from that canvas
    dimension times ``image_pct``), "cover" (full-bleed) or None (no image).
    """

    text_box: Box
    text_valign: str
    forced_align: Optional[TextAlign]
    image_fit: Optional[str]
    image_pct: float = 0.0
    chrome: bool = False
    anchor: str = "center"
    anchor_x: float = 0.0
    anchor_y: float = 0.0


def effective_template(slide: ScreenshotData, category: GraphicCategory) -> ScreenshotTemplate:
    """Small tiles always use the centred composition."""
    if category == GraphicCategory.SMALL_TILE:
        return ScreenshotTemplate.CENTERED
    return slide.template


def template_layout(template: ScreenshotTemplate, category: GraphicCategory) -> TemplateLayout:
    """Geometry of ``template`` on the canvas for ``category``."""
    width, height = CANVAS_SIZES[category]
    marquee = category == GraphicCategory.MARQUEE

    if category == GraphicCategory.SMALL_TILE:
        return TemplateLayout((32 + 40, 24, width - 32 - 40, height - 24), "center", TextAlign.CENTER, None)

    if template == ScreenshotTemplate.DEVICE:
        frac, pad = (0.45, 96) if marquee else (0.50, 80)
        return TemplateLayout(
            (pad, pad, width * frac - pad, height - pad), "center", None,
            "height", 0.85 if marquee else 0.70, chrome=True,
            anchor="left_middle", anchor_x=0.50 if marquee else 0.55,
        )

    if template == ScreenshotTemplate.SPLIT:
        frac, pad = (0.40, 96) if marquee else (0.45, 64)
        return TemplateLayout(
            (pad, pad, width * frac - pad, height - pad), "center", None,
            "width", 0.35 if marquee else 0.45,
            anchor="top_right", anchor_x=0.10 if marquee else 0.05, anchor_y=0.15,
        )

    if template == ScreenshotTemplate.MINIMAL:
        frac, pad = (0.45, 96) if marquee else (0.50, 64)
        return TemplateLayout(
            (width * (1 - frac) + pad, pad, width - pad, height - pad), "center", TextAlign.RIGHT,
            "width", 0.35 if marquee else 0.45,
            anchor="top_left", anchor_x=0.10 if marquee else 0.05, anchor_y=0.15,
        )

    if template == ScreenshotTemplate.OVERLAY:
        return TemplateLayout((64, 64, width - 64, height - 64), "center", TextAlign.CENTER, "cover")

    side = 128 if marquee else 16
    return TemplateLayout(
        (side, 48, width - side, height * 0.6), "top", TextAlign.CENTER,
        "width", 0.60 if marquee else 0.80,
        anchor="top_center", anchor_y=0.60,
    )


@dataclass
class RenderSpec:
    """Everything needed to draw one slide."""

    slide: ScreenshotData
    category: GraphicCategory
    brand: BrandIdentity
    preferences: StoreGraphicsPreferences
    app_name: str = "App Name"
    logo: Optional[Image.Image] = None
    source: Optional[Image.Image] = None

    @classmethod
    def for_project(
        cls, project: ProjectState, slide: ScreenshotData, category: GraphicCategory
    ) -> "RenderSpec":
        """Build a spec from a project, decoding the logo and slide image."""
        icon = project.main_icon()
        return cls(
            slide=slide,
            category=GraphicCategory(category),
            brand=project.brand_identity or BrandIdentity(),
            preferences=project.store_graphics_preferences or StoreGraphicsPreferences(),
            app_name=project.selected_name.name if project.selected_name else "App Name",
            logo=decode_image(icon.url) if icon else None,
            source=decode_image(slide.preview_url) if slide.preview_url else None,
        )

    @property
    def active_color(self) -> str:
        return self.preferences.active_color or self.brand.colors.accent1

    @property
    def position(self) -> ImagePosition:
        return self.slide.positions.get(effective_template(self.slide, self.category))


def decode_image(data_url: str) -> Image.Image:
    """Decode a data URL (or bare base64 payload) into an RGBA image."""
    inline = InlineImage.from_data_url(data_url)
    with Image.open(io.BytesIO(inline.data)) as img:
        return img.convert("RGBA")


def image_to_data_url(image: Image.Image, fmt: str = "PNG", quality: int = 95) -> str:
    mime = "image/jpeg" if fmt.upper() == "JPEG" else f"image/{fmt.lower()}"
    return InlineImage(mime, encode_image(image, fmt, quality)).to_data_url()


def encode_image(image: Image.Image, fmt: str = "JPEG", quality: int = JPEG_QUALITY_BATCH) -> bytes:
    buffer = io.BytesIO()
    if fmt.upper() == "JPEG":
        image.convert("RGB").save(buffer, "JPEG", quality=quality)
    else:
        image.save(buffer, fmt.upper())
    return buffer.getvalue()


# --- Background -----------------------------------------------------------------


def _rgb_array(hex_color: str) -> np.ndarray:
    return np.array(hex_to_rgb(hex_color), dtype=np.float32) / 255.0


def linear_gradient(size: Tuple[int, int], gradient: Gradient) -> np.ndarray:
    """Float RGB array of a CSS-style linear gradient (angle measured from "to top")."""
    width, height = size
    angle = math.radians(gradient.angle)
    dx, dy = math.sin(angle), -math.cos(angle)
    length = abs(width * dx) + abs(height * dy)

    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    t = ((xs + 0.5 - width / 2) * dx + (ys + 0.5 - height / 2) * dy) / length + 0.5
    t = np.clip(t, 0.0, 1.0)[..., None]

    start, end = _rgb_array(gradient.start), _rgb_array(gradient.end)
    return start + (end - start) * t


def overlay_blend(backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    """Overlay blend mode: multiply dark backdrop values, screen light ones."""
    return np.where(
        backdrop <= 0.5,
        2 * backdrop * source,
        1 - 2 * (1 - backdrop) * (1 - source),
    )


def _radial_layer(size: Tuple[int, int], center: Tuple[float, float], alpha: float) -> np.ndarray:
    width, height = size
    cx, cy = center
    reach = math.hypot(max(cx, width - cx), max(cy, height - cy)) * MESH_REACH
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    distance = np.hypot(xs + 0.5 - cx, ys + 0.5 - cy)
    return (alpha * np.clip(1 - distance / reach, 0.0, 1.0))[..., None]


def render_background(spec: RenderSpec, size: Tuple[int, int]) -> Image.Image:
    """Solid colour, brand gradient (overlay-blended) or corner mesh."""
    width, height = size
    base = np.broadcast_to(_rgb_array(spec.active_color), (height, width, 3)).astype(np.float32)
    style = spec.preferences.bg_style
    colors = spec.brand.colors

    if style == BackgroundStyle.GRADIENT:
        gradients = brand_gradients(colors.primary1, colors.accent1)
        index = spec.preferences.gradient_index if spec.preferences.gradient_index < len(gradients) else 0
        pixels = overlay_blend(base, linear_gradient(size, gradients[index]))
    elif style == BackgroundStyle.MESH:
        pixels = base.copy()
        # first-listed gradient is painted on top, so composite in reverse
        layers = [
            ((0, 0), colors.primary2, MESH_ALPHA),
            ((width, 0), colors.accent1, MESH_ALPHA),
            ((width, height), colors.primary1, MESH_ALPHA),
            ((0, height), "#ffffff", 0.2),
        ]
        for center, color, alpha in reversed(layers):
            a = _radial_layer(size, center, alpha)
            pixels = pixels * (1 - a) + _rgb_array(color) * a
    else:
        pixels = base

    array = (np.clip(pixels, 0.0, 1.0) * 255).round().astype(np.uint8)
    return Image.fromarray(array).convert("RGBA")


# --- Framed image ---------------------------------------------------------------


def rounded_mask(size: Tuple[int, int], radius: float) -> Image.Image:
    """Anti-aliased rounded-rectangle alpha mask, rasterised at 4x and downsampled."""
    width, height = size
    factor = 4
    big = Image.new("L", (width * factor, height * factor), 0)
    ImageDraw.Draw(big).rounded_rectangle(
        (0, 0, width * factor - 1, height * factor - 1), radius=max(0, radius) * factor, fill=255
    )
    return big.resize(size, Image.Resampling.LANCZOS)


def _placeholder(size: Tuple[int, int]) -> Image.Image:
    width, height = size
    img = Image.new("RGBA", size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rectangle((1, 1, width - 2, height - 2), outline="#555555", width=2)
    cx, cy, arm = width / 2, height / 2, min(width, height) * 0.2
    draw.line((cx - arm, cy, cx + arm, cy), fill="#555555", width=2)
    draw.line((cx, cy - arm, cx, cy + arm), fill="#555555", width=2)
    return img


def _frame_ratio(spec: RenderSpec, content: Optional[Image.Image], icon_mode: bool) -> float:
    if icon_mode:
        return 1.0
    if spec.category != GraphicCategory.SMALL_TILE and spec.slide.template == ScreenshotTemplate.DEVICE:
        return DEVICE_ASPECT_RATIO
    natural_w = spec.slide.natural_width or (content.width if content else 1)
    natural_h = spec.slide.natural_height or (content.height if content else 1)
    return natural_w / max(natural_h, 1)


def _draw_chrome(frame: Image.Image, radius: float) -> int:
    """Draw the browser toolbar inside the frame border; returns its bottom edge."""
    draw = ImageDraw.Draw(frame)
    b = FRAME_BORDER_WIDTH
    width = frame.width
    bottom = b + CHROME_BAR_HEIGHT
    inner_radius = max(0, radius - b)

    draw.rounded_rectangle(
        (b, b, width - b - 1, bottom), radius=inner_radius, fill=CHROME_BAR_COLOR,
        corners=(True, True, False, False),
    )
    draw.line((b, bottom, width - b, bottom), fill="#2a2a2a", width=1)

    cy = b + CHROME_BAR_HEIGHT / 2
    x = b + 24
    for color in CHROME_DOT_COLORS:
        draw.ellipse((x, cy - 6, x + 12, cy + 6), fill=color)
        x += 20

    bar_left = x + 16
    draw.rounded_rectangle(
        (bar_left, cy - 18, width - b - 24, cy + 18), radius=8,
        fill=ADDRESS_BAR_COLOR, outline="#3a3a3a",
    )
    draw.rounded_rectangle((bar_left + 40, cy - 4, bar_left + 168, cy + 4), radius=4, fill="#3d4350")
    return bottom + 1


def render_frame(spec: RenderSpec, size: Tuple[int, int], content: Optional[Image.Image], chrome: bool) -> Image.Image:
    """
    Draw the framed container at its untransformed size.

    The inner image transform (zoom and pan) is applied here, clipped to
    the content area; the outer transform is applied by the caller.
    """
    width, height = max(1, int(round(size[0]))), max(1, int(round(size[1])))
    pos = spec.position
    radius = spec.preferences.corner_radius
    icon_mode = spec.slide.content_mode == ContentMode.ICON

    frame = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    top = 0
    inset = 0
    if chrome:
        ImageDraw.Draw(frame).rounded_rectangle(
            (0, 0, width - 1, height - 1), radius=radius, fill=FRAME_FILL_COLOR,
            outline=FRAME_BORDER_COLOR, width=FRAME_BORDER_WIDTH,
        )
        top = _draw_chrome(frame, radius)
        inset = FRAME_BORDER_WIDTH
        ImageDraw.Draw(frame).rectangle((inset, top, width - inset - 1, height - inset - 1), fill=SCREEN_FILL_COLOR)

    area_w, area_h = width - 2 * inset, height - top - inset
    if area_w > 0 and area_h > 0:
        image = content if content is not None else _placeholder((area_w, area_h))
        if icon_mode:
            el_h = area_h * 0.8
            el_w = el_h * image.width / max(image.height, 1)
            el_x, el_y = (area_w - el_w) / 2, (area_h - el_h) / 2
        else:
            el_w = area_w
            el_h = el_w * image.height / max(image.width, 1)
            el_x, el_y = 0.0, 0.0

        zoom = max(pos.img_zoom, 0.01)
        draw_w, draw_h = max(1, int(round(el_w * zoom))), max(1, int(round(el_h * zoom)))
        cx = el_x + el_w / 2 + pos.img_x
        cy = el_y + el_h / 2 + pos.img_y
        scaled = image.convert("RGBA").resize((draw_w, draw_h), Image.Resampling.LANCZOS)
        if icon_mode:
            scaled.putalpha(_combine_alpha(scaled, rounded_mask(scaled.size, radius * zoom)))

        area = Image.new("RGBA", (area_w, area_h), (0, 0, 0, 0))
        _paste_clipped(area, scaled, cx - draw_w / 2, cy - draw_h / 2)
        frame.alpha_composite(area, (inset, top))

    frame.putalpha(_combine_alpha(frame, rounded_mask(frame.size, radius)))
    return frame


def _combine_alpha(image: Image.Image, mask: Image.Image) -> Image.Image:
    alpha = np.asarray(image.getchannel("A"), dtype=np.uint16)
    combined = (alpha * np.asarray(mask, dtype=np.uint16) // 255).astype(np.uint8)
    return Image.fromarray(combined)


def _paste_clipped(target: Image.Image, layer: Image.Image, x: float, y: float) -> Image.Image:
    """Alpha-composite ``layer`` at a possibly negative or overflowing offset."""
    x, y = int(round(x)), int(round(y))
    left, top = max(0, -x), max(0, -y)
    right = min(layer.width, target.width - x)
    bottom = min(layer.height, target.height - y)
    if right <= left or bottom <= top:
        return target
    target.alpha_composite(layer.crop((left, top, right, bottom)), (x + left, y + top))
    return target


def place_frame(spec: RenderSpec, layout: TemplateLayout, canvas: Image.Image, content: Optional[Image.Image]) -> None:
    """Size, anchor and transform (scale, rotate, translate) the frame onto ``canvas``."""
    width, height = canvas.size
    pos = spec.position
    icon_mode = spec.slide.content_mode == ContentMode.ICON

    if layout.image_fit == "cover":
        if content is None:
            return
        cover = _cover(content, (width, height), pos)
        canvas.alpha_composite(cover)
        scrim = Image.new("RGBA", (width, height), (0, 0, 0, 115))
        canvas.alpha_composite(scrim)
        return

    ratio = _frame_ratio(spec, content, icon_mode)
    if layout.image_fit == "height":
        frame_h = height * layout.image_pct
        frame_w = frame_h * ratio
    else:
        frame_w = width * layout.image_pct
        frame_h = frame_w / ratio

    if layout.anchor == "left_middle":
        left, top = width * layout.anchor_x, (height - frame_h) / 2
    elif layout.anchor == "top_right":
        left, top = width * (1 - layout.anchor_x) - frame_w, height * layout.anchor_y
    elif layout.anchor == "top_left":
        left, top = width * layout.anchor_x, height * layout.anchor_y
    else:
        left, top = (width - frame_w) / 2, height * layout.anchor_y

    chrome = layout.chrome and not icon_mode
    frame = render_frame(spec, (frame_w, frame_h), content, chrome)

    if pos.scale != 1:
        scaled_size = (max(1, int(round(frame.width * pos.scale))), max(1, int(round(frame.height * pos.scale))))
        frame = frame.resize(scaled_size, Image.Resampling.LANCZOS)
    if pos.rotate:
        frame = frame.rotate(-pos.rotate, resample=Image.Resampling.BICUBIC, expand=True)

    cx = left + frame_w / 2 + pos.x
    cy = top + frame_h / 2 + pos.y
    _paste_clipped(canvas, frame, cx - frame.width / 2, cy - frame.height / 2)


def _cover(content: Image.Image, size: Tuple[int, int], pos: ImagePosition) -> Image.Image:
    width, height = size
    scale = max(width / content.width, height / content.height) * max(pos.img_zoom, 0.01)
    w, h = max(1, int(round(content.width * scale))), max(1, int(round(content.height * scale)))
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    scaled = content.convert("RGBA").resize((w, h), Image.Resampling.LANCZOS)
    return _paste_clipped(layer, scaled, (width - w) / 2 + pos.img_x, (height - h) / 2 + pos.img_y)


# --- Copy -----------------------------------------------------------------------


def brush_stroke(size: Tuple[int, int], stroke: float, color: str) -> Image.Image:
    """Rasterise the underline brush path stretched to ``size`` (no aspect preservation)."""
    width, height = max(1, int(round(size[0]))), max(1, int(round(size[1])))
    factor = 4
    vb_w, vb_h = BRUSH_VIEWBOX
    layer = Image.new("L", (vb_w * factor, vb_h * factor), 0)
    draw = ImageDraw.Draw(layer)

    (x0, y0), (x1, y1), (x2, y2), (x3, y3) = BRUSH_STROKE_POINTS
    points = []
    for i in range(65):
        t = i / 64
        u = 1 - t
        x = u ** 3 * x0 + 3 * u * u * t * x1 + 3 * u * t * t * x2 + t ** 3 * x3
        y = u ** 3 * y0 + 3 * u * u * t * y1 + 3 * u * t * t * y2 + t ** 3 * y3
        points.append((x * factor, y * factor))

    line_width = int(round(stroke * factor))
    draw.line(points, fill=255, width=line_width, joint="curve")
    r = line_width / 2
    for px, py in (points[0], points[-1]):
        draw.ellipse((px - r, py - r, px + r, py + r), fill=255)

    mask = layer.resize((width, height), Image.Resampling.LANCZOS)
    mask = mask.point(lambda v: int(v * BRUSH_OPACITY))
    stroke_img = Image.new("RGBA", (width, height), hex_to_rgb(color) + (255,))
    stroke_img.putalpha(mask)
    return stroke_img


def _text_width(font, text: str) -> float:
    return font.getlength(text)


def _line_x(box_left: float, box_width: float, line_width: float, align: TextAlign) -> float:
    if align == TextAlign.CENTER:
        return box_left + (box_width - line_width) / 2
    if align == TextAlign.RIGHT:
        return box_left + box_width - line_width
    return box_left


def _with_alpha(hex_color: str, opacity: float) -> Tuple[int, int, int, int]:
    return hex_to_rgb(hex_color) + (int(round(255 * opacity)),)


class CopyBlock:
    """Measures and draws the header chip, headline and subheadline as one block."""

    def __init__(self, spec: RenderSpec, align: TextAlign, max_width: float):
        self.spec = spec
        self.align = align
        self.pos = spec.position
        self.style = TEXT_STYLES[spec.category]
        typography = spec.brand.typography
        contrast = contrast_color(spec.active_color)
        prefs = spec.preferences

        self.headline_color = prefs.headline_color or contrast
        self.subheadline_color = prefs.subheadline_color or contrast
        self.highlight_color = prefs.highlight_color or spec.brand.colors.highlight_neon

        self.headline_font = load_font(typography.heading_font, self.style.headline_px * self.pos.headline_size / 100, bold=True)
        self.subheadline_font = load_font(
            typography.body_font or typography.heading_font,
            self.style.subheadline_px * self.pos.subheadline_size / 100,
        )
        self.name_font = load_font(typography.heading_font, 20, bold=True)

        headline_width = min(max_width, self.style.headline_max_width)
        words = split_words(segment_headline(spec.slide.headline, spec.slide.highlight_text))
        self.headline_lines = wrap_words(words, lambda t: _text_width(self.headline_font, t), headline_width)
        self.headline_line_h = self.headline_font.size * 0.9 if hasattr(self.headline_font, "size") else 30

        sub_width = min(max_width, self.style.subheadline_max_width)
        self.sub_lines = wrap_text(spec.slide.subheadline, lambda t: _text_width(self.subheadline_font, t), sub_width) if spec.slide.subheadline else []
        self.sub_line_h = (self.subheadline_font.size if hasattr(self.subheadline_font, "size") else 14) * 1.5

        self.header = self._build_header()

    def _build_header(self) -> Optional[Image.Image]:
        show_name = self.pos.show_name and self.spec.category != GraphicCategory.SMALL_TILE
        if not (self.pos.show_logo or show_name):
            return None

        scale = self.style.header_scale * self.pos.logo_size / 100
        logo_px = 48
        pad_x, pad_y, gap = (8, 8, 8) if self.spec.category == GraphicCategory.SMALL_TILE else (16, 12, 16)
        name = self.spec.app_name.upper()
        name_w = _text_width(self.name_font, name) if show_name else 0

        content_w = (logo_px if self.pos.show_logo else 0) + (gap if self.pos.show_logo and show_name else 0) + name_w
        chip_w, chip_h = int(content_w + 2 * pad_x), int(logo_px + 2 * pad_y)
        chip = Image.new("RGBA", (chip_w, chip_h), (0, 0, 0, 0))
        draw = ImageDraw.Draw(chip)
        draw.rounded_rectangle((0, 0, chip_w - 1, chip_h - 1), radius=16, fill=(255, 255, 255, 26), outline=(255, 255, 255, 26))

        x = pad_x
        if self.pos.show_logo:
            chip.alpha_composite(self._logo_tile(logo_px), (x, pad_y))
            x += logo_px + gap
        if show_name:
            name_color = self.spec.preferences.headline_color or contrast_color(self.spec.active_color)
            draw.text((x, chip_h / 2), name, font=self.name_font, fill=name_color, anchor="lm")

        if scale != 1:
            chip = chip.resize((max(1, int(chip_w * scale)), max(1, int(chip_h * scale))), Image.Resampling.LANCZOS)
        return chip

    def _logo_tile(self, px: int) -> Image.Image:
        if self.spec.logo is not None:
            tile = self.spec.logo.convert("RGBA").resize((px, px), Image.Resampling.LANCZOS)
        else:
            tile = Image.new("RGBA", (px, px), hex_to_rgb(self.spec.brand.colors.primary1) + (255,))
            font = load_font(self.spec.brand.typography.heading_font, 24, bold=True)
            ImageDraw.Draw(tile).text((px / 2, px / 2), (self.spec.app_name or "A")[:1], font=font, fill="#000000", anchor="mm")
        tile.putalpha(_combine_alpha(tile, rounded_mask(tile.size, 8)))
        return tile

    @property
    def height(self) -> float:
        parts = []
        if self.header is not None:
            parts.append(self.header.height)
        if self.headline_lines:
            parts.append(len(self.headline_lines) * self.headline_line_h)
        if self.sub_lines:
            parts.append(len(self.sub_lines) * self.sub_line_h)
        return sum(parts) + self.style.gap * max(0, len(parts) - 1)

    def draw(self, canvas: Image.Image, box: Box, top: float) -> None:
        left, _, right, _ = box
        left += self.pos.text_x
        top += self.pos.text_y
        box_w = right - box[0]
        y = top

        if self.header is not None:
            x = _line_x(left, box_w, self.header.width, self.align)
            _paste_clipped(canvas, self.header, x, y)
            y += self.header.height + self.style.gap

        if self.headline_lines:
            y = self._draw_headline(canvas, left, box_w, y)
            y += self.style.gap

        text_layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(text_layer)
        for line in self.sub_lines:
            width = _text_width(self.subheadline_font, line)
            x = _line_x(left, box_w, width, self.align)
            draw.text((x, y), line, font=self.subheadline_font, fill=_with_alpha(self.subheadline_color, 0.9))
            y += self.sub_line_h
        canvas.alpha_composite(text_layer)

    def _draw_headline(self, canvas: Image.Image, left: float, box_w: float, y: float) -> float:
        font = self.headline_font
        space = _text_width(font, " ")
        strokes = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        text_layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(text_layer)

        for line in self.headline_lines:
            pieces: List[Tuple[TextSegment, float]] = []
            cursor = 0.0
            for i, word in enumerate(line):
                if i:
                    cursor += space
                for piece in word:
                    pieces.append((piece, cursor))
                    cursor += _text_width(font, piece.text)
            x0 = _line_x(left, box_w, cursor, self.align)
            baseline_bottom = y + self.headline_line_h

            highlighted = [(p, off) for p, off in pieces if p.highlighted]
            if highlighted:
                start = highlighted[0][1]
                last_piece, last_off = highlighted[-1]
                end = last_off + _text_width(font, last_piece.text)
                span_w = end - start
                stroke = brush_stroke(
                    (span_w * 1.1, self.style.brush_height), self.style.brush_stroke, self.highlight_color
                )
                sx = x0 + start - span_w * 0.05
                sy = baseline_bottom + self.style.brush_offset - self.style.brush_height
                _paste_clipped(strokes, stroke, sx, sy)

            for piece, offset in pieces:
                color = self.highlight_color if piece.highlighted else self.headline_color
                draw.text((x0 + offset, baseline_bottom), piece.text, font=font, fill=color, anchor="ls")
            y += self.headline_line_h

        canvas.alpha_composite(strokes)
        canvas.alpha_composite(text_layer)
        return y


# --- Entry points ---------------------------------------------------------------


def render(spec: RenderSpec) -> Image.Image:
    """
    Render one slide to an RGB image of its category's canvas size.

    Args:
        spec: Slide, category, brand, preferences and decoded imagery

    Returns:
        The composited graphic
    """
    size = CANVAS_SIZES[spec.category]
    template = effective_template(spec.slide, spec.category)
    layout = template_layout(template, spec.category)

    canvas = render_background(spec, size)

    icon_mode = spec.slide.content_mode == ContentMode.ICON
    content = spec.logo if icon_mode and spec.logo is not None else spec.source
    if layout.image_fit is not None:
        place_frame(spec, layout, canvas, content)

    align = layout.forced_align or spec.slide.text_align
    box = layout.text_box
    block = CopyBlock(spec, align, box[2] - box[0])
    if layout.text_valign == "center":
        top = box[1] + (box[3] - box[1] - block.height) / 2
    else:
        top = box[1]
    block.draw(canvas, box, top)

    logger.debug(f"Rendered slide {spec.slide.id} ({spec.category.value}, {template.value})")
    return canvas.convert("RGB")


def render_to_bytes(spec: RenderSpec, quality: int = JPEG_QUALITY_SINGLE) -> bytes:
    """Render and encode as JPEG."""
    return encode_image(render(spec), "JPEG", quality)

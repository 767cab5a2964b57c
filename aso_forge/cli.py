"""Command-line interface for the ASO Forge store listing wizard."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .ai_client import InlineImage
from .colors import is_valid_hex_color
from .config import ForgeConfig
from .copy_generator import group_names_by_type, rank_candidates, top_pick
from .exceptions import AsoForgeError, JunkInputError
from .models import BackgroundStyle, GraphicCategory, ProjectState, ScreenshotTemplate, VisualStyle
from .package_exporter import ExportSubset
from .positions import POSITION_FIELDS
from .project_store import ProjectStore, open_project_store
from .workflow import Forge, ProjectSession, new_project, resume_step

# Load environment variables
load_dotenv()

console = Console()

T = TypeVar("T")


def _configure_logging(debug: bool, log_file: Optional[Path]):
    """Configure root logging handlers and level."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w"))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def _fail(ctx: click.Context, message: str, error: Optional[BaseException] = None):
    console.print(f"[red]❌ {message}[/red]")
    if error is not None and ctx.obj.get("debug"):
        import traceback
        console.print(traceback.format_exc())
    elif error is not None:
        console.print("Run again with --debug or --log-file for details")
    sys.exit(1)


def _store(ctx: click.Context) -> ProjectStore:
    return open_project_store(ctx.obj["config"])


def _load_project(ctx: click.Context, store: ProjectStore, project_id: str) -> ProjectState:
    project = store.get(project_id)
    if project is None:
        _fail(ctx, f"No project with id {project_id}. Run 'aso-forge projects' to list them.")
    return project


def _forge(ctx: click.Context) -> Forge:
    config: ForgeConfig = ctx.obj["config"]
    if not config.openai_api_key:
        console.print("[red]Error: OPENAI_API_KEY environment variable not set[/red]")
        console.print("Hint: set OPENAI_API_KEY in your environment or a .env file")
        sys.exit(1)
    return Forge.from_config(config)


def _run_step(
    ctx: click.Context,
    project_id: str,
    description: str,
    step: Callable[[ProjectSession], Awaitable[T]],
    needs_ai: bool = True,
    action: str = "Step",
) -> T:
    """Run one wizard step against a stored project and save the result."""
    config: ForgeConfig = ctx.obj["config"]
    store = _store(ctx)
    project = _load_project(ctx, store, project_id)
    forge = _forge(ctx) if needs_ai else None

    async def runner() -> T:
        session = ProjectSession(project, store, forge, config.save_debounce)
        try:
            return await step(session)
        finally:
            await session.close()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        try:
            return asyncio.run(runner())
        except JunkInputError as e:
            progress.stop()
            console.print(f"[yellow]{e.guidance}[/yellow]")
            sys.exit(1)
        except (AsoForgeError, ValueError, KeyError) as e:
            progress.stop()
            _fail(ctx, f"{action} failed: {e}", e)


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Show debug logs and stack traces on error")
@click.option("--log-file", type=click.Path(path_type=Path), help="Write logs to file")
@click.pass_context
def cli(ctx: click.Context, debug: bool, log_file: Optional[Path]):
    """
    ASO Forge - AI-assisted store listings for browser extensions.

    Walks a project from a raw idea to names, copy, brand, icons, store
    graphics, privacy policy and a ready-to-upload package.
    """
    _configure_logging(debug, log_file)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["log_file"] = log_file
    ctx.obj.setdefault("config", ForgeConfig.from_env())


@cli.command()
@click.option("--name", default=None, help="Working name of the project")
@click.pass_context
def new(ctx: click.Context, name: Optional[str]):
    """Create an empty project."""
    project = new_project()
    if name:
        project = project.model_copy(update={"name": name})
    _store(ctx).save(project)
    console.print(f"[bold green]✅ Created project {project.id}[/bold green]")
    console.print(f"Next: aso-forge analyze {project.id} --input idea.txt")


@cli.command()
@click.pass_context
def projects(ctx: click.Context):
    """List projects, most recently saved first."""
    items = _store(ctx).list()
    if not items:
        console.print("No projects yet. Run 'aso-forge new' to start one.")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Next step")
    table.add_column("Updated")
    for project in items:
        updated = project.updated_at.strftime("%Y-%m-%d %H:%M") if project.updated_at else ""
        table.add_row(project.id, project.display_name, resume_step(project).value, updated)
    console.print(table)


@cli.command()
@click.argument("project_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, project_id: str, yes: bool):
    """Delete a project."""
    store = _store(ctx)
    project = _load_project(ctx, store, project_id)
    if not yes:
        click.confirm(f"Delete '{project.display_name}' ({project.id})?", abort=True)
    try:
        store.delete(project_id)
    except AsoForgeError as e:
        _fail(ctx, f"Delete failed: {e}", e)
    console.print(f"🗑️  Deleted {project_id}")


@cli.command()
@click.argument("project_id")
@click.option(
    "--input", "-i", "input_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File describing the extension idea",
)
@click.option("--text", "-t", help="Idea text given inline")
@click.pass_context
def analyze(ctx: click.Context, project_id: str, input_path: Optional[Path], text: Optional[str]):
    """Analyze an extension idea (category, audience, keywords, tone)."""
    if input_path is not None:
        text = input_path.read_text(encoding="utf-8")
    if not text or not text.strip():
        _fail(ctx, "Provide the idea with --input or --text")

    analysis = _run_step(ctx, project_id, "🧠 Analyzing idea...", lambda s: s.analyze(text), action="Analysis")

    table = Table(title="Analysis")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Category", analysis.category)
    table.add_row("Audience", analysis.target_audience)
    table.add_row("Tone", analysis.tone)
    table.add_row("Features", "\n".join(analysis.core_features))
    table.add_row("Keywords", ", ".join(analysis.primary_keywords))
    if analysis.seo_strategy:
        table.add_row("SEO strategy", analysis.seo_strategy)
    console.print(table)


def _print_candidates(title: str, rows: List[Any], text: Callable[[Any], str], extra: Callable[[Any], str]):
    best = top_pick(rows)
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Candidate", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Notes")
    for i, item in enumerate(rows, start=1):
        marker = " ⭐" if best is not None and item is best else ""
        table.add_row(str(i), text(item) + marker, f"{item.score:.0f}", extra(item))
    console.print(table)


def _ordered_names(project: ProjectState) -> List[Any]:
    groups = group_names_by_type(project.generated_names)
    return [name for group in groups.values() for name in group]


@cli.command()
@click.argument("project_id")
@click.option("--select", "select_index", type=int, help="Pick a listed name by number instead of generating")
@click.pass_context
def names(ctx: click.Context, project_id: str, select_index: Optional[int]):
    """Generate SEO and creative name candidates, or select one."""
    if select_index is not None:
        async def pick(session: ProjectSession):
            ordered = _ordered_names(session.project)
            if not 1 <= select_index <= len(ordered):
                raise ValueError(f"Choose a number between 1 and {len(ordered)}")
            session.select_name(ordered[select_index - 1])
            return ordered[select_index - 1]

        name = _run_step(ctx, project_id, "Selecting name...", pick, needs_ai=False)
        console.print(f"✅ Selected [bold]{name.name}[/bold] - {name.tagline}")
        return

    generated = _run_step(
        ctx, project_id, "✍️  Generating names...", lambda s: s.generate_names(), action="Naming"
    )
    groups = group_names_by_type(generated)
    offset = 0
    for name_type, group in groups.items():
        best = top_pick(group)
        table = Table(title=f"{name_type.value} names")
        table.add_column("#", justify="right")
        table.add_column("Name", style="bold")
        table.add_column("Tagline")
        table.add_column("Score", justify="right")
        for i, item in enumerate(group, start=offset + 1):
            marker = " ⭐" if best is not None and item is best else ""
            table.add_row(str(i), item.name + marker, item.tagline, f"{item.score:.0f}")
        console.print(table)
        offset += len(group)
    console.print(f"Select one with: aso-forge names {project_id} --select N")


@cli.command("short-descriptions")
@click.argument("project_id")
@click.option("--select", "select_index", type=int, help="Pick a listed description by number instead of generating")
@click.pass_context
def short_descriptions(ctx: click.Context, project_id: str, select_index: Optional[int]):
    """Generate short-description candidates (< 132 characters), or select one."""
    if select_index is not None:
        async def pick(session: ProjectSession):
            ranked = rank_candidates(session.project.generated_short_descriptions)
            if not 1 <= select_index <= len(ranked):
                raise ValueError(f"Choose a number between 1 and {len(ranked)}")
            session.select_short_description(ranked[select_index - 1])
            return ranked[select_index - 1]

        description = _run_step(ctx, project_id, "Selecting description...", pick, needs_ai=False)
        console.print(f"✅ Selected: {description.text}")
        return

    ranked = _run_step(
        ctx, project_id, "✍️  Generating short descriptions...", lambda s: s.generate_short_descriptions()
    )
    _print_candidates(
        "Short descriptions", ranked, lambda d: d.text, lambda d: f"{len(d.text)} chars"
    )
    console.print(f"Select one with: aso-forge short-descriptions {project_id} --select N")


@cli.command()
@click.argument("project_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Also write the text to a file")
@click.pass_context
def listing(ctx: click.Context, project_id: str, output: Optional[Path]):
    """Write the long store-listing description."""
    text = _run_step(ctx, project_id, "📝 Writing store listing...", lambda s: s.generate_long_description())
    console.print(text)
    if output is not None:
        output.write_text(text, encoding="utf-8")
        console.print(f"✅ Saved to {output}")


@cli.command()
@click.argument("project_id")
@click.option("--guidance", "-g", help="Direction for the palette, e.g. 'warm and earthy'")
@click.pass_context
def brand(ctx: click.Context, project_id: str, guidance: Optional[str]):
    """Generate the brand palette, typography and visual style."""
    identity = _run_step(ctx, project_id, "🎨 Building brand identity...", lambda s: s.generate_brand(guidance))

    table = Table(title="Brand identity")
    table.add_column("Slot", style="bold")
    table.add_column("Value")
    for slot, value in identity.colors.model_dump().items():
        table.add_row(slot, f"[on {value}]    [/] {value}")
    table.add_row("Heading font", identity.typography.heading_font)
    table.add_row("Body font", identity.typography.body_font)
    table.add_row("Style", identity.visual_style_description)
    console.print(table)


@cli.command()
@click.argument("project_id")
@click.option(
    "--style", "-s",
    type=click.Choice([s.value for s in VisualStyle]),
    help="Icon art direction (defaults to the project's style)",
)
@click.option("--subject", help="Icon subject to use instead of brainstorming one")
@click.option(
    "--reference",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Style reference image",
)
@click.option("--background", help="Exact background colour (#RRGGBB)")
@click.option("--foreground", help="Exact subject colour (#RRGGBB)")
@click.option("--prompt", help="Image prompt to use as-is instead of drafting one")
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Save every logo variant here",
)
@click.pass_context
def icon(
    ctx: click.Context,
    project_id: str,
    style: Optional[str],
    subject: Optional[str],
    reference: Optional[Path],
    background: Optional[str],
    foreground: Optional[str],
    prompt: Optional[str],
    output_dir: Optional[Path],
):
    """Generate logo variants; the first becomes the main icon."""
    reference_image = None
    if reference is not None:
        mime = "image/jpeg" if reference.suffix.lower() in (".jpg", ".jpeg") else "image/png"
        reference_image = InlineImage(mime, reference.read_bytes())

    async def step(session: ProjectSession):
        if style:
            session.update(visual_style=VisualStyle(style))
        return await session.generate_icon(
            style=style,
            user_subject=subject,
            reference_image=reference_image,
            background_override=background,
            subject_override=foreground,
            prompt=prompt,
        )

    variants = _run_step(ctx, project_id, "🖼️  Generating logo variants...", step)
    console.print(f"✅ Generated {len(variants)} variants; variant 1 is now the main icon")
    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        for i, variant in enumerate(variants, start=1):
            path = output_dir / f"logo_variant_{i}.png"
            path.write_bytes(variant.data)
        console.print(f"Saved variants to {output_dir}")


_CATEGORY = click.Choice([c.value for c in GraphicCategory])


@cli.command("add-screenshot")
@click.argument("project_id")
@click.argument("images", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--category", "-c", type=_CATEGORY, default=GraphicCategory.SCREENSHOTS.value, show_default=True)
@click.pass_context
def add_screenshot(ctx: click.Context, project_id: str, images: List[Path], category: str):
    """Add uploaded images as slides (screenshots also seed a marquee)."""

    async def step(session: ProjectSession):
        added = []
        for path in images:
            mime = "image/jpeg" if path.suffix.lower() in (".jpg", ".jpeg") else "image/png"
            added.append(session.add_screenshot(path.read_bytes(), category, source_file=str(path), mime_type=mime))
        return added

    added = _run_step(ctx, project_id, "Adding images...", step, needs_ai=False)
    for slide in added:
        console.print(f"✅ Added slide {slide.id} ({slide.natural_width}x{slide.natural_height})")


@cli.command("edit-slide")
@click.argument("project_id")
@click.argument("slide_id")
@click.option("--category", "-c", type=_CATEGORY, default=GraphicCategory.SCREENSHOTS.value, show_default=True)
@click.option("--template", type=click.Choice([t.value for t in ScreenshotTemplate]), help="Switch layout template")
@click.option("--headline", help="Headline text")
@click.option("--subheadline", help="Subheadline text")
@click.option("--highlight", help="Part of the headline to emphasise")
@click.option(
    "--set", "settings", multiple=True, metavar="FIELD=VALUE",
    help=f"Position field for the active template ({', '.join(POSITION_FIELDS)})",
)
@click.option(
    "--reset", "resets", multiple=True, type=click.Choice(["all", *POSITION_FIELDS]),
    help="Restore a position field (or all of them) to the template default",
)
@click.pass_context
def edit_slide(
    ctx: click.Context,
    project_id: str,
    slide_id: str,
    category: str,
    template: Optional[str],
    headline: Optional[str],
    subheadline: Optional[str],
    highlight: Optional[str],
    settings: List[str],
    resets: List[str],
):
    """Change a slide's template, copy or geometry."""
    changes = {}
    for key, value in (("headline", headline), ("subheadline", subheadline), ("highlight_text", highlight)):
        if value is not None:
            changes[key] = value
    for setting in settings:
        field, sep, value = setting.partition("=")
        if not sep:
            _fail(ctx, f"Expected FIELD=VALUE, got '{setting}'")
        changes[field.strip()] = value.strip()

    async def step(session: ProjectSession):
        slide = session.edit_slide(category, slide_id, template=template, **changes)
        for field in resets:
            slide = session.reset_slide_position(category, slide_id, None if field == "all" else field)
        return slide

    slide = _run_step(ctx, project_id, "Updating slide...", step, needs_ai=False)
    console.print(f"✅ {slide.id}: {slide.template.value} template")


@cli.command("slide-copy")
@click.argument("project_id")
@click.argument("slide_id")
@click.option("--category", "-c", type=_CATEGORY, default=GraphicCategory.SCREENSHOTS.value, show_default=True)
@click.pass_context
def slide_copy(ctx: click.Context, project_id: str, slide_id: str, category: str):
    """Let the AI write a slide's headline, subheadline and highlight."""
    slide = _run_step(
        ctx, project_id, "👀 Writing slide copy...", lambda s: s.write_slide_copy(category, slide_id)
    )
    console.print(f"[bold]{slide.headline}[/bold]")
    console.print(slide.subheadline)
    if slide.highlight_text:
        console.print(f"Highlight: {slide.highlight_text}")


@cli.command()
@click.argument("project_id")
@click.option("--slide-id", help="Render only this slide")
@click.option("--category", "-c", type=_CATEGORY, default=GraphicCategory.SCREENSHOTS.value, show_default=True)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to save a single rendered slide (JPEG)",
)
@click.option("--bg-style", type=click.Choice([s.value for s in BackgroundStyle]), help="Background style for every graphic")
@click.option("--color", "active_color", help="Background colour (#RRGGBB) for the solid style")
@click.option("--gradient", "gradient_index", type=click.IntRange(0, 3), help="Which brand gradient to use")
@click.pass_context
def render(
    ctx: click.Context,
    project_id: str,
    slide_id: Optional[str],
    category: str,
    output: Optional[Path],
    bg_style: Optional[str],
    active_color: Optional[str],
    gradient_index: Optional[int],
):
    """Render store graphics (all of them, or one slide as a download)."""
    if active_color is not None and not is_valid_hex_color(active_color):
        _fail(ctx, f"Expected a #RRGGBB colour, got '{active_color}'")
    preferences = {
        key: value
        for key, value in (("bg_style", bg_style), ("active_color", active_color), ("gradient_index", gradient_index))
        if value is not None
    }

    def apply_preferences(session: ProjectSession):
        if preferences:
            session.set_graphics_preferences(**preferences)

    if slide_id is not None:
        async def single(session: ProjectSession):
            apply_preferences(session)
            return session.render_slide(category, slide_id)

        data = _run_step(ctx, project_id, "Rendering slide...", single, needs_ai=False)
        output = output or Path(f"{slide_id}.jpg")
        output.write_bytes(data)
        console.print(f"✅ Saved {output}")
        return

    async def everything(session: ProjectSession):
        apply_preferences(session)
        return await session.render_all()

    project = _run_step(ctx, project_id, "🖌️  Rendering store graphics...", everything, needs_ai=False)

    table = Table(title="Rendered graphics")
    table.add_column("Collection", style="bold")
    table.add_column("Rendered", justify="right")
    for category_value in GraphicCategory:
        slides = project.collection(category_value)
        done = sum(1 for s in slides if s.rendered_url)
        table.add_row(category_value.value, f"{done}/{len(slides)}")
    console.print(table)


@cli.command()
@click.argument("project_id")
@click.option(
    "--manifest", "-m",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="manifest.json whose permissions the policy must cover",
)
@click.option("--enhance", is_flag=True, help="Refine the existing policy instead of writing a new one")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Also write the policy to a file")
@click.pass_context
def privacy(ctx: click.Context, project_id: str, manifest: Optional[Path], enhance: bool, output: Optional[Path]):
    """Write (or refine) the privacy policy."""
    manifest_data = None
    if manifest is not None:
        try:
            manifest_data = json.loads(manifest.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            _fail(ctx, f"{manifest} is not valid JSON: {e}")

    if enhance:
        step = lambda s: s.enhance_privacy_policy()  # noqa: E731
    else:
        step = lambda s: s.generate_privacy_policy(manifest_data)  # noqa: E731
    policy = _run_step(ctx, project_id, "🔒 Writing privacy policy...", step)
    console.print(policy)
    if output is not None:
        output.write_text(policy, encoding="utf-8")
        console.print(f"✅ Saved to {output}")


@cli.command()
@click.argument("project_id")
@click.option(
    "--output-dir", "-o",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the zip archive",
)
@click.option("--subset", type=click.Choice([s.value for s in ExportSubset]), help="Export only icons or banners")
@click.pass_context
def export(ctx: click.Context, project_id: str, output_dir: Path, subset: Optional[str]):
    """Package text, icons and rendered graphics into a zip archive."""

    async def step(session: ProjectSession):
        return session.export(output_dir, ExportSubset(subset) if subset else None)

    path = _run_step(ctx, project_id, "📦 Packaging...", step, needs_ai=False)
    console.print(f"[bold green]🎉 Package ready: {path}[/bold green]")


if __name__ == "__main__":
    cli()

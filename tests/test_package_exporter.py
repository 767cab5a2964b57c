"""Tests for listing package export."""

import io
import json
import zipfile

from aso_forge.models import (
    AnalysisResult,
    AssetUsage,
    GeneratedAsset,
    GeneratedName,
    NameType,
    ProjectState,
    ScoredDescription,
    ScreenshotData,
)
from aso_forge.package_exporter import (
    ExportSubset,
    archive_name,
    build_archive,
    export_package,
    package_files,
    project_slug,
)

from conftest import png_data_url

RENDERED = "data:image/jpeg;base64,/9j/AA=="


def _project(analysis):
    return ProjectState(
        id="proj_1",
        analysis=analysis,
        selected_name=GeneratedName(name="Tab Flow!", tagline="Never lose a tab", type=NameType.CREATIVE),
        selected_short_description=ScoredDescription(text="Save every tab.", score=92),
        full_description="SAVE TABS\n---",
        privacy_policy="# Privacy Policy",
        generated_assets=[GeneratedAsset(id="icon-main", usage=AssetUsage.ICON_MAIN, url=png_data_url((256, 256)))],
        screenshots=[
            ScreenshotData(id="s1", rendered_url=RENDERED),
            ScreenshotData(id="s2"),
            ScreenshotData(id="s3", rendered_url=RENDERED),
        ],
        small_tiles=[ScreenshotData(id="st1", rendered_url=RENDERED)],
    )


class TestNames:
    def test_slug(self):
        assert project_slug("Tab Flow!") == "tab_flow"
        assert project_slug("???") == "extension"

    def test_archive_names(self, analysis):
        project = _project(analysis)
        assert archive_name(project) == "tab_flow_complete_package.zip"
        assert archive_name(project, ExportSubset.ICONS) == "tab_flow_icons.zip"
        assert archive_name(project, "BANNERS") == "tab_flow_banners.zip"


class TestPackageFiles:
    """Tests for archive contents."""

    def test_complete_package(self, analysis):
        """Test two rendered screenshots, one tile, no marquees, main icon and four sizes."""
        files = package_files(_project(analysis))

        assert sorted(files) == sorted(
            [
                "text_assets/short_description.txt",
                "text_assets/store_listing.md",
                "text_assets/privacy_policy.md",
                "text_assets/metadata.json",
                "icons/icon_main_1024.png",
                "icons/icon_128x128.png",
                "icons/icon_48x48.png",
                "icons/icon_32x32.png",
                "icons/icon_16x16.png",
                "promo_graphics/small_promo_1.jpg",
                "screenshots/screenshot_1.jpg",
                "screenshots/screenshot_2.jpg",
            ]
        )
        assert files["text_assets/short_description.txt"] == b"Save every tab."
        metadata = json.loads(files["text_assets/metadata.json"])
        assert metadata["name"] == "Tab Flow!"
        assert metadata["tagline"] == "Never lose a tab"
        assert metadata["keywords"] == analysis.primary_keywords

    def test_icons_subset(self, analysis):
        files = package_files(_project(analysis), ExportSubset.ICONS)
        assert all(path.startswith("icons/") for path in files)
        assert len(files) == 5

    def test_banners_subset(self, analysis):
        files = package_files(_project(analysis), ExportSubset.BANNERS)
        assert sorted(files) == [
            "promo_graphics/small_promo_1.jpg",
            "screenshots/screenshot_1.jpg",
            "screenshots/screenshot_2.jpg",
        ]

    def test_project_without_icon(self):
        files = package_files(ProjectState(id="proj_2"))
        assert not any(path.startswith("icons/") for path in files)
        assert files["text_assets/privacy_policy.md"] == b""


class TestArchive:
    def test_build_and_write(self, analysis, tmp_path):
        project = _project(analysis)
        with zipfile.ZipFile(io.BytesIO(build_archive(project))) as archive:
            assert "screenshots/screenshot_2.jpg" in archive.namelist()

        path = export_package(project, tmp_path / "out", ExportSubset.ICONS)
        assert path.name == "tab_flow_icons.zip"
        with zipfile.ZipFile(path) as archive:
            assert len(archive.namelist()) == 5

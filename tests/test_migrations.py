"""Tests for persisted-record migrations."""

from aso_forge.migrations import migrate_brand_identity, migrate_project, migrate_record


LEGACY_RECORD = {
    "id": "proj_1700000000000",
    "name": "Tab Saver",
    "brand_identity": {
        "colors": {
            "primary": "#3366cc",
            "secondary": "#224488",
            "accent": "#ff9900",
            "background": "#101010",
        },
        "typography": {"headingFont": "Poppins"},
        "visualStyleDescription": "Bold and bright",
    },
}


class TestMigrations:
    """Tests for the 4-slot to 8-slot brand migration."""

    def test_brand_identity_mapping(self):
        migrated = migrate_brand_identity(LEGACY_RECORD["brand_identity"])
        colors = migrated["colors"]
        assert colors["primary1"] == "#3366cc"
        assert colors["primary2"] == "#224488"
        assert colors["accent1"] == colors["accent2"] == colors["highlight_neon"] == "#ff9900"
        assert colors["neutral_black"] == "#101010"
        assert migrated["typography"]["heading_font"] == "Poppins"
        assert migrated["typography"]["body_font"] == "Poppins"

    def test_current_brand_is_unchanged(self):
        brand = {"colors": {"primary1": "#123456"}}
        assert migrate_brand_identity(brand) is brand

    def test_record_is_stamped_and_not_mutated(self):
        migrated = migrate_record(LEGACY_RECORD)
        assert migrated["schema_version"] == 2
        assert "schema_version" not in LEGACY_RECORD
        assert "primary" in LEGACY_RECORD["brand_identity"]["colors"]

    def test_migrate_project(self):
        project = migrate_project(LEGACY_RECORD)
        assert project.brand_identity.colors.primary1 == "#3366cc"
        assert project.brand_identity.colors.neutral_white == "#ffffff"
        assert project.brand_identity.visual_style_description == "Bold and bright"
        assert project.schema_version == 2

    def test_newer_version_is_left_alone(self):
        record = {"id": "proj_2", "schema_version": 99}
        assert migrate_record(record)["schema_version"] == 99

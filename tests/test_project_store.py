"""Tests for project persistence."""

import asyncio
import json
from unittest.mock import Mock, patch

import pytest
import requests

from aso_forge.config import ForgeConfig
from aso_forge.exceptions import ProjectStoreError
from aso_forge.models import ProjectState
from aso_forge.project_store import (
    DebouncedSaver,
    LocalProjectStore,
    ProjectStore,
    SupabaseProjectStore,
    open_project_store,
)


class TestLocalProjectStore:
    """Tests for the JSON file store."""

    def setup_method(self):
        """Set up test fixtures."""
        self.project = ProjectState(id="proj_1", name="First")

    def test_empty_store(self, tmp_path):
        assert LocalProjectStore(tmp_path).list() == []

    def test_save_and_list_most_recent_first(self, tmp_path):
        store = LocalProjectStore(tmp_path)
        store.save(self.project)
        store.save(ProjectState(id="proj_2", name="Second"))
        store.save(self.project.model_copy(update={"name": "First again"}))

        projects = store.list()

        assert [p.id for p in projects] == ["proj_1", "proj_2"]
        assert projects[0].name == "First again"
        assert projects[0].updated_at is not None

    def test_save_returns_stamped_copy(self, tmp_path):
        saved = LocalProjectStore(tmp_path).save(self.project)
        assert saved.updated_at is not None
        assert self.project.updated_at is None

    def test_get_and_delete(self, tmp_path):
        store = LocalProjectStore(tmp_path)
        store.save(self.project)
        assert store.get("proj_1").name == "First"

        store.delete("proj_1")
        store.delete("missing")

        assert store.get("proj_1") is None

    def test_legacy_record_is_migrated(self, tmp_path):
        legacy = {"id": "proj_old", "brand_identity": {"colors": {"primary": "#3366cc", "accent": "#ff9900"}}}
        (tmp_path / "projects.json").write_text(json.dumps([legacy]), encoding="utf-8")

        project = LocalProjectStore(tmp_path).get("proj_old")

        assert project.brand_identity.colors.primary1 == "#3366cc"
        assert project.schema_version == 2

    def test_unreadable_records_are_skipped(self, tmp_path):
        records = [{"id": "proj_ok"}, {"name": "no id"}]
        (tmp_path / "projects.json").write_text(json.dumps(records), encoding="utf-8")
        assert [p.id for p in LocalProjectStore(tmp_path).list()] == ["proj_ok"]

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "projects.json").write_text("{not json", encoding="utf-8")
        assert LocalProjectStore(tmp_path).list() == []


class TestSupabaseProjectStore:
    """Tests for the remote REST store."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = SupabaseProjectStore("https://example.supabase.co/", "anon-key")
        self.store.session = Mock()

    def test_headers(self):
        store = SupabaseProjectStore("https://example.supabase.co", "anon-key")
        assert store.endpoint == "https://example.supabase.co/rest/v1/projects"
        assert store.session.headers["apikey"] == "anon-key"
        assert store.session.headers["Authorization"] == "Bearer anon-key"

    def test_list(self):
        response = Mock()
        response.json.return_value = [
            {"state": {"id": "proj_2", "name": "Newest"}},
            {"state": None},
            {"state": {"id": "proj_1"}},
        ]
        self.store.session.get.return_value = response

        projects = self.store.list()

        assert [p.id for p in projects] == ["proj_2", "proj_1"]
        params = self.store.session.get.call_args.kwargs["params"]
        assert params["order"] == "updated_at.desc"

    def test_list_failure_returns_empty(self):
        self.store.session.get.side_effect = requests.ConnectionError("offline")
        assert self.store.list() == []

    def test_save_upserts(self):
        self.store.session.post.return_value = Mock()

        saved = self.store.save(ProjectState(id="proj_1", name="Tabs"))

        kwargs = self.store.session.post.call_args.kwargs
        assert kwargs["headers"] == {"Prefer": "resolution=merge-duplicates"}
        assert kwargs["json"]["id"] == "proj_1"
        assert kwargs["json"]["state"]["name"] == "Tabs"
        assert saved.updated_at is not None

    def test_save_failure_raises(self):
        error = requests.HTTPError("denied")
        error.response = Mock(status_code=401)
        response = Mock()
        response.raise_for_status.side_effect = error
        self.store.session.post.return_value = response

        with pytest.raises(ProjectStoreError) as exc_info:
            self.store.save(ProjectState(id="proj_1"))

        assert exc_info.value.status_code == 401
        assert "(HTTP 401)" in str(exc_info.value)

    def test_delete(self):
        self.store.session.delete.return_value = Mock()
        self.store.delete("proj_1")
        assert self.store.session.delete.call_args.kwargs["params"] == {"id": "eq.proj_1"}


class TestOpenProjectStore:
    def test_local_by_default(self, tmp_path):
        assert isinstance(open_project_store(ForgeConfig(data_dir=tmp_path)), LocalProjectStore)

    def test_remote_when_configured(self, tmp_path):
        config = ForgeConfig(data_dir=tmp_path, supabase_url="https://x.supabase.co", supabase_key="k")
        assert isinstance(open_project_store(config), SupabaseProjectStore)


class RecordingStore(ProjectStore):
    def __init__(self, fail=False):
        self.saved = []
        self.fail = fail

    def list(self):
        return list(reversed(self.saved))

    def save(self, project):
        if self.fail:
            raise ProjectStoreError("down", status_code=503)
        self.saved.append(project)
        return project

    def delete(self, project_id):
        self.saved = [p for p in self.saved if p.id != project_id]


class TestDebouncedSaver:
    """Tests for coalesced autosave."""

    @pytest.mark.asyncio
    async def test_only_latest_state_is_written(self):
        store = RecordingStore()
        saver = DebouncedSaver(store, delay=0.05)

        for i in range(5):
            saver.schedule(ProjectState(id="proj_1", name=f"v{i}"))
        await asyncio.sleep(0.15)

        assert [p.name for p in store.saved] == ["v4"]
        assert not saver.pending

    @pytest.mark.asyncio
    async def test_flush_writes_immediately(self):
        store = RecordingStore()
        saver = DebouncedSaver(store, delay=60)

        saver.schedule(ProjectState(id="proj_1", name="draft"))
        assert saver.pending
        await saver.flush()

        assert [p.name for p in store.saved] == ["draft"]
        await saver.flush()
        assert len(store.saved) == 1

    @pytest.mark.asyncio
    async def test_failed_write_is_logged(self):
        saver = DebouncedSaver(RecordingStore(fail=True), delay=0)
        saver.schedule(ProjectState(id="proj_1"))
        with patch("aso_forge.project_store.logger") as logger:
            await saver.flush()
        logger.error.assert_called_once()
        assert not saver.pending

    def test_schedule_without_event_loop_saves_immediately(self):
        store = RecordingStore()
        saver = DebouncedSaver(store, delay=60)

        saver.schedule(ProjectState(id="proj_1", name="offline edit"))

        assert [p.name for p in store.saved] == ["offline edit"]
        assert not saver.pending

    @pytest.mark.asyncio
    async def test_write_runs_off_the_event_loop(self):
        saver = DebouncedSaver(RecordingStore(), delay=60)
        saver.schedule(ProjectState(id="proj_1"))
        with patch("aso_forge.project_store.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
            await saver.flush()
        to_thread.assert_called_once()


class TestProjectStoreInterface:
    def test_interface_is_abstract(self):
        with pytest.raises(TypeError):
            ProjectStore()

    def test_get_uses_list(self):
        store = RecordingStore()
        store.save(ProjectState(id="proj_1", name="Tabs"))
        assert store.get("proj_1").name == "Tabs"
        assert store.get("missing") is None

"""Persistence of projects: a remote REST table with a local JSON fallback."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .config import ForgeConfig
from .exceptions import ProjectStoreError
from .migrations import migrate_project
from .models import ProjectState

logger = logging.getLogger(__name__)

PROJECTS_FILE = "projects.json"
PROJECTS_TABLE = "projects"


def _stamp(project: ProjectState) -> ProjectState:
    return project.model_copy(update={"updated_at": datetime.now(timezone.utc)})


def _load_records(records: List[Dict[str, Any]]) -> List[ProjectState]:
    projects = []
    for record in records:
        try:
            projects.append(migrate_project(record))
        except ValueError as e:
            logger.error(f"Skipping unreadable project {record.get('id')}: {e}")
    return projects


class ProjectStore(ABC):
    """``list`` (most recent first), ``save`` (upsert by id) and ``delete``."""

    @abstractmethod
    def list(self) -> List[ProjectState]:
        """All stored projects, most recently saved first."""

    @abstractmethod
    def save(self, project: ProjectState) -> ProjectState:
        """Insert or replace ``project`` and return the stored (timestamped) copy."""

    @abstractmethod
    def delete(self, project_id: str) -> None:
        """Remove a project; unknown ids are ignored."""

    def get(self, project_id: str) -> Optional[ProjectState]:
        for project in self.list():
            if project.id == project_id:
                return project
        return None


class LocalProjectStore(ProjectStore):
    """Projects kept in one JSON file, most recently saved first."""

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / PROJECTS_FILE

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read project file {self.path}: {e}")
            return []
        return records if isinstance(records, list) else []

    def _write(self, records: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
        tmp_path.replace(self.path)

    def list(self) -> List[ProjectState]:
        return _load_records(self._read())

    def save(self, project: ProjectState) -> ProjectState:
        project = _stamp(project)
        records = [r for r in self._read() if r.get("id") != project.id]
        records.insert(0, project.model_dump(mode="json"))
        self._write(records)
        logger.debug(f"Saved project {project.id} to {self.path}")
        return project

    def delete(self, project_id: str) -> None:
        records = self._read()
        remaining = [r for r in records if r.get("id") != project_id]
        if len(remaining) != len(records):
            self._write(remaining)
            logger.info(f"Deleted project {project_id}")


class SupabaseProjectStore(ProjectStore):
    """Projects kept in a Supabase ``projects`` table through its REST API.

    Rows are ``{id, name, state, updated_at}`` where ``state`` is the full
    project document.
    """

    def __init__(self, url: str, api_key: str, timeout: float = 10.0):
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{PROJECTS_TABLE}"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def list(self) -> List[ProjectState]:
        try:
            response = self.session.get(
                self.endpoint,
                params={"select": "state", "order": "updated_at.desc"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            rows = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to list projects from remote store: {e}")
            return []
        return _load_records([row["state"] for row in rows if isinstance(row.get("state"), dict)])

    def save(self, project: ProjectState) -> ProjectState:
        """
        Upsert a project row.

        Raises:
            ProjectStoreError: If the remote store rejects or cannot take the write
        """
        project = _stamp(project)
        row = {
            "id": project.id,
            "name": project.display_name,
            "state": project.model_dump(mode="json"),
            "updated_at": project.updated_at.isoformat(),
        }
        try:
            response = self.session.post(
                self.endpoint,
                json=row,
                headers={"Prefer": "resolution=merge-duplicates"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to save project {project.id}: {e}")
            status = e.response.status_code if e.response is not None else None
            raise ProjectStoreError(f"Could not save project {project.id}", status_code=status) from e
        return project

    def delete(self, project_id: str) -> None:
        try:
            response = self.session.delete(
                self.endpoint, params={"id": f"eq.{project_id}"}, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to delete project {project_id}: {e}")
            status = e.response.status_code if e.response is not None else None
            raise ProjectStoreError(f"Could not delete project {project_id}", status_code=status) from e


def open_project_store(config: ForgeConfig) -> ProjectStore:
    """The remote store when it is configured, otherwise the local JSON store."""
    if config.has_remote_store:
        logger.debug("Using remote project store")
        return SupabaseProjectStore(config.supabase_url, config.supabase_key)
    logger.debug(f"Using local project store in {config.data_dir}")
    return LocalProjectStore(config.data_dir)


class DebouncedSaver:
    """Coalesces rapid saves: only the latest project is written after a quiet period."""

    def __init__(self, store: ProjectStore, delay: float = 1.0):
        self.store = store
        self.delay = delay
        self._pending: Optional[ProjectState] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, project: ProjectState) -> None:
        """
        Replace any pending write with ``project`` and restart the quiet period.

        Outside a running event loop there is no timer to wait on, so the
        project is written straight away.
        """
        self._pending = project
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._save(self._take())
            return
        self._task = loop.create_task(self._save_later())

    def _take(self) -> Optional[ProjectState]:
        project, self._pending = self._pending, None
        return project

    def _save(self, project: Optional[ProjectState]) -> None:
        if project is None:
            return
        try:
            self.store.save(project)
        except ProjectStoreError as e:
            logger.error(f"Autosave failed: {e}")

    async def _save_later(self) -> None:
        await asyncio.sleep(self.delay)
        await self._write()

    async def _write(self) -> None:
        project = self._take()
        if project is not None:
            await asyncio.to_thread(self._save, project)

    async def flush(self) -> None:
        """Write the pending project now, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        await self._write()

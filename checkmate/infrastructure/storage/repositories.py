"""Repository implementations for domain aggregates.

Each aggregate type is stored as one JSON document keyed by id under the
data directory (``tasks.json``, ``tags.json``, ...). Passing ``path=None``
keeps the collection in memory instead, which is what tests use.

All methods return Result types. ``save`` is an upsert, ``delete`` is
idempotent, and ``find_by_id`` returns Err when nothing has that id.
"""

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from checkmate.domain.routine.models import Routine
from checkmate.domain.shared.result import Err, Ok, Result
from checkmate.domain.sprint.models import Sprint, Tag
from checkmate.domain.task.models import Task, TaskStatus
from checkmate.infrastructure.storage.json_storage import JsonStorage

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

TASKS_FILE = "tasks.json"
TAGS_FILE = "tags.json"
SPRINTS_FILE = "sprints.json"
ROUTINES_FILE = "routines.json"


class JsonCollectionRepository(Generic[M]):
    """A keyed collection of one model type.

    Every read-modify-write of the backing document happens under a lock so
    concurrent saves of different entities do not overwrite each other.
    """

    model: type[M]
    resource: str = "Entity"

    def __init__(self, path: Path | None = None, storage: JsonStorage | None = None) -> None:
        """Initialize the repository.

        Args:
            path: JSON document to persist to, or None for in-memory only.
            storage: JsonStorage instance to use. Creates new one if not provided.
        """
        self._path = path
        self._storage = storage or JsonStorage()
        self._memory: dict[str, M] = {}
        self._lock = threading.RLock()

    @property
    def path(self) -> Path | None:
        return self._path

    # -------------------------------------------------------------------------
    # Document I/O
    # -------------------------------------------------------------------------

    def _load(self) -> Result[dict[str, M], str]:
        if self._path is None:
            return Ok(dict(self._memory))

        result = self._storage.load_json(self._path, default={"items": {}})
        if isinstance(result, Err):
            return result

        items: dict[str, M] = {}
        for entity_id, raw in result.value.get("items", {}).items():
            try:
                items[entity_id] = self.model.model_validate(raw)
            except ValidationError as e:
                return Err(f"Invalid {self.resource.lower()} data for {entity_id}: {e}")
        return Ok(items)

    def _store(self, items: dict[str, M]) -> Result[None, str]:
        if self._path is None:
            self._memory = dict(items)
            return Ok(None)
        payload = {"items": {k: v.model_dump(mode="json") for k, v in items.items()}}
        return self._storage.save_json(self._path, payload)

    # -------------------------------------------------------------------------
    # Repository Contract
    # -------------------------------------------------------------------------

    def save(self, entity: M) -> Result[M, str]:
        """Insert or replace ``entity`` by id."""
        with self._lock:
            loaded = self._load()
            if isinstance(loaded, Err):
                return loaded
            items = loaded.value
            items[entity.id] = entity
            stored = self._store(items)
            if isinstance(stored, Err):
                logger.error("Failed to save %s %s: %s", self.resource, entity.id, stored.error)
                return stored
        return Ok(entity)

    def save_all(self, entities: list[M]) -> Result[list[M], str]:
        """Upsert several entities with a single write."""
        with self._lock:
            loaded = self._load()
            if isinstance(loaded, Err):
                return loaded
            items = loaded.value
            for entity in entities:
                items[entity.id] = entity
            stored = self._store(items)
            if isinstance(stored, Err):
                return stored
        return Ok(list(entities))

    def find_by_id(self, entity_id: str) -> Result[M, str]:
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        entity = loaded.value.get(entity_id)
        if entity is None:
            return Err(f"{self.resource} not found: {entity_id}")
        return Ok(entity)

    def find_all(self) -> Result[list[M], str]:
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        return Ok(list(loaded.value.values()))

    def exists(self, entity_id: str) -> bool:
        loaded = self._load()
        return isinstance(loaded, Ok) and entity_id in loaded.value

    def delete(self, entity_id: str) -> Result[None, str]:
        """Remove ``entity_id``; deleting something absent is not an error."""
        with self._lock:
            loaded = self._load()
            if isinstance(loaded, Err):
                return loaded
            items = loaded.value
            if items.pop(entity_id, None) is None:
                return Ok(None)
            return self._store(items)

    def _find_where(self, predicate: Callable[[M], bool]) -> Result[list[M], str]:
        loaded = self._load()
        if isinstance(loaded, Err):
            return loaded
        return Ok([entity for entity in loaded.value.values() if predicate(entity)])


class TaskRepository(JsonCollectionRepository[Task]):
    """Task persistence with the collection queries the services need."""

    model = Task
    resource = "Task"

    def find_by_sprint(self, sprint_id: str) -> Result[list[Task], str]:
        return self._find_where(lambda t: t.location.sprint_id == sprint_id)

    def find_in_backlog(self) -> Result[list[Task], str]:
        return self._find_where(lambda t: t.location.is_backlog)

    def find_templates(self) -> Result[list[Task], str]:
        return self._find_where(lambda t: t.is_recurring_template)

    def find_by_parent(self, parent_id: str) -> Result[list[Task], str]:
        return self._find_where(lambda t: t.parent_id == parent_id)

    def find_active(self) -> Result[list[Task], str]:
        return self._find_where(lambda t: t.status == TaskStatus.ACTIVE)

    def find_completed(self) -> Result[list[Task], str]:
        return self._find_where(lambda t: t.status == TaskStatus.COMPLETED)


class TagRepository(JsonCollectionRepository[Tag]):
    model = Tag
    resource = "Tag"

    def find_by_name(self, name: str) -> Result[Tag | None, str]:
        wanted = name.strip().casefold()
        found = self._find_where(lambda t: t.name.casefold() == wanted)
        if isinstance(found, Err):
            return found
        return Ok(found.value[0] if found.value else None)


class SprintRepository(JsonCollectionRepository[Sprint]):
    model = Sprint
    resource = "Sprint"

    def find_all_ordered(self) -> Result[list[Sprint], str]:
        """All sprints by start date."""
        found = self.find_all()
        if isinstance(found, Err):
            return found
        return Ok(sorted(found.value, key=lambda s: s.start_date))


class RoutineRepository(JsonCollectionRepository[Routine]):
    model = Routine
    resource = "Routine"


class Repositories:
    """The four repositories for one data directory."""

    def __init__(
        self,
        tasks: TaskRepository,
        tags: TagRepository,
        sprints: SprintRepository,
        routines: RoutineRepository,
    ) -> None:
        self.tasks = tasks
        self.tags = tags
        self.sprints = sprints
        self.routines = routines

    @classmethod
    def in_directory(cls, data_dir: Path, storage: JsonStorage | None = None) -> "Repositories":
        storage = storage or JsonStorage()
        logger.debug("Using data directory %s", data_dir)
        return cls(
            tasks=TaskRepository(data_dir / TASKS_FILE, storage),
            tags=TagRepository(data_dir / TAGS_FILE, storage),
            sprints=SprintRepository(data_dir / SPRINTS_FILE, storage),
            routines=RoutineRepository(data_dir / ROUTINES_FILE, storage),
        )

    @classmethod
    def in_memory(cls) -> "Repositories":
        return cls(
            tasks=TaskRepository(),
            tags=TagRepository(),
            sprints=SprintRepository(),
            routines=RoutineRepository(),
        )

"""
Async registry stores for all curation persistence.

Every registry read or write the dimension evaluators and the effects step
perform goes through a :class:`RegistryStore`.  Two implementations exist:

- :class:`SupabaseRegistry` -- production store backed by Supabase tables
  and the atomic RPC functions in ``migrations/001_curation_registries.sql``.
- :class:`InMemoryRegistry` -- dict-backed store for tests and local runs,
  optionally seeded from a YAML file.

All technique-keyed registries are keyed by the normalized technique name
(see :func:`curation.utils.normalize_technique_name`).

Usage::

    from curation.database import SupabaseRegistry, get_registry

    store = await get_registry()
    record = await store.get_instructor_by_name("Gordon Ryan")
"""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import yaml
from supabase import AsyncClient, create_async_client

from curation.exceptions import ConfigurationError, RegistryError, ValidationError
from curation.models import (
    SKILL_LEVELS,
    CoverageRecord,
    EmergingStatus,
    EmergingTechniqueRecord,
    InstructorRecord,
    LibraryVideo,
    PerformanceRecord,
    TaxonomyEntry,
)
from curation.utils import normalize_technique_name, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# VALIDATION HELPERS
# =============================================================================


def validate_not_empty(value: Any, name: str) -> None:
    """Validate that *value* is not ``None`` or an empty string.

    Raises:
        ValidationError: If *value* is ``None`` or a blank string.
    """
    if value is None:
        raise ValidationError(f"{name} cannot be None")
    if isinstance(value, str) and not value.strip():
        raise ValidationError(f"{name} cannot be empty string")


def validate_positive(value: Union[int, float], name: str) -> None:
    """Validate that *value* is strictly positive (> 0).

    Raises:
        ValidationError: If *value* is ``None`` or not positive.
    """
    if value is None:
        raise ValidationError(f"{name} cannot be None")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def validate_skill_level(value: str) -> None:
    if value not in SKILL_LEVELS:
        raise ValidationError(
            f"skill_level must be one of {SKILL_LEVELS}, got '{value}'"
        )


# =============================================================================
# STORE PROTOCOL
# =============================================================================


class RegistryStore(Protocol):
    """Read/write contract of the curation registries."""

    async def get_instructor_by_name(self, name: str) -> Optional[InstructorRecord]: ...

    async def get_instructor_by_channel(self, channel_id: str) -> Optional[InstructorRecord]: ...

    async def save_instructor(self, record: InstructorRecord) -> InstructorRecord: ...

    async def get_taxonomy_entry(self, technique_key: str) -> Optional[TaxonomyEntry]: ...

    async def save_taxonomy_entry(self, entry: TaxonomyEntry) -> TaxonomyEntry: ...

    async def get_coverage(self, technique_key: str) -> Optional[CoverageRecord]: ...

    async def count_active_videos(self, technique_key: str) -> int: ...

    async def increment_coverage(self, technique_key: str, skill_level: str) -> None: ...

    async def video_exists(self, video_id: str) -> bool: ...

    async def find_similar_videos(
        self, technique_key: str, instructor_name: str, limit: int = 10
    ) -> List[LibraryVideo]: ...

    async def get_emerging_technique(
        self, technique_key: str
    ) -> Optional[EmergingTechniqueRecord]: ...

    async def upsert_emerging_technique(
        self, technique_key: str, instructor_name: Optional[str] = None
    ) -> None: ...

    async def get_performance(self, video_id: int) -> Optional[PerformanceRecord]: ...

    async def save_curation_log(self, log_entry: Dict[str, Any]) -> None: ...


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class SupabaseConfig:
    """Supabase configuration loaded from environment variables.

    Attributes:
        url: The Supabase project URL (``SUPABASE_URL``).
        key: The service-role key (``SUPABASE_SERVICE_KEY``).
    """

    url: str
    key: str

    @classmethod
    def from_env(cls) -> "SupabaseConfig":
        """Create a config instance from environment variables.

        Raises:
            ConfigurationError: If either variable is missing or empty.
        """
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_KEY")

        if not url or not key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set"
            )

        return cls(url=url, key=key)


# =============================================================================
# SUPABASE REGISTRY
# =============================================================================


class SupabaseRegistry:
    """Registry store backed by Supabase.

    **Important:** Use the :meth:`create` factory method instead of
    ``__init__`` directly -- the underlying async client requires an
    ``await`` during initialisation.

    Query errors surface as :class:`RegistryError`; the dimension
    evaluators turn those into degraded outcomes.
    """

    def __init__(self, client: AsyncClient) -> None:
        """Private constructor.  Use :meth:`create` factory method."""
        self.client = client

    @classmethod
    async def create(
        cls, config: Optional[SupabaseConfig] = None
    ) -> "SupabaseRegistry":
        config = config or SupabaseConfig.from_env()
        client = await create_async_client(config.url, config.key)
        return cls(client)

    async def _execute(self, operation: str, query: Any) -> Any:
        try:
            return await query.execute()
        except Exception as exc:
            raise RegistryError(operation, str(exc)) from exc

    # -----------------------------------------------------------------
    # INSTRUCTORS
    # -----------------------------------------------------------------

    async def get_instructor_by_name(self, name: str) -> Optional[InstructorRecord]:
        """Case-insensitive exact name lookup."""
        validate_not_empty(name, "name")

        result = await self._execute(
            "get_instructor_by_name",
            self.client.table("instructors").select("*").ilike("name", name.strip()).limit(1),
        )
        return InstructorRecord.from_row(result.data[0]) if result.data else None

    async def get_instructor_by_channel(self, channel_id: str) -> Optional[InstructorRecord]:
        validate_not_empty(channel_id, "channel_id")

        result = await self._execute(
            "get_instructor_by_channel",
            self.client.table("instructors").select("*").eq("channel_id", channel_id).limit(1),
        )
        return InstructorRecord.from_row(result.data[0]) if result.data else None

    async def save_instructor(self, record: InstructorRecord) -> InstructorRecord:
        """Insert or update an instructor keyed by name.

        Raises:
            RegistryError: When the upsert returns no data.
        """
        validate_not_empty(record.name, "record.name")

        result = await self._execute(
            "save_instructor",
            self.client.table("instructors").upsert(record.to_row(), on_conflict="name"),
        )
        if not result.data:
            raise RegistryError("save_instructor", "Upsert succeeded but returned no data")
        return InstructorRecord.from_row(result.data[0])

    # -----------------------------------------------------------------
    # TAXONOMY
    # -----------------------------------------------------------------

    async def get_taxonomy_entry(self, technique_key: str) -> Optional[TaxonomyEntry]:
        validate_not_empty(technique_key, "technique_key")

        result = await self._execute(
            "get_taxonomy_entry",
            self.client.table("technique_taxonomy")
            .select("*")
            .eq("technique_name", technique_key)
            .limit(1),
        )
        return TaxonomyEntry.from_row(result.data[0]) if result.data else None

    async def save_taxonomy_entry(self, entry: TaxonomyEntry) -> TaxonomyEntry:
        validate_not_empty(entry.technique_name, "entry.technique_name")

        result = await self._execute(
            "save_taxonomy_entry",
            self.client.table("technique_taxonomy").upsert(
                entry.to_row(), on_conflict="technique_name"
            ),
        )
        if not result.data:
            raise RegistryError("save_taxonomy_entry", "Upsert succeeded but returned no data")
        return TaxonomyEntry.from_row(result.data[0])

    # -----------------------------------------------------------------
    # COVERAGE
    # -----------------------------------------------------------------

    async def get_coverage(self, technique_key: str) -> Optional[CoverageRecord]:
        validate_not_empty(technique_key, "technique_key")

        result = await self._execute(
            "get_coverage",
            self.client.table("technique_coverage")
            .select("*")
            .eq("technique_name", technique_key)
            .limit(1),
        )
        return CoverageRecord.from_row(result.data[0]) if result.data else None

    async def count_active_videos(self, technique_key: str) -> int:
        validate_not_empty(technique_key, "technique_key")

        result = await self._execute(
            "count_active_videos",
            self.client.table("library_videos")
            .select("video_id", count="exact")
            .eq("technique_name", technique_key)
            .eq("status", "active"),
        )
        return result.count or 0

    async def increment_coverage(self, technique_key: str, skill_level: str) -> None:
        """Atomically bump overall and per-level coverage counters."""
        validate_not_empty(technique_key, "technique_key")
        validate_skill_level(skill_level)

        await self._execute(
            "increment_coverage",
            self.client.rpc(
                "increment_coverage",
                {"p_technique_name": technique_key, "p_skill_level": skill_level},
            ),
        )

    # -----------------------------------------------------------------
    # LIBRARY VIDEOS
    # -----------------------------------------------------------------

    async def video_exists(self, video_id: str) -> bool:
        validate_not_empty(video_id, "video_id")

        result = await self._execute(
            "video_exists",
            self.client.table("library_videos")
            .select("video_id", count="exact")
            .eq("video_id", video_id),
        )
        return bool(result.count)

    async def find_similar_videos(
        self, technique_key: str, instructor_name: str, limit: int = 10
    ) -> List[LibraryVideo]:
        """Active library videos sharing technique and instructor."""
        validate_not_empty(technique_key, "technique_key")
        validate_not_empty(instructor_name, "instructor_name")
        validate_positive(limit, "limit")

        result = await self._execute(
            "find_similar_videos",
            self.client.table("library_videos")
            .select("*")
            .eq("technique_name", technique_key)
            .ilike("instructor_name", instructor_name.strip())
            .eq("status", "active")
            .limit(limit),
        )
        return [LibraryVideo.from_row(row) for row in result.data or []]

    # -----------------------------------------------------------------
    # EMERGING TECHNIQUES
    # -----------------------------------------------------------------

    async def get_emerging_technique(
        self, technique_key: str
    ) -> Optional[EmergingTechniqueRecord]:
        validate_not_empty(technique_key, "technique_key")

        result = await self._execute(
            "get_emerging_technique",
            self.client.table("emerging_techniques")
            .select("*")
            .eq("technique_name", technique_key)
            .limit(1),
        )
        return EmergingTechniqueRecord.from_row(result.data[0]) if result.data else None

    async def upsert_emerging_technique(
        self, technique_key: str, instructor_name: Optional[str] = None
    ) -> None:
        """Single-statement merge: insert or increment ``video_count``."""
        validate_not_empty(technique_key, "technique_key")

        await self._execute(
            "upsert_emerging_technique",
            self.client.rpc(
                "upsert_emerging_technique",
                {"p_technique_name": technique_key, "p_instructor_name": instructor_name},
            ),
        )

    # -----------------------------------------------------------------
    # PERFORMANCE
    # -----------------------------------------------------------------

    async def get_performance(self, video_id: int) -> Optional[PerformanceRecord]:
        validate_positive(video_id, "video_id")

        result = await self._execute(
            "get_performance",
            self.client.table("video_performance")
            .select("*")
            .eq("video_id", video_id)
            .limit(1),
        )
        return PerformanceRecord.from_row(result.data[0]) if result.data else None

    # -----------------------------------------------------------------
    # CURATION LOGS
    # -----------------------------------------------------------------

    async def save_curation_log(self, log_entry: Dict[str, Any]) -> None:
        if not log_entry:
            raise ValidationError("log_entry cannot be None or empty")
        if "timestamp" not in log_entry or "level" not in log_entry:
            raise ValidationError("log_entry must have 'timestamp' and 'level'")

        await self._execute(
            "save_curation_log",
            self.client.table("curation_logs").insert(log_entry),
        )


# =============================================================================
# IN-MEMORY REGISTRY
# =============================================================================


class InMemoryRegistry:
    """Dict-backed registry store.

    Mutations are serialized by an ``asyncio.Lock`` so concurrent merges on
    the same technique never lose an increment.
    """

    def __init__(self) -> None:
        self.instructors: Dict[str, InstructorRecord] = {}
        self.taxonomy: Dict[str, TaxonomyEntry] = {}
        self.coverage: Dict[str, CoverageRecord] = {}
        self.emerging: Dict[str, EmergingTechniqueRecord] = {}
        self.performance: Dict[int, PerformanceRecord] = {}
        self.library: Dict[str, Dict[str, Any]] = {}
        self.curation_logs: List[Dict[str, Any]] = []
        self._lock = asyncio.Lock()
        self._next_instructor_id = 1
        self._next_taxonomy_id = 1

    # -----------------------------------------------------------------
    # SEEDING
    # -----------------------------------------------------------------

    @classmethod
    def from_seed(cls, path: Union[str, Path]) -> "InMemoryRegistry":
        """Build a store from a YAML seed file.

        Expected top-level keys (all optional): ``instructors``,
        ``taxonomy``, ``coverage``, ``emerging``, ``performance``,
        ``library``.  Each holds a list of rows shaped like the
        corresponding Supabase table.

        Raises:
            ConfigurationError: If the file is missing or cannot be parsed.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Registry seed file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Failed to parse registry seed YAML at {path}: {exc}"
            ) from exc
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryRegistry":
        store = cls()
        for row in data.get("instructors", []) or []:
            store.add_instructor(InstructorRecord.from_row(row))
        for row in data.get("taxonomy", []) or []:
            store.add_taxonomy_entry(TaxonomyEntry.from_row(row))
        for row in data.get("coverage", []) or []:
            record = CoverageRecord.from_row(row)
            record.technique_name = normalize_technique_name(record.technique_name)
            store.coverage[record.technique_name] = record
        for row in data.get("emerging", []) or []:
            record = EmergingTechniqueRecord.from_row(row)
            record.technique_name = normalize_technique_name(record.technique_name)
            store.emerging[record.technique_name] = record
        for row in data.get("performance", []) or []:
            perf = PerformanceRecord.from_row(row)
            store.performance[perf.video_id] = perf
        for row in data.get("library", []) or []:
            store.add_library_video(**row)
        logger.info(
            "Seeded in-memory registry: %d instructors, %d techniques, %d library videos",
            len(store.instructors), len(store.taxonomy), len(store.library),
        )
        return store

    def add_instructor(self, record: InstructorRecord) -> InstructorRecord:
        if record.id is None:
            record.id = self._next_instructor_id
        self._next_instructor_id = max(self._next_instructor_id, record.id) + 1
        self.instructors[record.name.strip().lower()] = record
        return record

    def add_taxonomy_entry(self, entry: TaxonomyEntry) -> TaxonomyEntry:
        entry.technique_name = normalize_technique_name(entry.technique_name)
        if entry.id is None:
            entry.id = self._next_taxonomy_id
        self._next_taxonomy_id = max(self._next_taxonomy_id, entry.id) + 1
        self.taxonomy[entry.technique_name] = entry
        return entry

    def add_library_video(
        self,
        video_id: str,
        technique_name: str,
        instructor_name: Optional[str] = None,
        status: str = "active",
        problems_solved: Optional[List[str]] = None,
        key_details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.library[video_id] = {
            "video_id": video_id,
            "technique_name": normalize_technique_name(technique_name),
            "instructor_name": instructor_name,
            "status": status,
            "problems_solved": problems_solved or [],
            "key_details": key_details or {},
        }

    # -----------------------------------------------------------------
    # INSTRUCTORS
    # -----------------------------------------------------------------

    async def get_instructor_by_name(self, name: str) -> Optional[InstructorRecord]:
        validate_not_empty(name, "name")
        return self.instructors.get(name.strip().lower())

    async def get_instructor_by_channel(self, channel_id: str) -> Optional[InstructorRecord]:
        validate_not_empty(channel_id, "channel_id")
        for record in self.instructors.values():
            if record.channel_id == channel_id:
                return record
        return None

    async def save_instructor(self, record: InstructorRecord) -> InstructorRecord:
        validate_not_empty(record.name, "record.name")
        async with self._lock:
            existing = self.instructors.get(record.name.strip().lower())
            if existing is not None:
                record.id = existing.id
            return self.add_instructor(record)

    # -----------------------------------------------------------------
    # TAXONOMY
    # -----------------------------------------------------------------

    async def get_taxonomy_entry(self, technique_key: str) -> Optional[TaxonomyEntry]:
        validate_not_empty(technique_key, "technique_key")
        return self.taxonomy.get(technique_key)

    async def save_taxonomy_entry(self, entry: TaxonomyEntry) -> TaxonomyEntry:
        validate_not_empty(entry.technique_name, "entry.technique_name")
        async with self._lock:
            existing = self.taxonomy.get(normalize_technique_name(entry.technique_name))
            if existing is not None:
                entry.id = existing.id
            return self.add_taxonomy_entry(entry)

    # -----------------------------------------------------------------
    # COVERAGE
    # -----------------------------------------------------------------

    async def get_coverage(self, technique_key: str) -> Optional[CoverageRecord]:
        validate_not_empty(technique_key, "technique_key")
        return self.coverage.get(technique_key)

    async def count_active_videos(self, technique_key: str) -> int:
        validate_not_empty(technique_key, "technique_key")
        return sum(
            1 for row in self.library.values()
            if row["technique_name"] == technique_key and row["status"] == "active"
        )

    async def increment_coverage(self, technique_key: str, skill_level: str) -> None:
        validate_not_empty(technique_key, "technique_key")
        validate_skill_level(skill_level)
        async with self._lock:
            record = self.coverage.get(technique_key)
            if record is None:
                # The first row starts from the videos already in the library
                record = CoverageRecord(
                    technique_name=technique_key,
                    current_count=await self.count_active_videos(technique_key),
                )
                self.coverage[technique_key] = record
            record.current_count += 1
            attr = f"{skill_level}_count"
            setattr(record, attr, getattr(record, attr) + 1)

    # -----------------------------------------------------------------
    # LIBRARY VIDEOS
    # -----------------------------------------------------------------

    async def video_exists(self, video_id: str) -> bool:
        validate_not_empty(video_id, "video_id")
        return video_id in self.library

    async def find_similar_videos(
        self, technique_key: str, instructor_name: str, limit: int = 10
    ) -> List[LibraryVideo]:
        validate_not_empty(technique_key, "technique_key")
        validate_not_empty(instructor_name, "instructor_name")
        validate_positive(limit, "limit")
        wanted = instructor_name.strip().lower()
        matches = [
            LibraryVideo.from_row(row)
            for row in self.library.values()
            if row["technique_name"] == technique_key
            and row["status"] == "active"
            and (row["instructor_name"] or "").strip().lower() == wanted
        ]
        return matches[:limit]

    # -----------------------------------------------------------------
    # EMERGING TECHNIQUES
    # -----------------------------------------------------------------

    async def get_emerging_technique(
        self, technique_key: str
    ) -> Optional[EmergingTechniqueRecord]:
        validate_not_empty(technique_key, "technique_key")
        return self.emerging.get(technique_key)

    async def upsert_emerging_technique(
        self, technique_key: str, instructor_name: Optional[str] = None
    ) -> None:
        validate_not_empty(technique_key, "technique_key")
        async with self._lock:
            record = self.emerging.get(technique_key)
            if record is None:
                record = EmergingTechniqueRecord(
                    technique_name=technique_key,
                    status=EmergingStatus.MONITORING,
                    confidence_score=60,
                )
                self.emerging[technique_key] = record
            record.video_count += 1
            if instructor_name and instructor_name not in record.instructors:
                record.instructors.append(instructor_name)
                record.instructor_count += 1

    # -----------------------------------------------------------------
    # PERFORMANCE
    # -----------------------------------------------------------------

    async def get_performance(self, video_id: int) -> Optional[PerformanceRecord]:
        validate_positive(video_id, "video_id")
        return self.performance.get(video_id)

    # -----------------------------------------------------------------
    # CURATION LOGS
    # -----------------------------------------------------------------

    async def save_curation_log(self, log_entry: Dict[str, Any]) -> None:
        if not log_entry:
            raise ValidationError("log_entry cannot be None or empty")
        entry = dict(log_entry)
        entry.setdefault("stored_at", utc_now().isoformat())
        self.curation_logs.append(entry)


# =============================================================================
# SINGLETON ACCESSOR
# =============================================================================

_registry_instance: Optional[RegistryStore] = None
_registry_lock: Optional[asyncio.Lock] = None

# Thread lock for safe initialisation of the async lock itself.
_init_lock = threading.Lock()


async def get_registry(
    backend: str = "supabase", seed_path: Optional[str] = None
) -> RegistryStore:
    """Get the global registry store.

    The first call creates the store for *backend* (``"supabase"`` or
    ``"memory"``); subsequent calls return the same instance.
    """
    global _registry_instance, _registry_lock

    if _registry_lock is None:
        with _init_lock:
            if _registry_lock is None:
                _registry_lock = asyncio.Lock()

    if _registry_instance is None:
        async with _registry_lock:
            if _registry_instance is None:
                if backend == "supabase":
                    _registry_instance = await SupabaseRegistry.create()
                elif backend == "memory":
                    _registry_instance = (
                        InMemoryRegistry.from_seed(seed_path) if seed_path else InMemoryRegistry()
                    )
                else:
                    raise ConfigurationError(f"Unknown registry backend '{backend}'")

    return _registry_instance


def reset_registry() -> None:
    """Drop the cached registry store (tests)."""
    global _registry_instance
    _registry_instance = None

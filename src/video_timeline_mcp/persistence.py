"""SQLite-backed project persistence with WAL mode, plus JSON import/export.

The spec and its audio segment map are stored in separate columns: the
map is regenerated independently (e.g. after a voice change) and is
swapped in as a whole, never patched chunk by chunk.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .config import get_config
from .errors import ProjectNotFoundError
from .models.spec import AudioSegment, VideoSpec

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"
EXPORT_SUFFIX = ".synapvid.json"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    name TEXT PRIMARY KEY,
    spec TEXT NOT NULL,
    audio_segments TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


@dataclass
class ProjectRecord:
    """A saved project: its spec (audio map attached) and timestamps."""

    name: str
    spec: VideoSpec
    created_at: datetime
    updated_at: datetime


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump_segments(segments: dict[str, AudioSegment] | None) -> str | None:
    if segments is None:
        return None
    return json.dumps({k: v.model_dump() for k, v in segments.items()})


def _load_segments(raw: str | None) -> dict[str, AudioSegment] | None:
    if raw is None:
        return None
    return {k: AudioSegment.model_validate(v) for k, v in json.loads(raw).items()}


class ProjectDB:
    """Synchronous SQLite store for named projects.

    Uses WAL mode so readers never block the writer.
    """

    def __init__(self, db_path: str | Path) -> None:
        path = Path(db_path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.executescript(_SCHEMA)

    def save(self, name: str, spec: VideoSpec) -> ProjectRecord:
        """Insert or replace *name*; keeps the original creation time."""
        spec_only = spec.with_audio_segments(None)
        now = _now()
        row = self._conn.execute(
            "SELECT created_at FROM projects WHERE name = ?", (name,),
        ).fetchone()
        created = row[0] if row else now
        self._conn.execute(
            """INSERT OR REPLACE INTO projects
               (name, spec, audio_segments, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)""",
            (name, spec_only.to_persisted_json(indent=None), _dump_segments(spec.audio_segments), created, now),
        )
        self._conn.commit()
        logger.info("Saved project %r", name)
        return ProjectRecord(
            name=name,
            spec=spec.model_copy(deep=True),
            created_at=datetime.fromisoformat(created),
            updated_at=datetime.fromisoformat(now),
        )

    def save_audio_segments(self, name: str, segments: dict[str, AudioSegment] | None) -> None:
        """Replace only the audio segment map of an existing project."""
        cur = self._conn.execute(
            "UPDATE projects SET audio_segments = ?, updated_at = ? WHERE name = ?",
            (_dump_segments(segments), _now(), name),
        )
        self._conn.commit()
        if cur.rowcount == 0:
            raise ProjectNotFoundError(name)

    def load(self, name: str) -> ProjectRecord:
        """Load *name*.

        Raises:
            ProjectNotFoundError: No project with that name.
        """
        row = self._conn.execute(
            "SELECT name, spec, audio_segments, created_at, updated_at FROM projects WHERE name = ?",
            (name,),
        ).fetchone()
        if row is None:
            raise ProjectNotFoundError(name)
        spec = VideoSpec.from_persisted_json(row[1]).with_audio_segments(_load_segments(row[2]))
        return ProjectRecord(
            name=row[0],
            spec=spec,
            created_at=datetime.fromisoformat(row[3]),
            updated_at=datetime.fromisoformat(row[4]),
        )

    def list_projects(self) -> list[dict]:
        """Project summaries, most recently updated first."""
        rows = self._conn.execute(
            "SELECT name, spec, audio_segments IS NOT NULL, updated_at "
            "FROM projects ORDER BY updated_at DESC"
        ).fetchall()
        out = []
        for name, spec_json, has_audio, updated in rows:
            try:
                scene_count = len(json.loads(spec_json).get("scenes", []))
            except json.JSONDecodeError:
                scene_count = 0
            out.append({
                "name": name,
                "scenes": scene_count,
                "has_audio": bool(has_audio),
                "updated_at": updated,
            })
        return out

    def delete(self, name: str) -> bool:
        cur = self._conn.execute("DELETE FROM projects WHERE name = ?", (name,))
        self._conn.commit()
        return cur.rowcount > 0

    def close(self) -> None:
        self._conn.close()


def export_filename(name: str) -> str:
    """``My Project`` -> ``my-project.synapvid.json``."""
    slug = re.sub(r"\s+", "-", name.strip()).lower() or "untitled-project"
    return f"{slug}{EXPORT_SUFFIX}"


def export_project(record: ProjectRecord, out_dir: Path) -> Path:
    """Write *record* as a portable JSON file in *out_dir*."""
    out_dir.mkdir(parents=True, exist_ok=True)
    spec = record.spec
    data = {
        "videoSpec": spec.with_audio_segments(None).to_persisted(),
        "audioSegments": (
            {k: v.model_dump() for k, v in spec.audio_segments.items()}
            if spec.audio_segments is not None else None
        ),
        "projectName": record.name,
        "exportedAt": _now(),
        "version": EXPORT_VERSION,
    }
    path = out_dir / export_filename(record.name)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info("Exported project %r to %s", record.name, path)
    return path


def import_project(path: Path) -> tuple[str, VideoSpec]:
    """Read an exported project file.

    Returns:
        ``(project_name, spec)`` with the audio map attached when present.

    Raises:
        ValueError: The file has no ``videoSpec`` or is not JSON.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Project file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or not data.get("videoSpec"):
        raise ValueError(f"Project file {path.name} has no videoSpec")

    spec = VideoSpec.from_persisted(data["videoSpec"])
    raw_segments = data.get("audioSegments")
    if raw_segments:
        spec = spec.with_audio_segments(
            {k: AudioSegment.model_validate(v) for k, v in raw_segments.items()}
        )
    return data.get("projectName") or "Imported Project", spec


_db: ProjectDB | None = None


def get_project_db() -> ProjectDB:
    """Return the shared project store at the configured path."""
    global _db
    if _db is None:
        _db = ProjectDB(get_config().resolved_project_db)
    return _db


def close_project_db() -> None:
    global _db
    if _db is not None:
        _db.close()
        _db = None

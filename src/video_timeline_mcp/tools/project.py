"""Project tools — save, load, list, delete, export and import projects."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config
from ..errors import make_tool_error
from ..persistence import export_project, get_project_db, import_project
from ..types import ProjectName, SpecParam
from ._spec_param import load_spec

logger = logging.getLogger(__name__)

project_server = FastMCP("project")


def _summary(record) -> dict:
    spec = record.spec
    return {
        "name": record.name,
        "scenes": len(spec.scenes),
        "has_audio": spec.audio_segments is not None,
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat(),
    }


@project_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def project_save(name: ProjectName, spec: SpecParam) -> dict:
    """Save a spec (and its audio map, if any) under *name*.

    Saving over an existing project replaces it but keeps its creation time.

    Returns:
        Dict with name, scenes, has_audio, created_at, updated_at.
    """
    try:
        record = get_project_db().save(name, load_spec(spec))
        return _summary(record)
    except Exception as exc:
        return make_tool_error(exc)


@project_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def project_load(name: ProjectName) -> dict:
    """Load a saved project.

    Returns:
        Dict with the project summary and its spec (audio map attached).
    """
    try:
        record = get_project_db().load(name)
        return {**_summary(record), "spec": record.spec.to_persisted()}
    except Exception as exc:
        return make_tool_error(exc)


@project_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def project_list() -> dict:
    """List saved projects, most recently updated first."""
    try:
        projects = get_project_db().list_projects()
        return {"projects": projects, "count": len(projects)}
    except Exception as exc:
        return make_tool_error(exc)


@project_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def project_delete(name: ProjectName) -> dict:
    """Delete a saved project. Deleting a missing project is not an error.

    Returns:
        Dict with name and deleted (False when nothing was stored).
    """
    try:
        deleted = get_project_db().delete(name)
        return {"name": name, "deleted": deleted}
    except Exception as exc:
        return make_tool_error(exc)


@project_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def project_export(
    name: ProjectName,
    output_dir: Annotated[str | None, Field(
        description="Directory for the export file (defaults to TIMELINE_EXPORT_DIR)",
    )] = None,
) -> dict:
    """Write a saved project to a portable ``.synapvid.json`` file.

    Returns:
        Dict with name and path of the written file.
    """
    try:
        record = get_project_db().load(name)
        out_dir = Path(output_dir or get_config().export_dir).expanduser()
        path = export_project(record, out_dir)
        return {"name": name, "path": str(path)}
    except Exception as exc:
        return make_tool_error(exc)


@project_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def project_import(
    path: Annotated[str, Field(description="Path to an exported project file")],
    name: Annotated[ProjectName | None, Field(
        description="Save under this name instead of the one in the file",
    )] = None,
) -> dict:
    """Import an exported project file and save it.

    The imported spec is validated before it is stored.

    Returns:
        Dict with the saved project summary.
    """
    try:
        file_path = Path(path).expanduser()
        if not file_path.is_file():
            raise FileNotFoundError(f"Project file not found: {file_path}")
        file_name, spec = import_project(file_path)
        valid = load_spec(spec.to_persisted())
        record = get_project_db().save(name or file_name, valid)
        logger.info("Imported project %r from %s", record.name, file_path)
        return _summary(record)
    except Exception as exc:
        return make_tool_error(exc)

"""Main FastMCP server — mounts all sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from .client import GeminiClient
from .persistence import close_project_db
from .tools.assembly import assembly_server
from .tools.infra import infra_server
from .tools.narration import narration_server
from .tools.playback import playback_server
from .tools.project import project_server
from .tools.spec import spec_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — closes the project store and Gemini clients."""
    yield {}
    close_project_db()
    closed = await GeminiClient.close_all()
    logger.info("Lifespan shutdown: closed %d client(s)", closed)


app = FastMCP(
    "video-timeline",
    instructions=(
        "Timeline engine for narrated explainer videos — validate and edit "
        "scene specs, synthesize narration into an audio timeline, resolve "
        "playback state, and export subtitles, transcript and cues."
    ),
    lifespan=_lifespan,
)

app.mount(spec_server)
app.mount(narration_server)
app.mount(playback_server)
app.mount(assembly_server)
app.mount(project_server)
app.mount(infra_server)


def main() -> None:
    """Entry-point for ``video-timeline-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()

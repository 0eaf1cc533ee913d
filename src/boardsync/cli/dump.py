"""Plain-text board dump (``boardsync PROJECT_ID --print``)."""

import asyncio
import logging

from ..api.client import BoardApiClient
from ..models.boardsync_config import BoardsyncConfig
from ..sync.engine import BoardSyncEngine
from .output import error, header, info, print_board

logger = logging.getLogger(__name__)


def run_print(config: BoardsyncConfig, token: str | None, project_id: str, board_id: str | None = None) -> int:
    """Load a project and print one board (or all of them).

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    return asyncio.run(_print_project(config, token, project_id, board_id))


async def _print_project(
    config: BoardsyncConfig, token: str | None, project_id: str, board_id: str | None
) -> int:
    async with BoardApiClient(config.api.url, token=token, timeout=config.api.timeout) as api:
        engine = BoardSyncEngine(api)
        result = await engine.load_project(project_id)
        if not result.ok:
            error(f"Could not load project {project_id}: {result.error.message}")
            return 1

        project = engine.project
        header(f"{project.title} ({len(project.members)} members)")
        boards = engine.boards
        if board_id is not None:
            boards = tuple(b for b in boards if b.id == board_id)
            if not boards:
                error(f"Board not found: {board_id}")
                return 1
        if not boards:
            info("Project has no boards")
            return 0

        for board in boards:
            print()
            print_board(board)
        logger.info("Printed %d board(s) of project %s", len(boards), project_id)
        return 0

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from launcher_core.registry import CommandRegistry, get_registry
from launcher_core.schemas import (
    CommandCategory,
    CommandEntry,
    ExecuteCommandResponse,
    InvalidateCacheResponse,
)

router = APIRouter(prefix="/api/commands", tags=["commands"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[CommandEntry])
async def list_commands(
    category: Optional[CommandCategory] = Query(default=None),
    include_icons: bool = Query(default=True),
    registry: CommandRegistry = Depends(get_registry),
):
    """
    Return the command catalog (apps, settings panels, system commands).

    ``category`` narrows the list; ``include_icons=false`` strips the
    base64 icons for lighter payloads.
    """
    commands = await registry.get_available_commands()
    if category is not None:
        commands = [c for c in commands if c.category == category]
    if not include_icons:
        commands = [c.model_copy(update={"icon": None}) for c in commands]
    return commands


@router.post("/invalidate", response_model=InvalidateCacheResponse)
async def invalidate_commands(registry: CommandRegistry = Depends(get_registry)):
    """Force the next catalog request to rediscover everything."""
    registry.invalidate_cache()
    return InvalidateCacheResponse(success=True)


@router.post("/{command_id}/execute", response_model=ExecuteCommandResponse)
async def execute_command_endpoint(
    command_id: str,
    registry: CommandRegistry = Depends(get_registry),
):
    if await registry.get_command(command_id) is None:
        logger.warning(f"⚠️ Unknown command: {command_id}")
        raise HTTPException(status_code=404, detail=f"Command not found: {command_id}")

    success = await registry.execute_command(command_id)
    if success:
        logger.info(f"✅ Executed {command_id}")
    else:
        logger.warning(f"⚠️ Execution failed for {command_id}")
    return ExecuteCommandResponse(command_id=command_id, success=success)

from launcher_core.schemas.command_schema import (
    CommandCategory,
    CommandEntry,
    ExecuteCommandResponse,
    InvalidateCacheResponse,
    make_command_id,
)

__all__ = [
    "CommandCategory",
    "CommandEntry",
    "ExecuteCommandResponse",
    "InvalidateCacheResponse",
    "make_command_id",
]

"""
Launcher Core Entry Point
=========================
Runs the command catalog API under uvicorn.

Configuration is handled by launcher_core.config (LAUNCHER_* environment variables).
"""
import sys

import uvicorn

from launcher_core.config import settings


def serve():
    """Start the uvicorn server."""
    uvicorn.run(
        "launcher_core.main:app",
        host=settings.host,
        port=settings.port,
        reload=False
    )


if __name__ == "__main__":
    try:
        serve()
    except Exception as e:
        print(f"ERROR during server execution: {type(e).__name__}: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

from launcher_core.api.routes import commands

__all__ = ["commands"]

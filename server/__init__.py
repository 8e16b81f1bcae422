"""
Server lifecycle: running uvicorn and coordinating graceful shutdown.
"""

from server.shutdown import CoordinatedServer, ShutdownCoordinator

__all__ = ["CoordinatedServer", "ShutdownCoordinator"]

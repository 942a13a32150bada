"""
ClickUp Relay - task management for an AI assistant via ClickUp

Two processes share one package:
- gateway: authenticated HTTP relay that translates requests to the ClickUp API
- server: MCP tool server that exposes the gateway routes as assistant tools
"""

from .gateway import create_app
from .server import create_server, main

__all__ = ["create_app", "create_server", "main"]

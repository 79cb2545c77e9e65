"""
Discord Runtime Package

Connection lifecycle tracking for the Discord transport.

IMPORTANT:
- Importing this package MUST NOT start the Discord client
- Importing this package MUST NOT create asyncio tasks
"""

from services.discord.runtime.lifecycle import DiscordRuntimeLifecycle

__all__ = [
    "DiscordRuntimeLifecycle",
]

"""
Bridge configuration.

Every setting resolves in this order: command-line flag, environment
variable (a .env file in the working directory is loaded first, without
overriding real environment variables), built-in default.

Required: Discord token, general channel id, server channel id, server
command. Validation failures raise ConfigError; the CLI reports them as
usage errors.
"""

from __future__ import annotations

import argparse
import os
import shlex
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from dotenv import load_dotenv

from runtime.version import as_string
from services.minecraft.process import split_command

DEFAULT_RELAY_NAME = "mc-sync"
DEFAULT_QUEUE_SIZE = 10
DEFAULT_STOP_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"


class ConfigError(ValueError):
    """Invalid or missing bridge configuration."""


@dataclass(frozen=True)
class BridgeConfig:
    # -------------------------------------------------
    # REQUIRED
    # -------------------------------------------------
    discord_token: str
    general_channel: int
    server_channel: int
    command: List[str]

    # -------------------------------------------------
    # OPTIONAL
    # -------------------------------------------------
    relay_name: str = DEFAULT_RELAY_NAME
    queue_size: int = DEFAULT_QUEUE_SIZE
    stop_timeout: float = DEFAULT_STOP_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    log_dir: Optional[str] = DEFAULT_LOG_DIR

    # -------------------------------------------------

    def __post_init__(self):
        if not self.discord_token:
            raise ConfigError("Discord token is REQUIRED (--discord-token / DISCORD_TOKEN)")

        for name in ("general_channel", "server_channel"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")

        if not self.command:
            raise ConfigError("Server command is REQUIRED (positional / SERVER_COMMAND)")

        if not self.relay_name:
            raise ConfigError("relay_name must not be empty")

        if self.queue_size < 1:
            raise ConfigError(f"queue_size must be >= 1, got {self.queue_size}")

        if self.stop_timeout < 0:
            raise ConfigError(f"stop_timeout must be >= 0, got {self.stop_timeout}")

    def summary(self) -> str:
        """
        Loggable description with the token redacted.
        """
        return (
            f"general_channel={self.general_channel} "
            f"server_channel={self.server_channel} "
            f"command={shlex.join(self.command)!r} "
            f"relay_name={self.relay_name!r} "
            f"queue_size={self.queue_size} "
            f"stop_timeout={self.stop_timeout}"
        )


# ----------------------------------------------------------------------
# PARSING HELPERS
# ----------------------------------------------------------------------

def _parse_int(name: str, raw: Optional[str]) -> int:
    if raw is None or str(raw).strip() == "":
        raise ConfigError(f"{name} is REQUIRED")
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(str(raw).strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _pick(flag_value, env: Mapping[str, str], env_key: str, default=None):
    if flag_value is not None:
        return flag_value
    value = env.get(env_key)
    if value is not None and value != "":
        return value
    return default


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mc-sync",
        description="Bridge a Minecraft server console and a Discord server.",
    )
    parser.add_argument("-d", "--discord-token", help="Discord bot token [DISCORD_TOKEN]")
    parser.add_argument("-g", "--general-channel", help="Channel id for player notifications [GENERAL_CHANNEL]")
    parser.add_argument("-s", "--server-channel", help="Channel id for the raw server log [SERVER_CHANNEL]")
    parser.add_argument("--relay-name", help=f"Bot account name ignored on input [RELAY_NAME, default {DEFAULT_RELAY_NAME}]")
    parser.add_argument("--queue-size", help=f"Event queue capacity [EVENT_QUEUE_SIZE, default {DEFAULT_QUEUE_SIZE}]")
    parser.add_argument("--stop-timeout", help=f"Seconds to wait for the server to exit [STOP_TIMEOUT, default {DEFAULT_STOP_TIMEOUT:g}]")
    parser.add_argument("--log-level", help=f"Log level [LOG_LEVEL, default {DEFAULT_LOG_LEVEL}]")
    parser.add_argument("--log-dir", help=f"Directory for per-run log files, empty to disable [LOG_DIR, default {DEFAULT_LOG_DIR}]")
    parser.add_argument("--version", action="version", version=as_string())
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Server command and arguments [SERVER_COMMAND]",
    )
    return parser


def config_from_args(
    args: argparse.Namespace,
    env: Optional[Mapping[str, str]] = None,
) -> BridgeConfig:
    """
    Merge parsed flags with the environment into a validated BridgeConfig.
    """
    env = os.environ if env is None else env

    command_words = list(args.command or [])
    if command_words and command_words[0] == "--":
        command_words = command_words[1:]
    if not command_words and env.get("SERVER_COMMAND"):
        command_words = [env["SERVER_COMMAND"]]
    try:
        command = split_command(command_words) if command_words else []
    except ValueError as e:
        raise ConfigError(str(e)) from None

    log_dir = args.log_dir if args.log_dir is not None else env.get("LOG_DIR", DEFAULT_LOG_DIR)

    return BridgeConfig(
        discord_token=_pick(args.discord_token, env, "DISCORD_TOKEN", ""),
        general_channel=_parse_int(
            "general channel", _pick(args.general_channel, env, "GENERAL_CHANNEL")
        ),
        server_channel=_parse_int(
            "server channel", _pick(args.server_channel, env, "SERVER_CHANNEL")
        ),
        command=command,
        relay_name=_pick(args.relay_name, env, "RELAY_NAME", DEFAULT_RELAY_NAME),
        queue_size=_parse_int(
            "queue size", _pick(args.queue_size, env, "EVENT_QUEUE_SIZE", str(DEFAULT_QUEUE_SIZE))
        ),
        stop_timeout=_parse_float(
            "stop timeout", _pick(args.stop_timeout, env, "STOP_TIMEOUT", str(DEFAULT_STOP_TIMEOUT))
        ),
        log_level=str(_pick(args.log_level, env, "LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper(),
        log_dir=log_dir or None,
    )


def load_config(
    argv: Optional[Sequence[str]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BridgeConfig:
    """
    Parse argv + environment. Exits with a usage error on invalid config.
    """
    if env is None:
        load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return config_from_args(args, env)
    except ConfigError as e:
        parser.error(str(e))
        raise

"""
Runtime configuration for PlayerQuests.

This module provides:
- load_envs(): load PLAYERQUESTS_* settings from a .env file if they are not
  already present in the environment.
- RuntimeConfig: a dataclass holding the settings the console host runs with.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

PLAYER_ENV: str = "PLAYERQUESTS_PLAYER"
SCREENS_DIR_ENV: str = "PLAYERQUESTS_SCREENS_DIR"
QUESTS_DIR_ENV: str = "PLAYERQUESTS_QUESTS_DIR"
LOG_LEVEL_ENV: str = "PLAYERQUESTS_LOG_LEVEL"

DEFAULT_PLAYER = "Steve"


def load_envs(env_file: Optional[str] = None) -> None:
    """
    Load the PLAYERQUESTS_* variables from a .env file into the process
    environment if they are not already set.

    Without an explicit file, a project .env wins over the one in the config
    directory.
    """
    if env_file:
        env_values = dotenv_values(env_file)
    else:
        env_values = {**dotenv_values(get_config_dir() / ".env"), **dotenv_values()}
    for key in (PLAYER_ENV, SCREENS_DIR_ENV, QUESTS_DIR_ENV, LOG_LEVEL_ENV):
        if not os.environ.get(key):
            val = env_values.get(key)
            if val:
                os.environ[key] = str(val)


class LogLevelChoice(str, Enum):
    """Supported log levels."""

    debug = "DEBUG"
    info = "INFO"
    warning = "WARNING"
    error = "ERROR"


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Holds runtime configuration for the console host.

    Attributes:
        player: Name of the player the console plays as.
        screens_dir: Directory with template documents overriding the bundled ones.
        quests_dir: Directory of quest JSON files (in-memory sample quests if unset).
        log_level: Level written to the log file.
    """

    player: str = DEFAULT_PLAYER
    screens_dir: Optional[Path] = None
    quests_dir: Optional[Path] = None
    log_level: LogLevelChoice = LogLevelChoice.info


def get_config_dir() -> Path:
    """
    Return the PlayerQuests config directory under XDG_CONFIG_HOME or fallback to ~/.config.
    """
    config_home = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return config_home / "playerquests"


def get_data_dir() -> Path:
    """
    Return the PlayerQuests data directory under XDG_DATA_HOME or fallback to ~/.local/share.
    """
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return data_home / "playerquests"

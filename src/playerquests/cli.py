import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

import typer
from typing_extensions import Annotated

from playerquests.console.host import ConsoleHost
from playerquests.console.repl_console import ReplConsole
from playerquests.gui.templates import TemplateStore
from playerquests.logger import setup_logging
from playerquests.plugin import PlayerQuests
from playerquests.quests.provider import (
    InMemoryQuestProvider,
    JsonQuestProvider,
    QuestDataProvider,
    QuestRecord,
)
from playerquests.runtime_config import (
    DEFAULT_PLAYER,
    LOG_LEVEL_ENV,
    PLAYER_ENV,
    QUESTS_DIR_ENV,
    SCREENS_DIR_ENV,
    LogLevelChoice,
    RuntimeConfig,
    load_envs,
)

PluginFactory = Callable[[RuntimeConfig, ConsoleHost], PlayerQuests]
ConsoleFactory = Callable[[PlayerQuests, ConsoleHost, RuntimeConfig], ReplConsole]

# Global factory functions - set by create_app()
_plugin_factory: Optional[PluginFactory] = None
_console_factory: Optional[ConsoleFactory] = None


def sample_quests(player: str) -> QuestDataProvider:
    """Quests to play with when no quest directory is configured."""
    return InMemoryQuestProvider(
        [
            QuestRecord("find-the-sword", "Find the Sword", owner=player),
            QuestRecord("deliver-letter", "Deliver Letter", owner=player),
            QuestRecord("village-fair", "Village Fair"),
        ]
    )


def default_plugin_factory(config: RuntimeConfig, host: ConsoleHost) -> PlayerQuests:
    """Default factory for creating the plugin."""
    provider = (
        JsonQuestProvider(config.quests_dir) if config.quests_dir else sample_quests(config.player)
    )
    return PlayerQuests(host, provider=provider, store=TemplateStore(config.screens_dir))


def default_console_factory(plugin: PlayerQuests, host: ConsoleHost, config: RuntimeConfig) -> ReplConsole:
    """Default factory for creating the REPL."""
    return ReplConsole(plugin, host, config)


def create_app(
    plugin_factory: Optional[PluginFactory] = None,
    console_factory: Optional[ConsoleFactory] = None,
) -> typer.Typer:
    """
    Create and configure the Typer application.

    Args:
        plugin_factory: Factory function to create PlayerQuests instances
        console_factory: Factory function to create console instances

    Returns:
        Typer application
    """
    # Load settings from .env if not already set in the environment
    load_envs()

    global _plugin_factory, _console_factory
    _plugin_factory = plugin_factory
    _console_factory = console_factory

    app = typer.Typer(rich_markup_mode=None)

    @app.command()
    def main(
        player: Annotated[
            str,
            typer.Option("--player", envvar=PLAYER_ENV, help="Name of the player to play as"),
        ] = DEFAULT_PLAYER,
        screens_dir: Annotated[
            Optional[Path],
            typer.Option(
                "--screens-dir",
                envvar=SCREENS_DIR_ENV,
                help="Directory of screen templates overriding the bundled ones",
            ),
        ] = None,
        quests_dir: Annotated[
            Optional[Path],
            typer.Option(
                "--quests-dir",
                envvar=QUESTS_DIR_ENV,
                help="Directory of quest JSON files; sample quests are used if omitted",
            ),
        ] = None,
        log_level: Annotated[
            LogLevelChoice,
            typer.Option("--log-level", envvar=LOG_LEVEL_ENV, help="Log file level"),
        ] = LogLevelChoice.info,
    ) -> None:
        """PLAYERQUESTS - drive the quest GUIs from a terminal"""
        setup_logging(log_level.value)
        logger = logging.getLogger(__name__)

        cfg = RuntimeConfig(
            player=player,
            screens_dir=screens_dir,
            quests_dir=quests_dir,
            log_level=log_level,
        )
        logger.info("Starting console session as %s", cfg.player)

        try:
            host = ConsoleHost()
            plugin = (_plugin_factory or default_plugin_factory)(cfg, host)
            console = (_console_factory or default_console_factory)(plugin, host, cfg)
            asyncio.run(console.run())
        except KeyboardInterrupt:
            print("\nExiting...")

    return app


app = create_app()


if __name__ == "__main__":
    app()

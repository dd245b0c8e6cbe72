import pytest
from conftest import wait_until
from rich.console import Console

import playerquests.console.rendering as rendering
from playerquests.console.host import ConsoleHost
from playerquests.console.repl_console import ReplConsole, SlashCommandHandler
from playerquests.fx import ParticleFX
from playerquests.gui.dispatcher import Interaction
from playerquests.gui.model import GUIMode, GUIModel, ItemDescriptor
from playerquests.host import UserHandle
from playerquests.plugin import PlayerQuests
from playerquests.quests.provider import InMemoryQuestProvider
from playerquests.runtime_config import RuntimeConfig


@pytest.fixture(autouse=True)
def record_console(monkeypatch: pytest.MonkeyPatch) -> Console:
    """Replace rendering.console with a record-capable Console."""
    recorder = Console(record=True, width=200)
    monkeypatch.setattr(rendering, "console", recorder)
    return recorder


@pytest.fixture
def console_host() -> ConsoleHost:
    return ConsoleHost()


@pytest.fixture
def repl(console_host: ConsoleHost) -> ReplConsole:
    plugin = PlayerQuests(console_host, provider=InMemoryQuestProvider.from_titles(["Find the Sword"], owner="Steve"))
    plugin.enable()
    return ReplConsole(plugin, console_host, RuntimeConfig())


def test_render_screen(record_console: Console) -> None:
    model = GUIModel(title="Quests", size=9, user=UserHandle("alice"))
    model.set_item(1, ItemDescriptor("BOOK", "My Quests"))
    model.change_mode(GUIMode.ARRANGE)
    model.held = 1
    rendering.render_screen(model.render())
    out = record_console.export_text()
    assert "Quests (arrange)" in out
    assert "My Quests *" in out
    assert " 9" in out


def test_render_chat_and_effect(record_console: Console) -> None:
    rendering.render_chat("bob", "hello")
    rendering.render_chat(None, "notice")
    rendering.render_effect(ParticleFX.SMOKE, (1.0, 2.0, 3.0))
    out = record_console.export_text()
    assert "<bob> hello" in out
    assert "notice" in out
    assert "smoke at 1.0, 2.0, 3.0" in out


def test_console_host_commands(console_host: ConsoleHost) -> None:
    seen = []
    console_host.register_command("Ping", lambda user, args: seen.append((user.name, args)) or True)
    assert console_host.run_command(console_host.get_player("alice"), "/ping a b") is True
    assert seen == [("alice", "a b")]
    assert console_host.run_command(console_host.get_player("alice"), "/pong") is False
    assert console_host.get_player("alice") is console_host.get_player("alice")


def test_slash_completer_lists_commands() -> None:
    from prompt_toolkit.completion import CompleteEvent
    from prompt_toolkit.document import Document

    handler = SlashCommandHandler()
    completions = list(handler.completer.get_completions(Document("/pl"), CompleteEvent()))
    assert [c.text for c in completions] == ["/playerquests"]


def test_repl_opens_main_screen(repl: ReplConsole, console_host: ConsoleHost, record_console: Console) -> None:
    assert repl.handle_line("/playerquests") is True
    view = console_host.screen_for(repl.user)
    assert view is not None
    assert view.title == "Quests"
    assert "My Quests" in record_console.export_text()


def test_repl_chat_is_broadcast_without_prompt(repl: ReplConsole, console_host: ConsoleHost) -> None:
    assert repl.handle_line("hello world") is True
    assert console_host.chat_log == ["<Steve> hello world"]


def test_repl_exit_and_unknown(repl: ReplConsole, record_console: Console) -> None:
    assert repl.handle_line("") is True
    assert repl.handle_line("/nope") is True
    assert "Unknown command: /nope" in record_console.export_text()
    assert repl.handle_line("/exit") is False
    assert repl.handle_line("quit") is False


def test_repl_help(repl: ReplConsole, record_console: Console) -> None:
    repl.handle_line("/help")
    out = record_console.export_text()
    assert "/click <slot>" in out
    assert "/playerquests" in out


@pytest.mark.asyncio
async def test_repl_click_and_prompt(repl: ReplConsole, console_host: ConsoleHost) -> None:
    repl.handle_line("/playerquests")
    repl.handle_line("/click 1")
    await wait_until(lambda: console_host.screen_for(repl.user).title == "My Quests")  # type: ignore[union-attr]
    repl.handle_line("/click 1")
    await wait_until(lambda: console_host.screen_for(repl.user).title == "Find the Sword")  # type: ignore[union-attr]

    repl.handle_line("/click 3")
    await wait_until(lambda: repl.plugin.bridge.pending(repl.user) is not None)
    # exit while prompted answers the prompt instead of leaving
    assert repl.handle_line("exit") is True
    await wait_until(lambda: repl.plugin.bridge.pending(repl.user) is None)
    await wait_until(lambda: "exited" in console_host.chat_log)
    assert console_host.chat_log.count("<Steve> exit") == 0
    await repl.plugin.shutdown()


def test_repl_click_usage(repl: ReplConsole, record_console: Console) -> None:
    repl.handle_line("/click")
    repl.handle_line("/click 1")
    out = record_console.export_text()
    assert "usage: /click <slot>" in out
    assert "no screen is open" in out


def test_repl_close(repl: ReplConsole, console_host: ConsoleHost) -> None:
    repl.handle_line("/playerquests")
    repl.handle_line("/close")
    assert console_host.screen_for(repl.user) is None
    assert repl.plugin.director(repl.user).model is None


def test_bracketed_text_is_printed_verbatim(console_host: ConsoleHost, record_console: Console) -> None:
    user = console_host.get_player("alice")
    console_host.send_chat(user, "Enter a title Entered: [/b]")
    console_host.broadcast(user, "look [bold]here[/x]")
    console_host.open_screen(user, GUIModel(title="[/x] quests", size=9, user=user).render())
    out = record_console.export_text()
    assert "Entered: [/b]" in out
    assert "<alice> look [bold]here[/x]" in out
    assert "[/x] quests" in out


def test_repl_messages_are_not_markup(repl: ReplConsole, record_console: Console) -> None:
    repl.handle_line("/nope[/red]")
    assert "Unknown command: /nope[/red]" in record_console.export_text()


def test_repl_open_lists_and_opens_screens(
    repl: ReplConsole, console_host: ConsoleHost, record_console: Console
) -> None:
    repl.handle_line("/open")
    assert "main, noquests, workshop" in record_console.export_text()

    repl.handle_line("/open workshop")
    view = console_host.screen_for(repl.user)
    assert view is not None
    assert view.title == "Steve's Workshop"


@pytest.mark.asyncio
async def test_repl_close_during_prompt_cancels_it(repl: ReplConsole, console_host: ConsoleHost) -> None:
    repl.handle_line("/open myquests")
    repl.handle_line("/click 1")
    await wait_until(lambda: console_host.screen_for(repl.user).title == "Find the Sword")  # type: ignore[union-attr]
    click = repl.plugin.on_interact(repl.user, 3)
    await wait_until(lambda: repl.plugin.bridge.pending(repl.user) is not None)

    repl.handle_line("/close")
    assert await click is Interaction.CANCELLED
    assert repl.plugin.bridge.pending(repl.user) is None
    assert repl.plugin.director(repl.user).model is None

    # the next line is ordinary chat again
    repl.handle_line("hello")
    assert "<Steve> hello" in console_host.chat_log
    await repl.plugin.shutdown()

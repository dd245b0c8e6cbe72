"""
Rich rendering of screens, chat lines and effects for the console host.
"""

from typing import Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from playerquests.fx import ParticleFX
from playerquests.gui.model import DEFAULT_ITEM, ROW_WIDTH, GUIMode, ItemDescriptor, ScreenView

# Console instance for rendering
console = Console()

ITEM_STYLES = {
    "BOOK": "bold yellow",
    "ENCHANTED_BOOK": "bold magenta",
    "RED_STAINED_GLASS_PANE": "red",
    "LIME_STAINED_GLASS_PANE": "green",
    "GREEN_STAINED_GLASS_PANE": "green",
    "ORANGE_STAINED_GLASS_PANE": "dark_orange",
    "BARRIER": "bold red",
    DEFAULT_ITEM: "dim",
}


def _cell(index: int, item: Optional[ItemDescriptor], held: bool) -> Text:
    text = Text(f"{index:>2} ", style="dim")
    if item is None:
        return text
    label = item.label.strip() or item.item.lower()
    text.append(label, style=ITEM_STYLES.get(item.item, "cyan"))
    if held:
        text.append(" *", style="bold cyan")
    return text


def screen_table(view: ScreenView) -> Table:
    """Lay out a screen as a grid of 9-wide rows."""
    title = view.title if view.mode is GUIMode.CLICK else f"{view.title} (arrange)"
    table = Table(title=Text(title), show_header=False, show_lines=True, expand=False)
    for _ in range(ROW_WIDTH):
        table.add_column(no_wrap=True, max_width=18)
    for row_number, row in enumerate(view.rows()):
        first = row_number * ROW_WIDTH + 1
        table.add_row(
            *(
                _cell(first + offset, item, view.held == first + offset)
                for offset, item in enumerate(row)
            )
        )
    return table


def render_screen(view: ScreenView, target: Optional[Console] = None) -> None:
    (target or console).print(screen_table(view))


def render_closed(target: Optional[Console] = None) -> None:
    (target or console).print("[dim]screen closed[/dim]")


def render_chat(sender: Optional[str], text: str, target: Optional[Console] = None) -> None:
    """Print a chat line; sender None means a notice from the plugin."""
    if sender is None:
        (target or console).print(Panel(Text(text), border_style="yellow", expand=False))
    else:
        (target or console).print(Text.assemble((f"<{sender}>", "bold"), " ", text))


def render_effect(
    kind: ParticleFX,
    location: Tuple[float, float, float],
    target: Optional[Console] = None,
) -> None:
    x, y, z = location
    (target or console).print(f"[magenta]✦ {kind.value} at {x:.1f}, {y:.1f}, {z:.1f}[/magenta]")

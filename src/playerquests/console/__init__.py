"""
Console subpackage: a terminal host, rich rendering and the REPL loop.
"""

from playerquests.console.host import ConsoleHost
from playerquests.console.repl_console import ReplConsole

__all__ = ["ConsoleHost", "ReplConsole"]

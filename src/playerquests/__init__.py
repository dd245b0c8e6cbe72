"""PlayerQuests: data-driven GUI screens for a game server plugin."""

__version__ = "0.1.0"

"""
Exception taxonomy for the PlayerQuests GUI engine.

Configuration-time defects (TemplateNotFound, TemplateMalformed, BindingError)
abort opening a screen. NoDataAvailable is recovered locally by falling back
to another screen. ActionFailed and PromptAlreadyPending are reported to the
user without closing the GUI.
"""


class PlayerQuestsError(Exception):
    """Base class for all PlayerQuests errors."""


class TemplateNotFound(PlayerQuestsError):
    """Raised when no template document matches the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No GUI template named '{name}'")
        self.name = name


class TemplateMalformed(PlayerQuestsError):
    """Raised when a template document cannot be parsed into a Template."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"GUI template '{name}' is malformed: {reason}")
        self.name = name
        self.reason = reason


class BindingError(PlayerQuestsError):
    """Raised when a slot refers to an action or function that is not registered."""


class NoDataAvailable(PlayerQuestsError):
    """Raised by a dynamic screen when its data provider yields nothing usable."""

    def __init__(self, screen: str, reason: str = "no data available") -> None:
        super().__init__(f"Dynamic screen '{screen}': {reason}")
        self.screen = screen


class PromptAlreadyPending(PlayerQuestsError):
    """Raised when a chat prompt is requested while another is outstanding."""

    def __init__(self, user: str) -> None:
        super().__init__(f"A chat prompt is already pending for {user}")
        self.user = user


class PromptCancelled(PlayerQuestsError):
    """Delivered to a waiting function when its chat prompt is torn down."""


class ActionFailed(PlayerQuestsError):
    """Raised when a slot action fails while running."""

    def __init__(self, action: str, cause: BaseException) -> None:
        super().__init__(f"Action '{action}' failed: {cause}")
        self.action = action
        self.cause = cause

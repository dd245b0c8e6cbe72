"""
Builds GUIModel instances from templates.
"""

import logging
from typing import Any, Mapping, Optional

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from playerquests.errors import BindingError, TemplateMalformed
from playerquests.gui.functions import Action, ActionRegistry
from playerquests.gui.model import GUIModel, ItemDescriptor
from playerquests.gui.templates import SlotDefinition, Template, TemplateStore
from playerquests.host import UserHandle

logger = logging.getLogger(__name__)

_text_env = SandboxedEnvironment(autoescape=False)


def render_text(template_name: str, text: str, context: Mapping[str, Any]) -> str:
    """Render ``{{ player }}``-style placeholders in titles and labels."""
    if "{" not in text:
        return text
    try:
        return _text_env.from_string(text).render(**context)
    except TemplateError as e:
        raise TemplateMalformed(template_name, f"cannot render {text!r} ({e})") from e


class GUILoader:
    """Resolves a template by name and binds it into a fresh GUIModel."""

    def __init__(self, store: TemplateStore, actions: ActionRegistry) -> None:
        self.store = store
        self.actions = actions

    def _bind_action(self, template: Template, slot: SlotDefinition) -> Optional[Action]:
        try:
            registered = self.actions.get(slot.action) if slot.action is not None else None
            inline = [self.actions.functions.resolve(spec) for spec in slot.functions]
        except BindingError as e:
            raise BindingError(f"Template '{template.name}' slot {slot.index}: {e}") from e

        if not inline:
            return registered
        # inline functions run after the referenced action
        steps = (registered.steps if registered else ()) + tuple(inline)
        return Action(slot.action or f"{template.name}:{slot.index}", steps)

    def load(
        self,
        name: str,
        user: UserHandle,
        values: Optional[Mapping[str, Any]] = None,
    ) -> GUIModel:
        template = self.store.load(name)
        context = {"player": user.name, "values": dict(values or {})}

        model = GUIModel(
            title=render_text(name, template.title, context),
            size=template.size,
            user=user,
            mode=template.mode,
            screen_name=name,
        )
        for slot in template.slots:
            item = slot.item
            model.set_item(
                slot.index,
                ItemDescriptor(
                    item=item.item,
                    label=render_text(name, item.label, context),
                    description=render_text(name, item.description, context),
                ),
            )
            action = self._bind_action(template, slot)
            if action is not None:
                model.bind(slot.index, action)

        logger.debug("Built %s for %s with %d slots", name, user, len(model.slots))
        return model

"""Renderer selection.

  template.enabled: true  → TemplateRenderer (parsed + rendered now; errors abort)
  template.enabled: false → DefaultRenderer (plain-text message)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sfblocker.constants import DEFAULT_FORBIDDEN_MESSAGE
from sfblocker.render.protocol import DefaultRenderer, Renderer
from sfblocker.render.template import TemplateRenderer
from sfblocker.utils.logger import get_logger

if TYPE_CHECKING:
    from sfblocker.config import TemplateConfig

logger = get_logger(__name__)


def create_renderer(template: "TemplateConfig") -> Renderer:
    """Build the renderer described by ``template``.

    Raises:
        TemplateParseError, TemplateExecutionError: from TemplateRenderer.
    """
    if not template.enabled:
        logger.debug("renderer_selected", renderer="default")
        return DefaultRenderer(DEFAULT_FORBIDDEN_MESSAGE)

    renderer = TemplateRenderer(
        html=template.html,
        css=template.css,
        variables=template.vars,
    )
    logger.debug("renderer_selected", renderer="template")
    return renderer

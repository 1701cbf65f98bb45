"""Forbidden-response renderers.

    protocol.py — Renderer Protocol + DefaultRenderer (plain text)
    template.py — TemplateRenderer (HTML page rendered once at construction)
    factory.py  — create_renderer() — selection from TemplateConfig
"""

from sfblocker.render.factory import create_renderer
from sfblocker.render.protocol import DefaultRenderer, Renderer
from sfblocker.render.template import TemplateRenderer

__all__ = [
    "DefaultRenderer",
    "Renderer",
    "TemplateRenderer",
    "create_renderer",
]

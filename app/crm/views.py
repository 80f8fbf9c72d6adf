from __future__ import annotations

from typing import Any

from flask import render_template

VIEW_TEMPLATES = {
    "all": "customers/all.html",
    "update": "customers/update.html",
    "create": "customers/create.html",
    "search": "customers/search.html",
}


class ViewRenderer:
    """Renders the logical page names used by the handlers."""

    def __init__(self, templates: dict[str, str] | None = None) -> None:
        self.templates = dict(templates or VIEW_TEMPLATES)

    def render(self, view: str, **context: Any) -> str:
        return render_template(self.templates[view], **context)

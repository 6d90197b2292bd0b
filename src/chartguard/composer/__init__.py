"""Note composition: assertion narrative and per-procedure templates.

Usage::

    from chartguard.composer import compose, create_template_library

    sections = compose(bundle, sections)
    library = create_template_library(settings)
    sections, template_id = apply_template(procedure, "restorative", sections, library=library)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chartguard.composer.narrative import blank_sections, compose, render_section
from chartguard.composer.templates import (
    DEFAULT_TEMPLATES_PATH,
    NoteTemplate,
    TemplateLibrary,
    apply_template,
    build_template_context,
    hydrate_template,
)

if TYPE_CHECKING:
    from chartguard.core.config import AppSettings


def create_template_library(settings: AppSettings) -> TemplateLibrary:
    """Load the note template library named in settings."""
    return TemplateLibrary.from_file(settings.requirements.templates_path)


__all__ = [
    "DEFAULT_TEMPLATES_PATH",
    "NoteTemplate",
    "TemplateLibrary",
    "apply_template",
    "blank_sections",
    "build_template_context",
    "compose",
    "create_template_library",
    "hydrate_template",
    "render_section",
]

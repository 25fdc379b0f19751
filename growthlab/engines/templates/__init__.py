"""
Template Engine - presets for new experiments.
"""

from growthlab.engines.templates.template_engine import (
    TEMPLATE_FIELDS,
    TemplateService,
    apply_template,
)

__all__ = [
    "TEMPLATE_FIELDS",
    "TemplateService",
    "apply_template",
]

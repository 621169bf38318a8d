"""
Core models and exceptions for FormLift
"""

from formlift.core.models import (
    ControlDefinition,
    ViewDefinition,
    FormRule,
    FormRuleAction,
    FormDefinition,
    FormLiftError,
    FormLoadError,
    ValidationError,
    ExpressionAnalysisError,
    ExportError,
)

__all__ = [
    "ControlDefinition",
    "ViewDefinition",
    "FormRule",
    "FormRuleAction",
    "FormDefinition",
    "FormLiftError",
    "FormLoadError",
    "ValidationError",
    "ExpressionAnalysisError",
    "ExportError",
]

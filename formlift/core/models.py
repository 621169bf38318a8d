"""
Data models and exceptions for FormLift
"""

from dataclasses import dataclass, field
from typing import Any, List, Dict, Optional


# Custom exceptions
class FormLiftError(Exception):
    """Base exception for FormLift errors"""
    pass


class FormLoadError(FormLiftError):
    """Error while loading form definitions"""
    pass


class ValidationError(FormLiftError):
    """Invalid input or parameters"""
    pass


class ExpressionAnalysisError(FormLiftError):
    """Error while analyzing rule expressions"""
    pass


class ExportError(FormLiftError):
    """Error while exporting results"""
    pass


@dataclass
class ControlDefinition:
    """A single control of a legacy form view"""
    name: str
    type: str
    label: Optional[str] = None
    binding: Optional[str] = None
    is_merged_into_parent: bool = False
    is_in_repeating_section: bool = False
    repeating_section_name: Optional[str] = None
    section_type: Optional[str] = None
    parent_section: Optional[str] = None
    controls: List['ControlDefinition'] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_label(self) -> str:
        """Label when set, otherwise the internal name"""
        return self.label if self.label is not None else self.name


@dataclass
class ViewDefinition:
    """An ordered list of controls rendered together"""
    view_name: str
    controls: List[ControlDefinition] = field(default_factory=list)


@dataclass
class FormRuleAction:
    """Action fired by a form rule"""
    type: str
    target: Optional[str] = None
    expression: Optional[str] = None


@dataclass
class FormRule:
    """Rule with a condition expression and its actions"""
    name: str
    condition: Optional[str] = None
    is_enabled: bool = True
    actions: List[FormRuleAction] = field(default_factory=list)

    def expressions(self) -> List[str]:
        """Non-empty condition and action expressions, in declaration order"""
        found = []
        if self.condition:
            found.append(self.condition)
        for action in self.actions:
            if action.expression:
                found.append(action.expression)
        return found


@dataclass
class FormDefinition:
    """Views and rules of one legacy form"""
    views: List[ViewDefinition] = field(default_factory=list)
    rules: List[FormRule] = field(default_factory=list)

    def iter_controls(self):
        """Top-level controls of every view, in view order"""
        for view in self.views:
            yield from view.controls

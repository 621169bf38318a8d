"""
Validation schemas for exported form definition files

Keys are accepted in PascalCase (as exported) or camelCase.
"""

from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, Field

from formlift.core.models import (
    ControlDefinition,
    FormDefinition,
    FormRule,
    FormRuleAction,
    ViewDefinition,
)


def _key(pascal: str) -> AliasChoices:
    """Accept a key in PascalCase or camelCase"""
    return AliasChoices(pascal, pascal[0].lower() + pascal[1:])


class SectionInfoSchema(BaseModel):
    """Section placement of a control"""
    parent_section: Optional[str] = Field(default=None, validation_alias=_key("ParentSection"))
    section_type: Optional[str] = Field(default=None, validation_alias=_key("SectionType"))


class RepeatingSectionInfoSchema(BaseModel):
    """Repeating section membership of a control"""
    is_in_repeating_section: bool = Field(default=False, validation_alias=_key("IsInRepeatingSection"))
    repeating_section_name: Optional[str] = Field(default=None, validation_alias=_key("RepeatingSectionName"))


class ControlSchema(BaseModel):
    """A control and its children"""
    name: Optional[str] = Field(default="", validation_alias=_key("Name"))
    type: str = Field(validation_alias=_key("Type"))
    label: Optional[str] = Field(default=None, validation_alias=_key("Label"))
    binding: Optional[str] = Field(default=None, validation_alias=_key("Binding"))
    is_merged_into_parent: bool = Field(default=False, validation_alias=_key("IsMergedIntoParent"))
    section_info: Optional[SectionInfoSchema] = Field(default=None, validation_alias=_key("SectionInfo"))
    repeating_section_info: Optional[RepeatingSectionInfoSchema] = Field(
        default=None, validation_alias=_key("RepeatingSectionInfo"))
    properties: Dict[str, Any] = Field(default_factory=dict, validation_alias=_key("Properties"))
    controls: List['ControlSchema'] = Field(default_factory=list, validation_alias=_key("Controls"))

    def to_model(self) -> ControlDefinition:
        section = self.section_info or SectionInfoSchema()
        repeating = self.repeating_section_info or RepeatingSectionInfoSchema()
        return ControlDefinition(
            name=self.name or "",
            type=self.type,
            label=self.label,
            binding=self.binding,
            is_merged_into_parent=self.is_merged_into_parent,
            is_in_repeating_section=repeating.is_in_repeating_section,
            repeating_section_name=repeating.repeating_section_name,
            section_type=section.section_type,
            parent_section=section.parent_section,
            controls=[child.to_model() for child in self.controls],
            properties=dict(self.properties),
        )


class ViewSchema(BaseModel):
    """A view: ordered top-level controls"""
    view_name: Optional[str] = Field(default="", validation_alias=_key("ViewName"))
    controls: List[ControlSchema] = Field(default_factory=list, validation_alias=_key("Controls"))

    def to_model(self) -> ViewDefinition:
        return ViewDefinition(view_name=self.view_name or "",
                              controls=[control.to_model() for control in self.controls])


class RuleActionSchema(BaseModel):
    type: str = Field(validation_alias=_key("Type"))
    target: Optional[str] = Field(default=None, validation_alias=_key("Target"))
    expression: Optional[str] = Field(default=None, validation_alias=_key("Expression"))


class RuleSchema(BaseModel):
    name: Optional[str] = Field(default="", validation_alias=_key("Name"))
    condition: Optional[str] = Field(default=None, validation_alias=_key("Condition"))
    is_enabled: bool = Field(default=True, validation_alias=_key("IsEnabled"))
    actions: List[RuleActionSchema] = Field(default_factory=list, validation_alias=_key("Actions"))

    def to_model(self) -> FormRule:
        return FormRule(
            name=self.name or "",
            condition=self.condition,
            is_enabled=self.is_enabled,
            actions=[FormRuleAction(type=a.type, target=a.target, expression=a.expression)
                     for a in self.actions],
        )


class FormSchema(BaseModel):
    """Top-level form definition document"""
    views: List[ViewSchema] = Field(default_factory=list, validation_alias=_key("Views"))
    rules: List[RuleSchema] = Field(default_factory=list, validation_alias=_key("Rules"))

    def to_model(self) -> FormDefinition:
        return FormDefinition(views=[view.to_model() for view in self.views],
                              rules=[rule.to_model() for rule in self.rules])


ControlSchema.model_rebuild()

"""
Data models for expression analysis and control group mining
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Dict, NamedTuple, Optional

from formlift.parsing.models import ExpressionType, ReturnType, TranslationHint


@dataclass(frozen=True)
class EnhancedExpression:
    """Analysis of a single rule or calculation expression (read-only once built)"""
    original_expression: str
    parsed_expression: str
    type: ExpressionType = ExpressionType.STATIC
    referenced_fields: List[str] = field(default_factory=list)
    used_functions: List[str] = field(default_factory=list)
    constants: List[str] = field(default_factory=list)
    complexity_score: int = 0
    is_complex: bool = False
    has_nested_conditions: bool = False
    requires_data_lookup: bool = False
    human_readable: str = ""
    return_type: ReturnType = ReturnType.STRING
    sub_expressions: List['EnhancedExpression'] = field(default_factory=list)
    translation_hints: List[TranslationHint] = field(default_factory=list)


class RuleComplexity(str, Enum):
    """Coarse complexity bucket of a rule expression"""
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    ADVANCED = "advanced"


@dataclass
class RuleAnalysisSummary:
    """Aggregate view over a batch of analyzed expressions"""
    total_expressions: int = 0
    simple_expressions: int = 0
    complex_expressions: int = 0
    used_functions: List[str] = field(default_factory=list)
    custom_functions: List[str] = field(default_factory=list)
    expressions_by_type: Dict[str, int] = field(default_factory=dict)
    return_types: Dict[str, int] = field(default_factory=dict)
    complexity_distribution: Dict[str, int] = field(default_factory=dict)
    expressions: List[EnhancedExpression] = field(default_factory=list)


class SignatureKey(NamedTuple):
    """Identity of a control for mining: type plus normalized label"""
    type: str
    normalized_label: str

    def __str__(self) -> str:
        return f"{self.type}:{self.normalized_label}"


@dataclass(frozen=True)
class ControlSignature:
    """A control as it appears in a form's mined sequence"""
    label: Optional[str]
    type: str
    name: str
    relative_position: int
    normalized_label: str

    @property
    def key(self) -> SignatureKey:
        return SignatureKey(self.type, self.normalized_label)

    @property
    def group_token(self) -> str:
        """Fragment of a group key contributed by this control"""
        return f"{self.type}_{self.normalized_label}"


@dataclass
class ControlGroup:
    """
    Contiguous control sequence found in several forms

    found_in_forms only changes through add_form/absorb, so it never holds
    duplicates and occurrence_count is always derived from it.
    """
    group_id: str
    controls: List[ControlSignature]
    suggested_name: str = ""
    is_sequential: bool = True
    contains_repeating_controls: bool = False
    common_section: Optional[str] = None
    merged_group_ids: List[str] = field(default_factory=list)
    _forms: Dict[str, None] = field(default_factory=dict, repr=False)

    @property
    def found_in_forms(self) -> List[str]:
        return list(self._forms)

    @property
    def occurrence_count(self) -> int:
        return len(self._forms)

    @property
    def size(self) -> int:
        return len(self.controls)

    def add_form(self, form_id: str) -> None:
        self._forms.setdefault(form_id, None)

    def absorb(self, other: 'ControlGroup') -> None:
        """Take over the forms of a near-duplicate group"""
        for form_id in other.found_in_forms:
            self.add_form(form_id)
        self.merged_group_ids.append(other.group_id)
        self.merged_group_ids.extend(other.merged_group_ids)


@dataclass
class RepeatingSectionInfo:
    """Repeating region of a form, reported but never mined"""
    name: str
    form_name: str
    control_count: int = 0
    control_types: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Result of mining a form corpus for reusable control groups"""
    identified_groups: List[ControlGroup] = field(default_factory=list)
    control_frequency: Dict[SignatureKey, int] = field(default_factory=dict)
    total_forms_analyzed: int = 0
    total_controls_analyzed: int = 0
    controls_in_repeating_sections: int = 0
    common_patterns: List[str] = field(default_factory=list)
    repeating_sections: List[RepeatingSectionInfo] = field(default_factory=list)

"""
Data models produced by the function/field parser
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple


class ExpressionType(str, Enum):
    """Syntactic classification of a rule expression"""
    STATIC = "static"
    FIELD_REFERENCE = "field_reference"
    CALCULATION = "calculation"
    CONCATENATION = "concatenation"
    CONDITIONAL = "conditional"
    LOOKUP = "lookup"
    DATE_FUNCTION = "date_function"
    STRING_FUNCTION = "string_function"
    AGGREGATION = "aggregation"
    CUSTOM_FUNCTION = "custom_function"


class ReturnType(str, Enum):
    """Value type an expression evaluates to"""
    BOOLEAN = "boolean"
    NUMBER = "number"
    DATE = "date"
    STRING = "string"


class HintKind(str, Enum):
    """Category of a translation hint"""
    UNKNOWN_FUNCTION = "unknown_function"
    DATE_FUNCTION = "date_function"
    USER_CONTEXT = "user_context"
    AGGREGATION = "aggregation"
    CONCATENATION = "concatenation"
    STANDARD_FUNCTION = "standard_function"


class TranslationHint(NamedTuple):
    """Advice for porting a construct to the target platform"""
    kind: HintKind
    text: str


@dataclass(frozen=True)
class XPathFunction:
    """Catalog entry for a known expression function"""
    name: str
    description: str
    return_type: ReturnType
    signatures: Tuple[str, ...] = ()


@dataclass
class FunctionCall:
    """A function invocation found in an expression"""
    name: str
    arguments: List[str] = field(default_factory=list)
    original_call: str = ""
    position: int = 0
    function: Optional[XPathFunction] = None

    @property
    def end_position(self) -> int:
        """Offset just past the closing parenthesis"""
        return self.position + len(self.original_call)

    @property
    def is_known_function(self) -> bool:
        return self.function is not None

    @property
    def return_type(self) -> Optional[ReturnType]:
        return self.function.return_type if self.function else None


@dataclass
class ParsedFacts:
    """Everything the parser knows about one expression"""
    expression_type: ExpressionType
    field_references: List[str] = field(default_factory=list)
    function_calls: List[FunctionCall] = field(default_factory=list)
    translation_hints: List[TranslationHint] = field(default_factory=list)
    simplified: str = ""

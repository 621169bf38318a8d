"""
Function and field parsing of XPath-style form expressions
"""

from formlift.parsing.models import (
    ExpressionType,
    ReturnType,
    HintKind,
    TranslationHint,
    XPathFunction,
    FunctionCall,
    ParsedFacts,
)
from formlift.parsing.xpath_function_parser import FunctionParser, XPathFunctionParser, FUNCTION_CATALOG

__all__ = [
    "ExpressionType",
    "ReturnType",
    "HintKind",
    "TranslationHint",
    "XPathFunction",
    "FunctionCall",
    "ParsedFacts",
    "FunctionParser",
    "XPathFunctionParser",
    "FUNCTION_CATALOG",
]

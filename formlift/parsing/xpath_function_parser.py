"""
XPath Function Parser
Extracts field references, function calls and translation hints from
InfoPath-style XPath rule expressions using regex and pattern matching
"""

import re
import logging
from typing import Dict, List, Optional, Protocol

from formlift.parsing.models import (
    ExpressionType,
    FunctionCall,
    HintKind,
    ParsedFacts,
    ReturnType,
    TranslationHint,
    XPathFunction,
)

logger = logging.getLogger(__name__)


class FunctionParser(Protocol):
    """What the expression analyzer needs from a parser"""

    def parse(self, expression: str) -> ParsedFacts:
        ...

    def simplify_expression(self, expression: str) -> str:
        ...


def _fn(name: str, description: str, return_type: ReturnType, *signatures: str) -> XPathFunction:
    return XPathFunction(name, description, return_type, tuple(signatures))


FUNCTION_CATALOG: Dict[str, XPathFunction] = {f.name: f for f in (
    # Date/time
    _fn("today", "Returns current date", ReturnType.DATE, "()"),
    _fn("now", "Returns current date and time", ReturnType.DATE, "()"),
    _fn("addDays", "Adds days to a date", ReturnType.DATE, "(date, number)"),
    _fn("addMonths", "Adds months to a date", ReturnType.DATE, "(date, number)"),
    _fn("addYears", "Adds years to a date", ReturnType.DATE, "(date, number)"),
    _fn("formatDate", "Formats a date", ReturnType.STRING, "(date, format)"),

    # String
    _fn("concat", "Concatenates strings", ReturnType.STRING, "(string, string, ...)"),
    _fn("substring", "Extracts substring", ReturnType.STRING, "(string, start)", "(string, start, length)"),
    _fn("substring-before", "String before separator", ReturnType.STRING, "(string, separator)"),
    _fn("substring-after", "String after separator", ReturnType.STRING, "(string, separator)"),
    _fn("string-length", "Length of string", ReturnType.NUMBER, "(string)"),
    _fn("normalize-space", "Normalizes whitespace", ReturnType.STRING, "(string)"),
    _fn("translate", "Translates characters", ReturnType.STRING, "(string, from, to)"),
    _fn("contains", "Checks if string contains substring", ReturnType.BOOLEAN, "(string, substring)"),
    _fn("starts-with", "Checks if string starts with prefix", ReturnType.BOOLEAN, "(string, prefix)"),
    _fn("ends-with", "Checks if string ends with suffix", ReturnType.BOOLEAN, "(string, suffix)"),

    # Math
    _fn("sum", "Sum of nodes", ReturnType.NUMBER, "(nodeset)"),
    _fn("count", "Count of nodes", ReturnType.NUMBER, "(nodeset)"),
    _fn("avg", "Average of nodes", ReturnType.NUMBER, "(nodeset)"),
    _fn("min", "Minimum value", ReturnType.NUMBER, "(nodeset)"),
    _fn("max", "Maximum value", ReturnType.NUMBER, "(nodeset)"),
    _fn("round", "Rounds number", ReturnType.NUMBER, "(number)"),
    _fn("ceiling", "Rounds up", ReturnType.NUMBER, "(number)"),
    _fn("floor", "Rounds down", ReturnType.NUMBER, "(number)"),
    _fn("abs", "Absolute value", ReturnType.NUMBER, "(number)"),

    # Logical
    _fn("not", "Logical NOT", ReturnType.BOOLEAN, "(boolean)"),
    _fn("true", "Boolean true", ReturnType.BOOLEAN, "()"),
    _fn("false", "Boolean false", ReturnType.BOOLEAN, "()"),

    # Node
    _fn("position", "Current position", ReturnType.NUMBER, "()"),
    _fn("last", "Last position", ReturnType.NUMBER, "()"),
    _fn("node-set", "Creates node set", ReturnType.STRING, "(object)"),

    # User context
    _fn("user", "Current user info", ReturnType.STRING, "()"),
    _fn("userName", "Current user name", ReturnType.STRING, "()"),
    _fn("userEmail", "Current user email", ReturnType.STRING, "()"),
    _fn("role", "User role", ReturnType.STRING, "(roleName)"),

    # Conversion
    _fn("number", "Converts to number", ReturnType.NUMBER, "(object)"),
    _fn("string", "Converts to string", ReturnType.STRING, "(object)"),
    _fn("boolean", "Converts to boolean", ReturnType.BOOLEAN, "(object)"),
)}


class XPathFunctionParser:
    """
    Regex based parser for InfoPath XPath expressions
    Implements the FunctionParser protocol used by ExpressionAnalyzer
    """

    FIELD_PATTERN = re.compile(r'my:([A-Za-z_]\w*(?:/(?:my:)?[A-Za-z_]\w*)*)')
    CALL_PATTERN = re.compile(r'(?<![\w.:-])((?:[A-Za-z_][\w.-]*:)?[A-Za-z_][\w.-]*)\s*\(')
    STRING_LITERAL_PATTERN = re.compile(r'"[^"]*"|\'[^\']*\'')

    # XPath operators that look like calls when followed by "("
    OPERATOR_KEYWORDS = {'and', 'or', 'div', 'mod'}

    DATE_FUNCTIONS = ("today", "now", "addDays", "addMonths", "addYears", "formatDate")
    STRING_FUNCTIONS = ("concat", "substring", "string-length", "normalize-space", "translate",
                        "contains", "starts-with")
    AGGREGATION_FUNCTIONS = ("sum", "count", "avg", "min", "max")
    CALCULATION_FUNCTIONS = ("sum", "count", "avg", "min", "max", "round", "ceiling", "floor",
                             "abs", "mod", "div")
    NUMERIC_FUNCTIONS = ("number(", "format-number(", "ceiling(", "floor(", "round(")
    CALCULATED_FIELD_PATTERNS = (
        re.compile(r'my:[\w/]*(?:total|sum|subtotal|amount|cost|price|value|calculated)[\w/]*', re.IGNORECASE),
        re.compile(r'my:[\w/]*(?:qty|quantity|count|number)[\w/]*\s*\*', re.IGNORECASE),
    )
    USER_CONTEXT_FUNCTIONS = {"user", "username", "useremail"}

    def __init__(self, catalog: Optional[Dict[str, XPathFunction]] = None):
        """
        Args:
            catalog: Known functions by name (defaults to the InfoPath catalog)
        """
        self.catalog = dict(catalog if catalog is not None else FUNCTION_CATALOG)
        self._catalog_folded = {name.lower(): fn for name, fn in self.catalog.items()}

    def parse(self, expression: str) -> ParsedFacts:
        """
        Collect every fact about an expression in one pass

        Args:
            expression: Raw expression text

        Returns:
            ParsedFacts for the expression
        """
        calls = self.extract_function_calls(expression)
        return ParsedFacts(
            expression_type=self.determine_expression_type(expression, calls),
            field_references=self.extract_field_references(expression),
            function_calls=calls,
            translation_hints=self.get_translation_hints(expression, calls),
            simplified=self.simplify_expression(expression),
        )

    def lookup_function(self, name: str) -> Optional[XPathFunction]:
        """Catalog entry for a function name, exact match first"""
        local_name = name.rsplit(':', 1)[-1]
        return self.catalog.get(local_name) or self._catalog_folded.get(local_name.lower())

    def extract_field_references(self, expression: str) -> List[str]:
        """
        Extract my: field paths, dropping the prefix of inner segments

        Args:
            expression: Raw expression text

        Returns:
            Distinct field paths in order of appearance
        """
        if not expression:
            return []

        fields: List[str] = []
        for match in self.FIELD_PATTERN.finditer(expression):
            path = match.group(1).replace('/my:', '/')
            if path not in fields:
                fields.append(path)
        return fields

    def extract_function_calls(self, expression: str) -> List[FunctionCall]:
        """
        Extract function calls in source order, nested calls included

        Args:
            expression: Raw expression text

        Returns:
            List of FunctionCall
        """
        if not expression:
            return []

        # Quoted text never contains calls
        masked = self.STRING_LITERAL_PATTERN.sub(lambda m: ' ' * len(m.group(0)), expression)

        calls = []
        for match in self.CALL_PATTERN.finditer(masked):
            name = match.group(1)
            if name.lower() in self.OPERATOR_KEYWORDS:
                continue

            local_name = name.rsplit(':', 1)[-1]
            open_index = match.end() - 1
            close_index = self._find_closing_paren(masked, open_index)
            arguments = expression[open_index + 1:close_index]
            function = self.lookup_function(local_name)
            if function is None:
                logger.debug(f"Unknown function {local_name!r} at offset {match.start()}")

            calls.append(FunctionCall(
                name=local_name,
                arguments=self._parse_arguments(arguments),
                original_call=expression[match.start():close_index + 1],
                position=match.start(),
                function=function,
            ))

        return calls

    def determine_expression_type(self, expression: str,
                                  calls: Optional[List[FunctionCall]] = None) -> ExpressionType:
        """
        Classify an expression

        Args:
            expression: Raw expression text
            calls: Function calls, extracted when not given

        Returns:
            ExpressionType
        """
        if not expression:
            return ExpressionType.STATIC

        if calls is None:
            calls = self.extract_function_calls(expression)

        if "concat(" in expression:
            return ExpressionType.CONCATENATION
        if self.is_calculation_expression(expression):
            return ExpressionType.CALCULATION
        if "if(" in expression or "choose(" in expression:
            return ExpressionType.CONDITIONAL
        if self._contains_any_call(expression, self.DATE_FUNCTIONS):
            return ExpressionType.DATE_FUNCTION
        if self._contains_any_call(expression, self.STRING_FUNCTIONS):
            return ExpressionType.STRING_FUNCTION
        if self._contains_any_call(expression, self.AGGREGATION_FUNCTIONS):
            return ExpressionType.AGGREGATION
        if any(not call.is_known_function for call in calls):
            return ExpressionType.CUSTOM_FUNCTION
        if expression.startswith("my:") and "(" not in expression:
            return ExpressionType.FIELD_REFERENCE

        return ExpressionType.STATIC

    def is_calculation_expression(self, expression: str) -> bool:
        """
        Heuristic check for arithmetic expressions

        Args:
            expression: Raw expression text

        Returns:
            True if the expression looks like a calculation
        """
        if not expression:
            return False

        # Field paths and hyphenated function names are not operators
        operators_only = self.FIELD_PATTERN.sub('F', expression)
        operators_only = self.CALL_PATTERN.sub('f(', operators_only).replace('../', '')

        if re.search(r'[+\-*/]', operators_only) and not re.search(r'[<>=!]', operators_only):
            return True
        if re.search(r'\b\d+\s*[+\-*/]\s*\d+\b', expression):
            return True
        if re.search(r'my:[\w/]+\s*[+\-*]\s*(my:[\w/]+|\d+)', expression):
            return True

        if any(f"{func}(" in expression for func in self.CALCULATION_FUNCTIONS):
            return True
        if any(func in expression for func in self.NUMERIC_FUNCTIONS):
            return True

        if len(self.FIELD_PATTERN.findall(expression)) > 1 and "*" in expression:
            return True
        if "number(my:" in expression and ("+" in expression or "*" in expression):
            return True

        return any(pattern.search(expression) for pattern in self.CALCULATED_FIELD_PATTERNS)

    def simplify_expression(self, expression: str) -> str:
        """
        Rewrite an expression in plainer syntax

        Args:
            expression: Raw expression text

        Returns:
            Simplified expression (input returned as-is when empty)
        """
        if not expression:
            return expression

        simplified = expression.replace("my:", "")
        simplified = simplified.replace("../", "parent/")

        simplified = re.sub(r'string-length\(([^)]+)\)\s*>\s*0', r'\1 is not empty', simplified)
        simplified = re.sub(r'string-length\(([^)]+)\)\s*=\s*0', r'\1 is empty', simplified)
        simplified = re.sub(r'count\(([^)]+)\)\s*>\s*0', r'\1 has items', simplified)
        simplified = re.sub(r'not\(([^)]+)\)', r'NOT \1', simplified)

        return simplified.strip()

    def get_translation_hints(self, expression: str,
                              calls: Optional[List[FunctionCall]] = None) -> List[TranslationHint]:
        """
        Porting advice for each function call

        Args:
            expression: Raw expression text
            calls: Function calls, extracted when not given

        Returns:
            Ordered list of TranslationHint
        """
        if calls is None:
            calls = self.extract_function_calls(expression)

        hints = []
        for call in calls:
            if not call.is_known_function:
                hints.append(TranslationHint(
                    HintKind.UNKNOWN_FUNCTION,
                    f"Unknown function '{call.name}' - may need custom implementation"))
                continue

            name = call.function.name.lower()
            if name in ("today", "now"):
                hints.append(TranslationHint(
                    HintKind.DATE_FUNCTION,
                    f"Date function '{call.name}' - use current date/time functions in target platform"))
            elif name in self.USER_CONTEXT_FUNCTIONS:
                hints.append(TranslationHint(
                    HintKind.USER_CONTEXT,
                    f"User context function '{call.name}' - implement user context service"))
            elif name in ("sum", "count", "avg"):
                hints.append(TranslationHint(
                    HintKind.AGGREGATION,
                    f"Aggregation function '{call.name}' - may need database aggregation "
                    f"or client-side calculation"))
            elif name == "concat":
                hints.append(TranslationHint(
                    HintKind.CONCATENATION,
                    "String concatenation - use string interpolation or concatenation operators"))
            else:
                hints.append(TranslationHint(
                    HintKind.STANDARD_FUNCTION,
                    f"Standard function '{call.name}' - should be available in most platforms"))

        return hints

    @staticmethod
    def _contains_any_call(expression: str, names) -> bool:
        return any(f"{name}(" in expression for name in names)

    @staticmethod
    def _find_closing_paren(text: str, open_index: int) -> int:
        """Index of the paren closing text[open_index], or len(text) when unbalanced"""
        depth = 0
        for index in range(open_index, len(text)):
            if text[index] == '(':
                depth += 1
            elif text[index] == ')':
                depth -= 1
                if depth == 0:
                    return index
        return len(text)

    @staticmethod
    def _parse_arguments(argument_string: str) -> List[str]:
        """Split call arguments on top-level commas, respecting quotes and parens"""
        if not argument_string.strip():
            return []

        arguments = []
        current = []
        depth = 0
        quote_char = None

        for char in argument_string:
            if quote_char:
                if char == quote_char:
                    quote_char = None
            elif char in ('"', "'"):
                quote_char = char
            elif char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
            elif char == ',' and depth == 0:
                arguments.append(''.join(current).strip())
                current = []
                continue
            current.append(char)

        if ''.join(current).strip():
            arguments.append(''.join(current).strip())

        return arguments

"""
Expression Analyzer
Scores, paraphrases and decomposes rule/calculation expressions of legacy forms
"""

import re
import logging
from collections import Counter, deque
from typing import Iterable, List, Optional, Tuple

from formlift.analysis.models import EnhancedExpression, RuleAnalysisSummary, RuleComplexity
from formlift.parsing.models import FunctionCall, ReturnType
from formlift.parsing.xpath_function_parser import FunctionParser, XPathFunctionParser

logger = logging.getLogger(__name__)

DEFAULT_COMPLEXITY_THRESHOLD = 5
DEFAULT_MAX_DEPTH = 32


class ComplexityWeights:
    """Points added to the complexity score per construct"""
    FIELD_REFERENCE = 1
    FUNCTION_CALL = 2
    UNKNOWN_FUNCTION = 3
    NESTED_PARENTHESES = 5
    CONDITIONAL_LOGIC = 4
    DATA_LOOKUP = 3


class ExpressionAnalyzer:
    """
    Analyzes rule expressions on top of a function/field parser

    Stateless between calls: every analyze_expression call builds its own
    result tree, so one instance can be shared freely.
    """

    LOOKUP_FUNCTIONS = {"user", "username", "useremail", "role"}
    CONDITIONAL_MARKERS = (" and ", " or ", "if(", "choose(", "not(")

    CONSTANT_PATTERNS = (
        re.compile(r'"([^"]*)"'),
        re.compile(r"'([^']*)'"),
        re.compile(r'\b(\d+(?:\.\d+)?)\b'),
    )

    IDIOM_TEMPLATES = (
        (re.compile(r'string-length\(([^)]+)\)\s*>\s*0'), r'\1 is not empty'),
        (re.compile(r'string-length\(([^)]+)\)\s*=\s*0'), r'\1 is empty'),
        (re.compile(r'count\(([^)]+)\)\s*>\s*(\d+)'), r'\1 has more than \2 items'),
        (re.compile(r'count\(([^)]+)\)\s*=\s*(\d+)'), r'\1 has exactly \2 items'),
        (re.compile(r'sum\(([^)]+)\)'), r'sum of \1'),
        (re.compile(r'concat\(([^)]+)\)'), r'combine \1'),
    )

    # Single-character operators run before >= and <=, which mangles them.
    # Kept as the default so paraphrases match previously exported reports.
    LEGACY_OPERATOR_WORDS = (
        ("!=", " is not equal to "),
        ("=", " equals "),
        (">", " is greater than "),
        ("<", " is less than "),
        (">=", " is greater than or equal to "),
        ("<=", " is less than or equal to "),
    )
    OPERATOR_WORDS = (
        ("!=", " is not equal to "),
        (">=", " is greater than or equal to "),
        ("<=", " is less than or equal to "),
        ("=", " equals "),
        (">", " is greater than "),
        ("<", " is less than "),
    )

    INNERMOST_PARENS = re.compile(r'\(([^()]+)\)')

    def __init__(self, parser: Optional[FunctionParser] = None,
                 complexity_threshold: int = DEFAULT_COMPLEXITY_THRESHOLD,
                 max_depth: int = DEFAULT_MAX_DEPTH,
                 legacy_operator_order: bool = True,
                 weights: Optional[ComplexityWeights] = None):
        """
        Args:
            parser: Function/field parser (defaults to XPathFunctionParser)
            complexity_threshold: Scores strictly above this are complex
            max_depth: Deepest level of sub-expression decomposition
            legacy_operator_order: Reproduce the historical operator wording
            weights: Points per construct (defaults to ComplexityWeights)
        """
        self.parser = parser or XPathFunctionParser()
        self.complexity_threshold = complexity_threshold
        self.max_depth = max_depth
        self.legacy_operator_order = legacy_operator_order
        self.weights = weights or ComplexityWeights()

    def analyze_expression(self, expression: Optional[str]) -> Optional[EnhancedExpression]:
        """
        Analyze an expression and, when complex, its sub-expressions

        Args:
            expression: Raw expression text

        Returns:
            EnhancedExpression, or None for empty input
        """
        if not expression:
            return None

        root = self._analyze_single(expression)

        worklist = deque([(root, 0)])
        while worklist:
            node, depth = worklist.popleft()
            if not node.is_complex:
                continue
            if depth >= self.max_depth:
                logger.debug(f"Decomposition stopped at depth {depth}: {node.original_expression!r}")
                continue

            for candidate in self._sub_expression_candidates(node.original_expression):
                child = self._analyze_single(candidate)
                node.sub_expressions.append(child)
                worklist.append((child, depth + 1))

        return root

    def simplify_expression(self, expression: str) -> str:
        """Plain-syntax rewrite, delegated to the parser"""
        return self.parser.simplify_expression(expression)

    def summarize(self, expressions: Iterable[str]) -> RuleAnalysisSummary:
        """
        Analyze a batch of expressions and aggregate the results

        Args:
            expressions: Raw expressions, empty ones are skipped

        Returns:
            RuleAnalysisSummary
        """
        summary = RuleAnalysisSummary()
        types: Counter = Counter()
        return_types: Counter = Counter()
        buckets: Counter = Counter()

        for expression in expressions:
            analyzed = self.analyze_expression(expression)
            if analyzed is None:
                continue

            summary.expressions.append(analyzed)
            summary.total_expressions += 1
            if analyzed.is_complex:
                summary.complex_expressions += 1
            else:
                summary.simple_expressions += 1

            types[analyzed.type.value] += 1
            return_types[analyzed.return_type.value] += 1
            buckets[self.classify_complexity(analyzed.complexity_score).value] += 1

            calls = self.parser.parse(analyzed.original_expression).function_calls
            for call in calls:
                target = summary.used_functions if call.is_known_function else summary.custom_functions
                if call.name not in target:
                    target.append(call.name)

        summary.expressions_by_type = dict(types.most_common())
        summary.return_types = dict(return_types.most_common())
        summary.complexity_distribution = dict(buckets.most_common())
        return summary

    def classify_complexity(self, score: int) -> RuleComplexity:
        """Bucket a complexity score relative to the threshold"""
        if score <= 2:
            return RuleComplexity.SIMPLE
        if score <= self.complexity_threshold:
            return RuleComplexity.MODERATE
        if score <= self.complexity_threshold * 2:
            return RuleComplexity.COMPLEX
        return RuleComplexity.ADVANCED

    def _analyze_single(self, expression: str) -> EnhancedExpression:
        """Analyze one expression without decomposing it"""
        facts = self.parser.parse(expression)
        calls = facts.function_calls
        fields = list(facts.field_references)
        score, nested, lookup = self.score_complexity(expression, fields, calls)

        return EnhancedExpression(
            original_expression=expression,
            parsed_expression=expression.strip(),
            type=facts.expression_type,
            referenced_fields=fields,
            used_functions=[call.name for call in calls],
            constants=self.extract_constants(expression),
            complexity_score=score,
            is_complex=score > self.complexity_threshold,
            has_nested_conditions=nested,
            requires_data_lookup=lookup,
            human_readable=self.generate_human_readable(expression, fields),
            return_type=self.determine_return_type(expression, calls),
            translation_hints=list(facts.translation_hints),
        )

    def score_complexity(self, expression: str, fields: List[str],
                         calls: List[FunctionCall]) -> Tuple[int, bool, bool]:
        """
        Complexity score of an expression

        Returns:
            Tuple of (score, has nested parentheses, requires data lookup)
        """
        score = len(fields) * self.weights.FIELD_REFERENCE
        score += len(calls) * self.weights.FUNCTION_CALL
        score += sum(1 for call in calls if not call.is_known_function) * self.weights.UNKNOWN_FUNCTION

        nested = self.max_paren_depth(expression) > 1
        if nested:
            score += self.weights.NESTED_PARENTHESES

        if any(marker in expression for marker in self.CONDITIONAL_MARKERS):
            score += self.weights.CONDITIONAL_LOGIC

        lookup = self.requires_data_lookup(expression, calls)
        if lookup:
            score += self.weights.DATA_LOOKUP

        return score, nested, lookup

    def requires_data_lookup(self, expression: str, calls: List[FunctionCall]) -> bool:
        """User/identity functions, parent paths and predicates need lookups"""
        return (any(call.name.lower() in self.LOOKUP_FUNCTIONS for call in calls)
                or "../" in expression
                or "[" in expression)

    @staticmethod
    def max_paren_depth(expression: str) -> int:
        depth = 0
        max_depth = 0
        for char in expression:
            if char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
            max_depth = max(max_depth, depth)
        return max_depth

    def extract_constants(self, expression: str) -> List[str]:
        """String literals (double, then single quoted) then numbers, first occurrence kept"""
        constants: List[str] = []
        for pattern in self.CONSTANT_PATTERNS:
            for match in pattern.finditer(expression):
                value = match.group(1)
                if value not in constants:
                    constants.append(value)
        return constants

    def generate_human_readable(self, expression: str, fields: List[str]) -> str:
        """
        Paraphrase an expression in words

        Falls back to the untouched expression if any substitution fails.
        """
        try:
            readable = expression

            for field_path in fields:
                display = field_path.split('/')[-1]
                token = 'my:' + '/(?:my:)?'.join(re.escape(part) for part in field_path.split('/'))
                readable = re.sub(token + r'(?!\w)', lambda _m, d=display: f"[{d}]", readable)

            for pattern, template in self.IDIOM_TEMPLATES:
                readable = pattern.sub(template, readable)

            readable = readable.replace(" and ", " AND ")
            readable = readable.replace(" or ", " OR ")

            operator_words = self.LEGACY_OPERATOR_WORDS if self.legacy_operator_order else self.OPERATOR_WORDS
            for operator, words in operator_words:
                readable = readable.replace(operator, words)

            return re.sub(r'\s+', ' ', readable).strip()
        except Exception as e:
            logger.debug(f"Human readable generation failed for {expression!r}: {e}")
            return expression

    def determine_return_type(self, expression: str, calls: List[FunctionCall]) -> ReturnType:
        """
        Return type of the known call that closes last, or a pattern guess

        The call closing last is the outermost one, so conversions such as
        boolean(count(...)) decide the type.

        Args:
            expression: Raw expression text
            calls: Function calls ordered by start offset

        Returns:
            ReturnType
        """
        known = [call for call in calls if call.is_known_function]
        if known:
            return max(known, key=lambda call: call.end_position).return_type

        expr = expression.lower()

        if any(token in expr for token in ("=", "!=", ">", "<", "and", "or", "not(")):
            return ReturnType.BOOLEAN

        if any(token in expr for token in ("+", "-", "*", "/", "sum(", "count(", "avg(")):
            return ReturnType.NUMBER

        if any(token in expr for token in ("today(", "now(", "adddays(")):
            return ReturnType.DATE

        return ReturnType.STRING

    def _sub_expression_candidates(self, expression: str) -> List[str]:
        """Innermost parenthesized spans, then and/or branches"""
        candidates = []

        for match in self.INNERMOST_PARENS.finditer(expression):
            inner = match.group(1).strip()
            if inner and inner != expression:
                candidates.append(inner)

        if " and " in expression or " or " in expression:
            for part in self._split_logical(expression):
                if part != expression:
                    candidates.append(part)

        return candidates

    @staticmethod
    def _split_logical(expression: str) -> List[str]:
        parts: List[str] = []
        for and_part in expression.split(" and "):
            for or_part in and_part.split(" or "):
                part = or_part.strip()
                if part and part not in parts:
                    parts.append(part)
        return parts

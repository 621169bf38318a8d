"""
Tests for ExpressionAnalyzer
"""

import dataclasses
import pytest
import unittest

from formlift.analysis.expression_analyzer import ComplexityWeights, ExpressionAnalyzer
from formlift.analysis.models import RuleComplexity
from formlift.parsing.models import ExpressionType, HintKind, ReturnType


class TestAnalyzeExpression(unittest.TestCase):
    """Test analyze_expression basics"""

    def setUp(self):
        self.analyzer = ExpressionAnalyzer()

    def test_empty_expression_returns_none(self):
        self.assertIsNone(self.analyzer.analyze_expression(""))
        self.assertIsNone(self.analyzer.analyze_expression(None))

    def test_original_kept_and_parsed_trimmed(self):
        expression = "  my:Field1  "
        result = self.analyzer.analyze_expression(expression)

        self.assertEqual(result.original_expression, expression)
        self.assertEqual(result.parsed_expression, "my:Field1")

    def test_whitespace_only_is_not_empty(self):
        result = self.analyzer.analyze_expression("   ")
        self.assertIsNotNone(result)
        self.assertEqual(result.parsed_expression, "")

    def test_two_comparisons_joined_by_and_is_complex(self):
        result = self.analyzer.analyze_expression('my:Field1 = "A" and my:Field2 = "B"')

        self.assertEqual(result.referenced_fields, ["Field1", "Field2"])
        self.assertEqual(result.used_functions, [])
        self.assertEqual(result.complexity_score, 6)
        self.assertTrue(result.is_complex)
        self.assertFalse(result.has_nested_conditions)
        self.assertFalse(result.requires_data_lookup)
        self.assertEqual(result.return_type, ReturnType.BOOLEAN)

    def test_complex_expression_is_decomposed_on_and(self):
        result = self.analyzer.analyze_expression('my:Field1 = "A" and my:Field2 = "B"')

        parts = [sub.original_expression for sub in result.sub_expressions]
        self.assertEqual(parts, ['my:Field1 = "A"', 'my:Field2 = "B"'])
        for sub in result.sub_expressions:
            self.assertFalse(sub.is_complex)
            self.assertEqual(sub.sub_expressions, [])

    def test_simple_expression_has_no_sub_expressions(self):
        result = self.analyzer.analyze_expression("my:Title")
        self.assertFalse(result.is_complex)
        self.assertEqual(result.sub_expressions, [])
        self.assertEqual(result.type, ExpressionType.FIELD_REFERENCE)

    def test_score_at_threshold_is_not_complex(self):
        # 1 known call (2) + lookup (3) = 5, threshold is strict
        result = self.analyzer.analyze_expression("userName()")

        self.assertEqual(result.complexity_score, 5)
        self.assertFalse(result.is_complex)
        self.assertTrue(result.requires_data_lookup)
        self.assertEqual(result.return_type, ReturnType.STRING)

    def test_result_is_read_only(self):
        result = self.analyzer.analyze_expression("my:Title")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            result.complexity_score = 99

    def test_unknown_function(self):
        result = self.analyzer.analyze_expression("myCustom(my:X)")

        self.assertEqual(result.complexity_score,
                         ComplexityWeights.FIELD_REFERENCE
                         + ComplexityWeights.FUNCTION_CALL
                         + ComplexityWeights.UNKNOWN_FUNCTION)
        self.assertTrue(result.is_complex)
        self.assertEqual(result.type, ExpressionType.CUSTOM_FUNCTION)
        self.assertEqual([hint.kind for hint in result.translation_hints], [HintKind.UNKNOWN_FUNCTION])
        self.assertEqual([sub.original_expression for sub in result.sub_expressions], ["my:X"])


class TestComplexityScoring:
    """Test the individual scoring rules"""

    @pytest.fixture
    def analyzer(self):
        return ExpressionAnalyzer()

    def test_nested_parentheses(self, analyzer):
        result = analyzer.analyze_expression("round(sum(my:Items))")
        assert result.has_nested_conditions is True
        assert analyzer.max_paren_depth("round(sum(my:Items))") == 2

    def test_parent_path_requires_lookup(self, analyzer):
        result = analyzer.analyze_expression("../my:Total")
        assert result.requires_data_lookup is True

    def test_predicate_requires_lookup(self, analyzer):
        result = analyzer.analyze_expression('my:Items[my:Type = "A"]')
        assert result.requires_data_lookup is True

    def test_configurable_threshold(self):
        analyzer = ExpressionAnalyzer(complexity_threshold=6)
        result = analyzer.analyze_expression('my:Field1 = "A" and my:Field2 = "B"')
        assert result.complexity_score == 6
        assert result.is_complex is False
        assert result.sub_expressions == []

    def test_custom_weights(self):
        class HeavyFields(ComplexityWeights):
            FIELD_REFERENCE = 3

        analyzer = ExpressionAnalyzer(weights=HeavyFields())
        result = analyzer.analyze_expression("my:A + my:B")
        assert result.complexity_score == 6
        assert result.is_complex is True

    def test_classify_complexity_buckets(self, analyzer):
        assert analyzer.classify_complexity(0) == RuleComplexity.SIMPLE
        assert analyzer.classify_complexity(2) == RuleComplexity.SIMPLE
        assert analyzer.classify_complexity(5) == RuleComplexity.MODERATE
        assert analyzer.classify_complexity(10) == RuleComplexity.COMPLEX
        assert analyzer.classify_complexity(11) == RuleComplexity.ADVANCED


class TestDecompositionDepth:
    """Test the decomposition depth cutoff"""

    def test_zero_depth_stops_at_root(self):
        analyzer = ExpressionAnalyzer(max_depth=0)
        result = analyzer.analyze_expression('my:Field1 = "A" and my:Field2 = "B"')
        assert result.is_complex is True
        assert result.sub_expressions == []

    def test_deeply_nested_input_terminates(self):
        expression = "myCustom(" * 60 + "my:X" + ")" * 60
        analyzer = ExpressionAnalyzer(max_depth=3)
        result = analyzer.analyze_expression(expression)

        depth = 0
        node = result
        while node.sub_expressions:
            node = node.sub_expressions[0]
            depth += 1
        assert depth <= 3


class TestHumanReadable:
    """Test generate_human_readable"""

    @pytest.fixture
    def analyzer(self):
        return ExpressionAnalyzer()

    def test_not_empty_idiom(self, analyzer):
        result = analyzer.analyze_expression("string-length(my:Name) > 0")
        assert "is not empty" in result.human_readable
        assert "[Name]" in result.human_readable

    def test_and_with_equals(self, analyzer):
        result = analyzer.analyze_expression('my:Field1 = "A" and my:Field2 = "B"')
        assert result.human_readable == '[Field1] equals "A" AND [Field2] equals "B"'

    def test_nested_field_path_uses_last_segment(self, analyzer):
        result = analyzer.analyze_expression("my:Group/my:City")
        assert result.human_readable == "[City]"

    def test_legacy_operator_order_mangles_compound_operators(self, analyzer):
        result = analyzer.analyze_expression("my:Age >= 18")
        assert result.human_readable == "[Age] is greater than equals 18"

    def test_modern_operator_order(self):
        analyzer = ExpressionAnalyzer(legacy_operator_order=False)
        result = analyzer.analyze_expression("my:Age >= 18")
        assert result.human_readable == "[Age] is greater than or equal to 18"

    def test_not_equal(self, analyzer):
        result = analyzer.analyze_expression('my:Status != "Closed"')
        assert result.human_readable == '[Status] is not equal to "Closed"'

    @pytest.mark.parametrize("expression,expected", [
        ("string-length(my:Name) = 0", "[Name] is empty"),
        ("count(my:Items) > 3", "[Items] has more than 3 items"),
        ("count(my:Items) = 1", "[Items] has exactly 1 items"),
        ("sum(my:Lines/my:Amount)", "sum of [Amount]"),
        ('concat(my:First, " ", my:Last)', 'combine [First], " ", [Last]'),
    ])
    def test_idiom_templates(self, analyzer, expression, expected):
        assert analyzer.analyze_expression(expression).human_readable == expected

    def test_legacy_operator_order_mangles_less_or_equal(self, analyzer):
        result = analyzer.analyze_expression("my:A <= 3")
        assert result.human_readable == "[A] is less than equals 3"

    def test_modern_less_or_equal(self):
        analyzer = ExpressionAnalyzer(legacy_operator_order=False)
        result = analyzer.analyze_expression("my:A <= 3")
        assert result.human_readable == "[A] is less than or equal to 3"


class TestConstantsAndReturnType:
    """Test constant extraction and return type inference"""

    @pytest.fixture
    def analyzer(self):
        return ExpressionAnalyzer()

    def test_constants_order(self, analyzer):
        assert analyzer.extract_constants("concat('a', \"b\", 3)") == ["b", "a", "3"]

    def test_constants_deduplicated(self, analyzer):
        assert analyzer.extract_constants('my:A = "x" or my:B = "x"') == ["x"]

    def test_return_type_from_last_known_call(self, analyzer):
        assert analyzer.analyze_expression("today()").return_type == ReturnType.DATE
        assert analyzer.analyze_expression("string-length(my:Name)").return_type == ReturnType.NUMBER

    def test_outer_conversion_decides_return_type(self, analyzer):
        result = analyzer.analyze_expression("boolean(count(my:Items))")
        assert result.used_functions == ["boolean", "count"]
        assert result.return_type == ReturnType.BOOLEAN

        result = analyzer.analyze_expression("string(sum(my:Items/my:Price))")
        assert result.return_type == ReturnType.STRING

    def test_later_sibling_call_decides_return_type(self, analyzer):
        assert analyzer.analyze_expression("today() + count(my:Items)").return_type == ReturnType.NUMBER

    def test_return_type_from_operators(self, analyzer):
        assert analyzer.analyze_expression("my:Price * my:Qty").return_type == ReturnType.NUMBER

    def test_return_type_defaults_to_string(self, analyzer):
        assert analyzer.analyze_expression('"Hello"').return_type == ReturnType.STRING


class TestSummarize(unittest.TestCase):
    """Test summarize over a batch of expressions"""

    def test_summary_counts(self):
        analyzer = ExpressionAnalyzer()
        summary = analyzer.summarize(["my:A = 1", "", "myCustom(my:X)", "today()"])

        self.assertEqual(summary.total_expressions, 3)
        self.assertEqual(summary.simple_expressions, 2)
        self.assertEqual(summary.complex_expressions, 1)
        self.assertEqual(summary.used_functions, ["today"])
        self.assertEqual(summary.custom_functions, ["myCustom"])
        self.assertEqual(summary.complexity_distribution, {"simple": 2, "complex": 1})
        self.assertEqual(summary.return_types, {"boolean": 1, "string": 1, "date": 1})
        self.assertEqual(len(summary.expressions), 3)

    def test_simplify_delegates_to_parser(self):
        analyzer = ExpressionAnalyzer()
        self.assertEqual(analyzer.simplify_expression("not(my:Approved)"), "NOT Approved")

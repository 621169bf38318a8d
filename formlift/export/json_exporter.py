"""
JSON export of analysis results
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Union

from formlift.analysis.models import (
    AnalysisResult,
    ControlGroup,
    EnhancedExpression,
    RuleAnalysisSummary,
)
from formlift.core.models import ExportError

logger = logging.getLogger(__name__)


def expression_to_dict(expression: EnhancedExpression) -> Dict[str, Any]:
    """JSON-ready view of an analyzed expression, sub-expressions included"""
    return {
        'original_expression': expression.original_expression,
        'parsed_expression': expression.parsed_expression,
        'type': expression.type.value,
        'referenced_fields': list(expression.referenced_fields),
        'used_functions': list(expression.used_functions),
        'constants': list(expression.constants),
        'complexity_score': expression.complexity_score,
        'is_complex': expression.is_complex,
        'has_nested_conditions': expression.has_nested_conditions,
        'requires_data_lookup': expression.requires_data_lookup,
        'human_readable': expression.human_readable,
        'return_type': expression.return_type.value,
        'translation_hints': [
            {'kind': hint.kind.value, 'text': hint.text} for hint in expression.translation_hints
        ],
        'sub_expressions': [expression_to_dict(sub) for sub in expression.sub_expressions],
    }


def group_to_dict(group: ControlGroup) -> Dict[str, Any]:
    return {
        'group_id': group.group_id,
        'suggested_name': group.suggested_name,
        'occurrence_count': group.occurrence_count,
        'found_in_forms': group.found_in_forms,
        'controls': [
            {
                'label': control.label,
                'type': control.type,
                'name': control.name,
                'relative_position': control.relative_position,
                'normalized_label': control.normalized_label,
            }
            for control in group.controls
        ],
        'is_sequential': group.is_sequential,
        'contains_repeating_controls': group.contains_repeating_controls,
        'common_section': group.common_section,
        'merged_group_ids': list(group.merged_group_ids),
    }


def analysis_result_to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """JSON-ready view of a mining result; signature keys rendered as Type:LABEL"""
    return {
        'identified_groups': [group_to_dict(group) for group in result.identified_groups],
        'control_frequency': {str(key): count for key, count in result.control_frequency.items()},
        'statistics': {
            'total_forms_analyzed': result.total_forms_analyzed,
            'total_controls_analyzed': result.total_controls_analyzed,
            'controls_in_repeating_sections': result.controls_in_repeating_sections,
            'total_groups': len(result.identified_groups),
        },
        'common_patterns': list(result.common_patterns),
        'repeating_sections': [asdict(section) for section in result.repeating_sections],
    }


def summary_to_dict(summary: RuleAnalysisSummary) -> Dict[str, Any]:
    """JSON-ready view of a rule corpus summary"""
    return {
        'statistics': {
            'total_expressions': summary.total_expressions,
            'simple_expressions': summary.simple_expressions,
            'complex_expressions': summary.complex_expressions,
        },
        'used_functions': list(summary.used_functions),
        'custom_functions': list(summary.custom_functions),
        'expressions_by_type': dict(summary.expressions_by_type),
        'return_types': dict(summary.return_types),
        'complexity_distribution': dict(summary.complexity_distribution),
        'expressions': [expression_to_dict(expression) for expression in summary.expressions],
    }


def export_json(payload: Dict[str, Any], output_file: Union[str, Path]) -> Path:
    """
    Write a payload as indented UTF-8 JSON

    Args:
        payload: JSON-ready dictionary
        output_file: Destination path, parent directories are created

    Returns:
        Path written

    Raises:
        ExportError: If the file cannot be written
    """
    output_path = Path(output_file)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

        logger.info(f"Results exported to {output_path}")
        return output_path
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Error exporting results: {e}")
        raise ExportError(f"Error exporting results to {output_path}: {e}")

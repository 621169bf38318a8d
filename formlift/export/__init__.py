"""
Export of analysis results
"""

from formlift.export.json_exporter import (
    expression_to_dict,
    group_to_dict,
    analysis_result_to_dict,
    summary_to_dict,
    export_json,
)

__all__ = [
    "expression_to_dict",
    "group_to_dict",
    "analysis_result_to_dict",
    "summary_to_dict",
    "export_json",
]

"""
Analysis engines for FormLift
Expression analysis and reusable control group mining
"""

from formlift.analysis.expression_analyzer import ExpressionAnalyzer
from formlift.analysis.control_group_miner import ReusableControlGroupMiner
from formlift.analysis.models import (
    EnhancedExpression,
    RuleComplexity,
    RuleAnalysisSummary,
    SignatureKey,
    ControlSignature,
    ControlGroup,
    RepeatingSectionInfo,
    AnalysisResult,
)

__all__ = [
    'ExpressionAnalyzer',
    'ReusableControlGroupMiner',
    'EnhancedExpression',
    'RuleComplexity',
    'RuleAnalysisSummary',
    'SignatureKey',
    'ControlSignature',
    'ControlGroup',
    'RepeatingSectionInfo',
    'AnalysisResult',
]

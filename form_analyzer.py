"""
Analyzer of legacy form corpora
Runs expression analysis and reusable control group mining over loaded forms
and exports the results
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from tqdm import tqdm

from formlift.analysis.control_group_miner import ReusableControlGroupMiner
from formlift.analysis.expression_analyzer import ExpressionAnalyzer
from formlift.analysis.models import AnalysisResult, RuleAnalysisSummary
from formlift.config.config import Config, get_config
from formlift.core.models import ExportError, FormDefinition
from formlift.export.json_exporter import analysis_result_to_dict, export_json, summary_to_dict
from formlift.io.base import FormLoaderBase

logger = logging.getLogger(__name__)


class OutputFiles:
    """Names of the exported result files"""
    REUSABLE_GROUPS = "reusable_groups.json"
    RULE_ANALYSIS = "rule_analysis.json"


class FormCorpusAnalyzer:
    """Analyzes the rules and controls of a set of form definitions"""

    def __init__(self, config: Optional[Config] = None, show_progress: bool = True):
        """
        Args:
            config: FormLift configuration (defaults to the global one)
            show_progress: Show tqdm progress bars
        """
        self.config = config if config is not None else get_config()
        self.show_progress = show_progress

        self.expression_analyzer = ExpressionAnalyzer(
            complexity_threshold=self.config.complexity_threshold,
            max_depth=self.config.max_decomposition_depth,
            legacy_operator_order=self.config.legacy_operator_order,
        )
        self.miner = ReusableControlGroupMiner(
            group_similarity_threshold=self.config.group_similarity_threshold,
            label_similarity_threshold=self.config.label_similarity_threshold,
        )

        self.forms: Dict[str, FormDefinition] = {}
        self.group_result: Optional[AnalysisResult] = None
        self.rule_summary: Optional[RuleAnalysisSummary] = None

    def load(self, loader: FormLoaderBase) -> Dict[str, FormDefinition]:
        """
        Load forms from a loader, replacing anything loaded before

        Raises:
            FormLoadError: If the loader fails
        """
        logger.info(f"Loading forms from {loader.source_description()}")
        self.forms = loader.load_forms()
        self.group_result = None
        self.rule_summary = None
        return self.forms

    def mine_groups(self,
                    min_occurrences: Optional[int] = None,
                    min_group_size: Optional[int] = None,
                    max_group_size: Optional[int] = None) -> AnalysisResult:
        """
        Mine the loaded forms for reusable control groups

        Parameters left as None come from the configuration.

        Raises:
            ValidationError: If the mining parameters are invalid
        """
        min_occurrences = self.config.min_occurrences if min_occurrences is None else min_occurrences
        min_group_size = self.config.min_group_size if min_group_size is None else min_group_size
        max_group_size = self.config.max_group_size if max_group_size is None else max_group_size

        logger.info(f"Mining {len(self.forms)} forms for reusable groups "
                    f"(size {min_group_size}-{max_group_size}, min occurrences {min_occurrences})")

        self.group_result = self.miner.analyze_for_reusable_groups(
            self.forms,
            min_occurrences=min_occurrences,
            min_group_size=min_group_size,
            max_group_size=max_group_size,
        )

        logger.info(f"Found {len(self.group_result.identified_groups)} reusable groups")
        return self.group_result

    def collect_expressions(self) -> List[str]:
        """Condition and action expressions of every rule, in form order"""
        expressions = []
        for form in self.forms.values():
            for rule in form.rules:
                expressions.extend(rule.expressions())
        return expressions

    def analyze_rules(self) -> RuleAnalysisSummary:
        """Analyze every rule expression of the loaded forms"""
        expressions = self.collect_expressions()
        logger.info(f"Analyzing {len(expressions)} rule expressions")

        progress = tqdm(expressions, desc="Analyzing expressions", disable=not self.show_progress)
        self.rule_summary = self.expression_analyzer.summarize(progress)

        logger.info(f"{self.rule_summary.complex_expressions} of {self.rule_summary.total_expressions} "
                    f"expressions are complex")
        return self.rule_summary

    def export_results(self, output_dir: Union[str, Path]) -> List[Path]:
        """
        Write the available results as JSON

        Args:
            output_dir: Destination directory

        Returns:
            Paths written

        Raises:
            ExportError: If there is nothing to export or writing fails
        """
        if self.group_result is None and self.rule_summary is None:
            raise ExportError("No results to export")

        output_path = Path(output_dir)
        written = []

        if self.group_result is not None:
            written.append(export_json(analysis_result_to_dict(self.group_result),
                                       output_path / OutputFiles.REUSABLE_GROUPS))

        if self.rule_summary is not None:
            written.append(export_json(summary_to_dict(self.rule_summary),
                                       output_path / OutputFiles.RULE_ANALYSIS))

        return written

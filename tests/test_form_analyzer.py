"""
Tests for FormCorpusAnalyzer
"""

import json
import pytest
import unittest
from unittest.mock import Mock

from form_analyzer import FormCorpusAnalyzer, OutputFiles
from formlift.config.config import get_config, reload_config
from formlift.core.models import ExportError, FormLoadError, ValidationError
from formlift.io.base import FormLoaderBase
from formlift.io.json_loader import JsonFormLoader


class StaticLoader(FormLoaderBase):
    """Loader returning a fixed set of forms"""

    def __init__(self, forms):
        self.forms = forms

    def load_forms(self):
        return dict(self.forms)

    def source_description(self):
        return "in-memory forms"


class TestFormCorpusAnalyzer:
    """Tests for FormCorpusAnalyzer"""

    @pytest.fixture
    def analyzer(self):
        return FormCorpusAnalyzer(show_progress=False)

    @pytest.fixture
    def loaded(self, analyzer, make_form, person_controls, sample_rules):
        analyzer.load(StaticLoader({
            "a": make_form(*person_controls, rules=sample_rules),
            "b": make_form(*person_controls),
        }))
        return analyzer

    def test_engines_follow_config(self, monkeypatch):
        monkeypatch.setenv("FORMLIFT_COMPLEXITY_THRESHOLD", "9")
        monkeypatch.setenv("FORMLIFT_LABEL_SIMILARITY_THRESHOLD", "0.6")
        config = reload_config()

        analyzer = FormCorpusAnalyzer(config, show_progress=False)

        assert analyzer.expression_analyzer.complexity_threshold == 9
        assert analyzer.miner.label_similarity_threshold == 0.6

    def test_mine_groups_with_overrides(self, loaded):
        result = loaded.mine_groups(min_group_size=3)

        assert len(result.identified_groups) == 1
        assert result.identified_groups[0].occurrence_count == 2

    def test_mine_groups_defaults_from_config(self, loaded):
        result = loaded.mine_groups()
        assert {g.size for g in result.identified_groups} == {2, 3}

    def test_mine_groups_invalid_parameters(self, loaded):
        with pytest.raises(ValidationError):
            loaded.mine_groups(min_group_size=3, max_group_size=2)

    def test_collect_expressions(self, loaded):
        assert loaded.collect_expressions() == [
            "string-length(my:Name) > 0",
            '"Ready"',
            "sum(my:Items/my:Price)",
        ]

    def test_analyze_rules(self, loaded):
        summary = loaded.analyze_rules()

        assert summary.total_expressions == 3
        assert "sum" in summary.used_functions
        assert "string-length" in summary.used_functions

    def test_export_without_results(self, analyzer, tmp_path):
        with pytest.raises(ExportError):
            analyzer.export_results(tmp_path)

    def test_export_results(self, loaded, tmp_path):
        loaded.mine_groups()
        loaded.analyze_rules()

        written = loaded.export_results(tmp_path / "out")

        assert [p.name for p in written] == [OutputFiles.REUSABLE_GROUPS, OutputFiles.RULE_ANALYSIS]
        groups = json.loads((tmp_path / "out" / OutputFiles.REUSABLE_GROUPS).read_text(encoding="utf-8"))
        assert groups["statistics"]["total_forms_analyzed"] == 2

    def test_load_resets_previous_results(self, loaded, make_form):
        loaded.mine_groups()
        loaded.load(StaticLoader({"c": make_form()}))
        assert loaded.group_result is None


class TestFormCorpusAnalyzerWithFiles(unittest.TestCase):
    """End to end over JSON files"""

    def test_loader_errors_propagate(self):
        loader = Mock(spec=FormLoaderBase)
        loader.source_description.return_value = "mock"
        loader.load_forms.side_effect = FormLoadError("boom")

        with self.assertRaises(FormLoadError):
            FormCorpusAnalyzer(get_config(), show_progress=False).load(loader)


def test_sample_corpus_contact_block(sample_forms_dir):
    analyzer = FormCorpusAnalyzer(show_progress=False)
    analyzer.load(JsonFormLoader(sample_forms_dir))

    result = analyzer.mine_groups()

    assert [g.suggested_name for g in result.identified_groups] == ["ContactFields"]
    assert result.identified_groups[0].occurrence_count == 3
    assert result.common_patterns == ["Found 1 groups of sequential text fields"]

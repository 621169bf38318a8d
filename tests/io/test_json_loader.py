"""
Tests for JsonFormLoader and load_expressions
"""

import json
import pytest

from formlift.core.models import FormLoadError
from formlift.io.json_loader import JsonFormLoader, load_expressions


PASCAL_FORM = {
    "Views": [{
        "ViewName": "Main",
        "Controls": [
            {"Name": "txtName", "Type": "TextField", "Label": "Name", "Binding": "my:Name"},
            {
                "Name": "tblLines",
                "Type": "RepeatingTable",
                "Label": "Lines",
                "Controls": [
                    {"Name": "txtItem", "Type": "TextField", "Label": "Item",
                     "RepeatingSectionInfo": {"IsInRepeatingSection": True,
                                              "RepeatingSectionName": "Lines"}},
                ],
            },
            {"Name": "dtStart", "Type": "DatePicker",
             "SectionInfo": {"ParentSection": "Dates", "SectionType": "optional"},
             "IsMergedIntoParent": False},
        ],
    }],
    "Rules": [{
        "Name": "Require name",
        "Condition": "string-length(my:Name) = 0",
        "IsEnabled": True,
        "Actions": [{"Type": "ShowError", "Target": "my:Name", "Expression": '"Name is required"'}],
    }],
}

CAMEL_FORM = {
    "views": [{
        "viewName": "Main",
        "controls": [{"name": "txtEmail", "type": "TextField", "label": "Email"}],
    }],
    "rules": [{"name": "r1", "condition": "my:Email != ''", "isEnabled": False, "actions": []}],
}


def write_json(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


class TestJsonFormLoader:
    """Test JsonFormLoader"""

    def test_pascal_case_document(self, tmp_path):
        write_json(tmp_path / "request.json", PASCAL_FORM)

        forms = JsonFormLoader(tmp_path).load_forms()

        form = forms["request"]
        assert len(form.views) == 1
        controls = form.views[0].controls
        assert [c.name for c in controls] == ["txtName", "tblLines", "dtStart"]
        assert controls[0].binding == "my:Name"
        assert controls[1].controls[0].is_in_repeating_section is True
        assert controls[1].controls[0].repeating_section_name == "Lines"
        assert controls[2].label is None
        assert controls[2].parent_section == "Dates"
        assert controls[2].section_type == "optional"

        rule = form.rules[0]
        assert rule.condition == "string-length(my:Name) = 0"
        assert rule.actions[0].target == "my:Name"
        assert rule.expressions() == ["string-length(my:Name) = 0", '"Name is required"']

    def test_camel_case_document(self, tmp_path):
        write_json(tmp_path / "contact.json", CAMEL_FORM)

        form = JsonFormLoader(tmp_path).load_forms()["contact"]

        assert form.views[0].view_name == "Main"
        assert form.views[0].controls[0].label == "Email"
        assert form.rules[0].is_enabled is False

    def test_recursive_and_sorted(self, tmp_path):
        nested = tmp_path / "hr" / "2019"
        nested.mkdir(parents=True)
        write_json(tmp_path / "b.json", CAMEL_FORM)
        write_json(nested / "a.json", CAMEL_FORM)

        assert set(JsonFormLoader(tmp_path).load_forms()) == {"a", "b"}

    def test_empty_file_is_skipped(self, tmp_path):
        (tmp_path / "empty.json").write_text("   ", encoding="utf-8")
        write_json(tmp_path / "real.json", CAMEL_FORM)

        assert list(JsonFormLoader(tmp_path).load_forms()) == ["real"]

    def test_invalid_json(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(FormLoadError, match="Invalid JSON"):
            JsonFormLoader(tmp_path).load_forms()

    def test_schema_violation(self, tmp_path):
        write_json(tmp_path / "bad.json", {"Views": [{"Controls": [{"Name": "noType"}]}]})

        with pytest.raises(FormLoadError, match="Invalid form definition"):
            JsonFormLoader(tmp_path).load_forms()

    def test_null_names_become_empty(self, tmp_path):
        write_json(tmp_path / "nulls.json", {
            "Views": [{"ViewName": None, "Controls": [{"Name": None, "Type": "TextField", "Label": "Email"}]}],
            "Rules": [{"Name": None, "Condition": "my:Email != ''"}],
        })

        form = JsonFormLoader(tmp_path).load_forms()["nulls"]

        assert form.views[0].view_name == ""
        assert form.views[0].controls[0].name == ""
        assert form.views[0].controls[0].label == "Email"
        assert form.rules[0].name == ""

    def test_empty_directory(self, tmp_path):
        with pytest.raises(FormLoadError, match="No .json files"):
            JsonFormLoader(tmp_path).load_forms()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FormLoadError, match="not found"):
            JsonFormLoader(tmp_path / "missing").load_forms()

    def test_path_is_a_file(self, tmp_path):
        file_path = tmp_path / "form.json"
        write_json(file_path, CAMEL_FORM)

        with pytest.raises(FormLoadError, match="not a directory"):
            JsonFormLoader(file_path).load_forms()

    def test_source_description(self, tmp_path):
        assert str(tmp_path) in JsonFormLoader(tmp_path).source_description()

    def test_sample_corpus(self, sample_forms_dir):
        forms = JsonFormLoader(sample_forms_dir).load_forms()
        assert sorted(forms) == ["hr_request", "it_request", "travel_request"]


class TestLoadExpressions:
    """Test load_expressions"""

    def test_comments_and_blank_lines(self, tmp_path):
        path = tmp_path / "rules.txt"
        path.write_text("# header\nmy:A = 1\n\n   \n  today()  \n#my:B\n", encoding="utf-8")

        assert load_expressions(path) == ["my:A = 1", "today()"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FormLoadError):
            load_expressions(tmp_path / "missing.txt")

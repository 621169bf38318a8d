"""
Shared test fixtures
"""

import json
import pytest

from formlift.config.config import Config
from formlift.core.models import (
    ControlDefinition,
    FormDefinition,
    FormRule,
    FormRuleAction,
    ViewDefinition,
)


def _make_control(control_type, label=None, name=None, **kwargs):
    if name is None:
        name = (label or control_type).replace(" ", "")
    return ControlDefinition(name=name, type=control_type, label=label, **kwargs)


def _make_form(*controls, view_name="View 1", rules=None):
    return FormDefinition(
        views=[ViewDefinition(view_name=view_name, controls=list(controls))],
        rules=list(rules or []),
    )


# ==================== Environment ====================

@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Fresh configuration per test, no automatic log files"""
    monkeypatch.setenv("FORMLIFT_AUTO_LOG_ENABLED", "false")
    monkeypatch.setenv("FORMLIFT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("FORMLIFT_OUTPUT_DIR", str(tmp_path / "output"))
    Config.reset_instance()
    yield
    Config.reset_instance()


# ==================== Form Fixtures ====================

@pytest.fixture
def make_control():
    """Factory for ControlDefinition"""
    return _make_control


@pytest.fixture
def make_form():
    """Factory for single-view FormDefinition"""
    return _make_form


@pytest.fixture
def person_controls():
    """First name, last name and start date, in that order"""
    return [
        _make_control("TextField", "First Name"),
        _make_control("TextField", "Last Name"),
        _make_control("DatePicker", "Start Date"),
    ]


@pytest.fixture
def sample_rules():
    return [
        FormRule(
            name="Require name",
            condition='string-length(my:Name) > 0',
            actions=[FormRuleAction(type="SetValue", target="my:Status", expression='"Ready"')],
        ),
        FormRule(
            name="Total",
            condition=None,
            actions=[FormRuleAction(type="SetValue", target="my:Total", expression="sum(my:Items/my:Price)")],
        ),
    ]


def _form_document(labels, rules=None):
    return {
        "Views": [{
            "ViewName": "Main",
            "Controls": [{"Name": label.replace(" ", ""), "Type": "TextField", "Label": label}
                         for label in labels],
        }],
        "Rules": rules or [],
    }


@pytest.fixture
def sample_forms_dir(tmp_path):
    """Directory with three exported form definitions sharing a contact block"""
    forms_dir = tmp_path / "forms"
    forms_dir.mkdir()

    rules = [{"Name": "Check email", "Condition": 'contains(my:Email, "@")', "IsEnabled": True,
              "Actions": [{"Type": "ShowError", "Expression": '"Invalid email"'}]}]

    (forms_dir / "hr_request.json").write_text(
        json.dumps(_form_document(["Email", "Phone", "Department"], rules)), encoding="utf-8")
    (forms_dir / "it_request.json").write_text(
        json.dumps(_form_document(["Email", "Phone", "Laptop Model"])), encoding="utf-8")
    (forms_dir / "travel_request.json").write_text(
        json.dumps(_form_document(["Destination", "Email", "Phone"])), encoding="utf-8")

    return forms_dir

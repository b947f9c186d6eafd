"""Tests for the form diagnostics engine"""

from formwright.config import DiagnosticsSettings
from formwright.diagnostics import (
    CIRCULAR_DEPENDENCY_MESSAGE,
    run_form_diagnostics,
    simulate_render,
)
from formwright.enums import DiagnosticErrorType, DiagnosticStatus, Severity
from formwright.models import FormField, FormStructure


def shown_when(field_id, other_id):
    return {
        "id": field_id,
        "field_type": "text",
        "label": field_id.upper(),
        "conditional_visibility": {
            "enabled": True,
            "conditions": [{"fieldId": other_id, "operator": "is_not_empty"}],
        },
    }


class TestRunFormDiagnostics:
    """Tests for run_form_diagnostics"""

    def test_valid_form_passes(self, valid_form):
        report = run_form_diagnostics(valid_form)

        assert report.status == DiagnosticStatus.PASSED
        assert report.passed
        assert report.errors == []
        assert report.warnings == []
        assert (report.page_count, report.section_count, report.field_count) == (1, 1, 6)
        assert report.execution_time >= 0

    def test_accepts_parsed_structure(self, valid_form):
        report = run_form_diagnostics(FormStructure.model_validate(valid_form))

        assert report.passed
        assert report.field_count == 6

    def test_empty_options_is_a_render_error(self, make_form):
        form = make_form({"id": "choice", "field_type": "select", "label": "Choice", "options": []})

        report = run_form_diagnostics(form)

        assert report.status == DiagnosticStatus.FAILED
        render_errors = [e for e in report.errors if e.type == DiagnosticErrorType.RENDER_ERROR]
        assert len(render_errors) == 1
        error = render_errors[0]
        assert error.message == "Field type 'select' requires options"
        assert error.field_id == "choice"
        assert error.field_label == "Choice"
        assert error.section_id == "section-1"
        assert error.section_title == "Property"
        assert error.page_id == "page-1"
        assert error.page_title == "Subject"
        assert error.severity == Severity.ERROR

    def test_schema_errors_are_reported(self, valid_form):
        valid_form["formType"] = "FNMA"

        report = run_form_diagnostics(valid_form)

        assert report.status == DiagnosticStatus.FAILED
        assert [e.type for e in report.errors] == [DiagnosticErrorType.SCHEMA_ERROR]
        assert report.errors[0].message.startswith("formType - Form type must be one of")

    def test_cycle_reported_once(self, make_form):
        report = run_form_diagnostics(make_form(shown_when("a", "b"), shown_when("b", "a")))

        assert report.status == DiagnosticStatus.FAILED
        assert len(report.errors) == 1
        error = report.errors[0]
        assert error.type == DiagnosticErrorType.CONFIG_ERROR
        assert error.message == CIRCULAR_DEPENDENCY_MESSAGE
        assert error.field_id == "a"

    def test_self_referencing_formula_is_a_cycle(self, make_form):
        form = make_form(
            {
                "id": "total",
                "field_type": "calculated",
                "label": "Total",
                "help_text": "Running total",
                "calculated_config": {"enabled": True, "formula": "{total} + 1"},
            }
        )

        report = run_form_diagnostics(form)

        assert [e.message for e in report.errors] == [CIRCULAR_DEPENDENCY_MESSAGE]

    def test_warnings_do_not_fail(self, make_form):
        form = make_form(
            {
                "id": "grid",
                "field_type": "matrix",
                "label": "Ratings",
                "options": [
                    {"label": "Kitchen", "value": "kitchen", "type": "row"},
                    {"label": "Good", "value": "good", "type": "column"},
                ],
            },
            {
                "id": "total",
                "field_type": "calculated",
                "label": "Total",
                "help_text": "Doubled",
                "calculated_config": {"enabled": True, "formula": "{ghost} * 2"},
            },
        )
        del form["pages"][0]["description"]

        report = run_form_diagnostics(form)

        assert report.status == DiagnosticStatus.PASSED
        messages = [w.message for w in report.warnings]
        assert messages == [
            "Page description is recommended for better user experience",
            "Complex field type 'matrix' should include help text",
            "Field references unknown field ID 'ghost'",
        ]
        assert all(w.severity == Severity.WARNING for w in report.warnings)
        unknown = report.warnings[-1]
        assert (unknown.field_id, unknown.section_id, unknown.page_id) == ("total", "section-1", "page-1")

    def test_settings_control_warnings(self, make_form):
        form = make_form(
            {
                "id": "sig",
                "field_type": "signature",
                "label": "Signature",
                "conditional_visibility": {
                    "enabled": True,
                    "conditions": [{"fieldId": "ghost", "operator": "is_empty"}],
                },
            }
        )
        settings = DiagnosticsSettings(complex_field_types=[], warn_unknown_references=False)

        assert len(run_form_diagnostics(form).warnings) == 2
        assert run_form_diagnostics(form, settings).warnings == []

    def test_section_without_title_warns(self):
        structure = FormStructure.model_validate(
            {
                "id": "f",
                "name": "Draft",
                "formType": "BPO",
                "pages": [{"id": "p", "title": "P", "description": "d", "sections": [{"id": "s"}]}],
            }
        )

        report = run_form_diagnostics(structure)

        assert "Section title is recommended for better form organization" in [
            w.message for w in report.warnings
        ]

    def test_missing_field_type_is_a_render_error(self, make_form):
        form = make_form({"id": "a", "label": "A"})

        report = run_form_diagnostics(form)

        assert report.status == DiagnosticStatus.FAILED
        assert DiagnosticErrorType.SCHEMA_ERROR in [e.type for e in report.errors]
        render_errors = [e for e in report.errors if e.type == DiagnosticErrorType.RENDER_ERROR]
        assert [(e.field_id, e.message) for e in render_errors] == [("a", "Unknown field type: missing")]
        assert render_errors[0].section_id == "section-1"

    def test_numeric_label_still_runs_render_checks(self, make_form):
        form = make_form({"id": "choice", "field_type": "select", "label": 5, "options": []})

        report = run_form_diagnostics(form)

        assert report.status == DiagnosticStatus.FAILED
        render_errors = [e for e in report.errors if e.type == DiagnosticErrorType.RENDER_ERROR]
        assert len(render_errors) == 1
        assert render_errors[0].message == "Field type 'select' requires options"
        assert render_errors[0].field_label == "5"

    def test_unloadable_field_is_reported_and_skipped(self, make_form):
        form = make_form(
            {"id": "broken", "field_type": "radio", "label": "Broken", "options": 5},
            {"id": "choice", "field_type": "select", "label": "Choice", "options": []},
        )

        report = run_form_diagnostics(form)

        assert report.status == DiagnosticStatus.FAILED
        assert DiagnosticErrorType.FATAL_ERROR not in [e.type for e in report.errors]
        render_errors = [e for e in report.errors if e.type == DiagnosticErrorType.RENDER_ERROR]
        assert [e.field_id for e in render_errors] == ["broken", "choice"]
        broken = render_errors[0]
        assert broken.message.startswith("Field configuration could not be loaded: options")
        assert broken.field_label == "Broken"
        assert (broken.section_id, broken.page_id) == ("section-1", "page-1")
        assert report.field_count == 1

    def test_unexpected_exception_crashes(self, valid_form, monkeypatch):
        def explode(field):
            raise RuntimeError("renderer exploded")

        monkeypatch.setattr("formwright.diagnostics.simulate_render", explode)

        report = run_form_diagnostics(valid_form)

        assert report.status == DiagnosticStatus.CRASHED
        assert report.errors[-1].type == DiagnosticErrorType.FATAL_ERROR
        assert report.errors[-1].message == "renderer exploded"

    def test_camel_case_dump(self, make_form):
        report = run_form_diagnostics(make_form(shown_when("a", "b"), shown_when("b", "a")))

        data = report.model_dump(mode="json", by_alias=True)

        assert data["status"] == "failed"
        assert data["fieldCount"] == 2
        assert "executionTime" in data
        assert data["errors"][0]["fieldId"] == "a"
        assert data["errors"][0]["type"] == "ConfigError"


class TestSimulateRender:
    """Tests for the per-field render simulation"""

    def render(self, **kwargs):
        kwargs.setdefault("id", "f")
        kwargs.setdefault("label", "Field")
        return simulate_render(FormField(**kwargs))

    def test_clean_field(self):
        assert self.render(field_type="text") is None

    def test_unknown_type(self):
        assert self.render(field_type="hologram") == "Unknown field type: hologram"

    def test_option_problems(self):
        assert (
            self.render(field_type="radio", options=[{"label": "A", "value": "a"}, {"label": "B", "value": "a"}])
            == "Duplicate option values found: a"
        )
        assert self.render(field_type="radio", options=[{"label": "", "value": "a"}]) == "Option 1 has empty label"
        assert self.render(field_type="radio", options=[{"label": "A", "value": " "}]) == "Option 1 has empty value"

    def test_calculated_config(self):
        assert (
            self.render(field_type="calculated", calculated_config={"enabled": True})
            == "Calculated field requires a formula"
        )
        assert (
            self.render(field_type="calculated", calculated_config={"enabled": True, "formula": "1", "dependencies": []})
            == "Calculated field should specify dependencies"
        )

    def test_conditions(self):
        assert (
            self.render(field_type="text", conditional_visibility={"enabled": True, "conditions": []})
            == "Conditional visibility requires at least one condition"
        )
        assert (
            self.render(
                field_type="text",
                conditional_visibility={"enabled": True, "conditions": [{"operator": "equals", "value": 1}]},
            )
            == "Condition 1 missing field ID"
        )
        assert (
            self.render(
                field_type="text",
                conditional_visibility={"enabled": True, "conditions": [{"fieldId": "x", "operator": "equals"}]},
            )
            == "Condition 1 missing value"
        )

    def test_prefill(self):
        assert (
            self.render(field_type="text", prefill_config={"enabled": True, "source": "api"})
            == "API prefill requires an endpoint"
        )
        assert (
            self.render(field_type="text", prefill_config={"enabled": True, "source": "lookup"})
            == "Lookup prefill requires a key"
        )

    def test_validation_rules(self):
        assert self.render(field_type="text", validation=[{"message": "?"}]) == "Validation rule 1 missing type"
        assert (
            self.render(field_type="text", validation=[{"type": "min"}])
            == "Validation rule 1 of type 'min' requires a value"
        )
        assert (
            self.render(field_type="text", validation=[{"type": "pattern"}])
            == "Validation rule 1 of type 'pattern' requires a pattern"
        )
        assert (
            self.render(field_type="text", validation=[{"type": "custom"}])
            == "Validation rule 1 of type 'custom' requires a custom function"
        )

"""
Unit tests for the validation module.
"""

import logging

import pytest

from fm_backend.validation import (
    ModelValidationError,
    normalize_constraint,
    validate_json,
    validate_model,
)


class TestNormalizeConstraint:
    """Tests for normalize_constraint."""

    def test_legacy_names(self):
        c = normalize_constraint({"a": "X", "b": "Y", "type": "requires"})
        assert (c.source, c.target, c.kind) == ("X", "Y", "requires")

    def test_from_to_names(self):
        c = normalize_constraint({"from": "X", "to": "Y", "type": "excludes"})
        assert (c.source, c.target, c.kind) == ("X", "Y", "excludes")

    def test_from_to_take_precedence(self):
        c = normalize_constraint({"from": "X", "a": "Z", "to": "Y", "b": "W"})
        assert (c.source, c.target) == ("X", "Y")

    def test_non_dict(self):
        assert normalize_constraint("nope") == (None, None, None)


class TestValidateModel:
    """Tests for the collect-and-report validator."""

    def test_minimal_model_passes(self):
        result = validate_model({"root": "X", "features": [{"id": "X"}], "constraints": []})
        assert result == {"ok": True, "errors": []}

    def test_sample_model_passes(self, sample_model):
        assert validate_model(sample_model)["ok"] is True

    @pytest.mark.parametrize("value", [None, "text", 42, ["a"]])
    def test_not_an_object(self, value):
        assert validate_model(value) == {"ok": False, "errors": ["Invalid JSON object"]}

    def test_missing_root(self):
        result = validate_model({"features": [{"id": "X"}]})
        assert result["ok"] is False
        assert "Missing root" in result["errors"]
        assert "Root 'None' not found in features" in result["errors"]

    def test_features_not_array_skips_rest(self):
        result = validate_model(
            {"root": "X", "features": "X", "constraints": [{"a": "Q", "b": "R", "type": "bad"}]}
        )
        assert result == {"ok": False, "errors": ["features must be array"]}

    def test_feature_missing_id(self):
        result = validate_model({"root": "X", "features": [{"id": "X"}, {"label": "nameless"}]})
        assert result["errors"] == ["Feature missing id"]

    def test_duplicate_id_reported_for_each_repeat(self):
        result = validate_model({"root": "X", "features": [{"id": "X"}, {"id": "X"}, {"id": "X"}]})
        assert result["errors"] == ["Duplicate feature id: X", "Duplicate feature id: X"]

    def test_parent_not_found(self):
        result = validate_model({"root": "X", "features": [{"id": "X"}, {"id": "A", "parent": "Ghost"}]})
        assert result["errors"] == ["Parent not found for A: Ghost"]

    def test_parent_declared_later_is_found(self):
        result = validate_model({"root": "X", "features": [{"id": "A", "parent": "X"}, {"id": "X"}]})
        assert result["ok"] is True

    def test_root_not_in_features(self):
        result = validate_model({"root": "Y", "features": [{"id": "X"}]})
        assert result["errors"] == ["Root 'Y' not found in features"]

    def test_invalid_constraint_type(self):
        result = validate_model({
            "root": "X",
            "features": [{"id": "X"}, {"id": "A", "parent": "X"}],
            "constraints": [{"a": "X", "b": "A", "type": "conflicts"}],
        })
        assert result["errors"] == ["Invalid constraint type: conflicts"]

    def test_constraint_missing_feature(self):
        result = validate_model({
            "root": "X",
            "features": [{"id": "X"}],
            "constraints": [{"a": "X", "b": "Nope", "type": "requires"}],
        })
        assert result["errors"] == ["Constraint refers to missing feature: X or Nope"]

    def test_constraint_from_to_naming_accepted(self):
        result = validate_model({
            "root": "X",
            "features": [{"id": "X"}, {"id": "A", "parent": "X"}],
            "constraints": [{"from": "A", "to": "X", "type": "requires"}],
        })
        assert result["ok"] is True

    def test_errors_are_collected_together(self):
        result = validate_model({
            "features": [{"id": "A"}, {"id": "A", "parent": "Z"}],
            "constraints": [{"a": "A", "b": "B", "type": "maybe"}],
        })
        assert len(result["errors"]) == 6
        assert result["ok"] is False

    def test_unhashable_values_do_not_raise(self):
        result = validate_model({
            "root": ["X"],
            "features": [{"id": "X", "parent": ["Y"]}],
            "constraints": [{"a": ["X"], "b": "X", "type": "requires"}],
        })
        assert result["ok"] is False
        assert "Constraint refers to missing feature: ['X'] or X" in result["errors"]
        assert "Root '['X']' not found in features" in result["errors"]


class TestValidateJson:
    """Tests for the strict fail-fast validator."""

    def test_sample_model_passes(self, sample_model):
        assert validate_json(sample_model) is True

    def test_not_an_object(self):
        with pytest.raises(ModelValidationError, match="valid JSON object"):
            validate_json([])

    def test_features_missing(self):
        with pytest.raises(ModelValidationError, match="'features' array"):
            validate_json({"root": "X"})

    def test_feature_not_object(self):
        with pytest.raises(ModelValidationError, match="Feature #2 must be a valid object"):
            validate_json({"features": [{"id": "X"}, "Y"]})

    def test_feature_id_not_string(self):
        with pytest.raises(ModelValidationError, match="Feature #1 is missing a valid 'id'"):
            validate_json({"features": [{"id": 7}]})

    def test_feature_type_is_case_insensitive(self):
        assert validate_json({"features": [{"id": "X", "type": "Mandatory"}]}) is True

    def test_feature_type_invalid(self):
        with pytest.raises(ModelValidationError, match="invalid type 'maybe'"):
            validate_json({"features": [{"id": "X", "type": "maybe"}]})

    def test_parent_not_string(self):
        with pytest.raises(ModelValidationError, match="invalid parent reference"):
            validate_json({"features": [{"id": "X", "parent": 3}]})

    def test_root_not_string(self):
        with pytest.raises(ModelValidationError, match="'root' field must be a text value"):
            validate_json({"root": 5, "features": [{"id": "X"}]})

    def test_root_not_defined(self):
        with pytest.raises(ModelValidationError, match="root feature 'Y' is not defined"):
            validate_json({"root": "Y", "features": [{"id": "X"}]})

    def test_constraints_not_array(self):
        with pytest.raises(ModelValidationError, match="'constraints' section must be an array"):
            validate_json({"features": [{"id": "X"}], "constraints": {"a": "X"}})

    def test_constraint_not_object(self):
        with pytest.raises(ModelValidationError, match="Constraint #1 must be a valid object"):
            validate_json({"features": [{"id": "X"}], "constraints": ["X requires Y"]})

    def test_constraint_endpoints_not_strings(self):
        with pytest.raises(ModelValidationError, match="Constraint #1 must specify two valid feature IDs"):
            validate_json({"features": [{"id": "X"}], "constraints": [{"from": "X", "type": "requires"}]})

    def test_constraint_conflicts_accepted(self):
        data = {
            "features": [{"id": "X"}, {"id": "Y"}],
            "constraints": [{"from": "X", "to": "Y", "type": "CONFLICTS"}],
        }
        assert validate_json(data) is True

    def test_constraint_type_invalid(self):
        with pytest.raises(ModelValidationError, match="uses an invalid type 'implies'"):
            validate_json({
                "features": [{"id": "X"}, {"id": "Y"}],
                "constraints": [{"from": "X", "to": "Y", "type": "implies"}],
            })

    def test_undefined_feature_is_only_a_warning(self, caplog):
        data = {"features": [{"id": "X"}], "constraints": [{"from": "X", "to": "Ghost", "type": "requires"}]}
        with caplog.at_level(logging.WARNING, logger="fm_backend.validation"):
            assert validate_json(data) is True
        assert "references features not defined" in caplog.text

    def test_legacy_fields_are_reported(self, caplog):
        data = {"features": [{"id": "X"}, {"id": "Y"}], "constraints": [{"a": "X", "b": "Y", "type": "requires"}]}
        with caplog.at_level(logging.INFO, logger="fm_backend.validation"):
            assert validate_json(data) is True
        assert "Renamed legacy constraint field 'a' to 'from'" in caplog.text
        assert "Renamed legacy constraint field 'b' to 'to'" in caplog.text

    @pytest.mark.parametrize("data, message", [
        ({"features": [{"id": "X"}], "constraints": {}}, "'constraints' section must be an array"),
        ({"features": [{"id": "X", "parent": []}]}, "invalid parent reference"),
        ({"root": [], "features": [{"id": "X"}]}, "'root' field must be a text value"),
        ({"features": [{"id": "X", "type": []}]}, "has an invalid type"),
        ({"features": [{"id": "X", "type": {}}]}, "has an invalid type"),
    ])
    def test_empty_containers_count_as_present(self, data, message):
        with pytest.raises(ModelValidationError, match=message):
            validate_json(data)

    @pytest.mark.parametrize("data", [
        {"root": "", "features": [{"id": "X", "parent": "", "type": ""}]},
        {"root": None, "features": [{"id": "X", "parent": None}], "constraints": None},
        {"features": [{"id": "X"}], "constraints": []},
    ])
    def test_empty_scalars_count_as_absent(self, data):
        assert validate_json(data) is True

    def test_error_carries_message_list(self):
        with pytest.raises(ModelValidationError) as excinfo:
            validate_json(None)
        assert excinfo.value.errors == [str(excinfo.value)]

"""
Tests for schema validation.
"""

import pytest
from bidmatch.schema import (
    validate_bid,
    validate_dictionary_json,
    validate_layer_skills,
    validate_layer_weights,
)


class TestValidateDictionaryJson:
    """Test structural checks on dictionary documents."""

    def test_valid_document(self, sample_dictionary_doc):
        assert validate_dictionary_json(sample_dictionary_doc) == []

    def test_not_an_object(self):
        errors = validate_dictionary_json(["2024.1"])
        assert len(errors) == 1

    def test_missing_version(self, sample_dictionary_doc):
        del sample_dictionary_doc["version"]
        errors = validate_dictionary_json(sample_dictionary_doc)
        assert errors == ["Missing required field: version"]

    def test_skills_not_array(self, sample_dictionary_doc):
        sample_dictionary_doc["skills"] = {"react": "frontend"}
        errors = validate_dictionary_json(sample_dictionary_doc)
        assert any("skills (must be array)" in err for err in errors)

    def test_missing_created_at(self, sample_dictionary_doc):
        sample_dictionary_doc["createdAt"] = ""
        errors = validate_dictionary_json(sample_dictionary_doc)
        assert "Missing required field: createdAt" in errors

    def test_reports_all_top_level_errors(self):
        errors = validate_dictionary_json({})
        assert len(errors) == 4

    def test_skill_missing_fields(self, sample_dictionary_doc):
        sample_dictionary_doc["skills"].append({"name": "vue"})
        errors = validate_dictionary_json(sample_dictionary_doc)
        assert errors == ["Invalid skill structure: missing required fields (name, category, createdAt)"]

    def test_skill_unknown_category(self, sample_dictionary_doc):
        sample_dictionary_doc["skills"][0]["category"] = "mobile"
        errors = validate_dictionary_json(sample_dictionary_doc)
        assert len(errors) == 1
        assert "unknown category 'mobile'" in errors[0]

    def test_variation_missing_fields(self, sample_dictionary_doc):
        sample_dictionary_doc["variations"].append({"variation": "vuejs"})
        errors = validate_dictionary_json(sample_dictionary_doc)
        assert errors == ["Invalid variation structure: missing required fields (variation, canonical)"]


class TestValidateLayerSkills:
    """Test layer-skills profile validation."""

    def test_valid(self, layer_bid_json):
        assert validate_layer_skills(layer_bid_json["mainStacks"]) == []

    def test_missing_layers_allowed(self):
        assert validate_layer_skills({"backend": [{"skill": "go", "weight": 1}]}) == []

    def test_unknown_layer(self):
        errors = validate_layer_skills({"mobile": []})
        assert any("mobile" in err for err in errors)

    @pytest.mark.parametrize("weight", [-0.1, 1.5, "high", None, True])
    def test_bad_weight(self, weight):
        errors = validate_layer_skills({"frontend": [{"skill": "react", "weight": weight}]})
        assert any("weight" in err.lower() for err in errors)

    def test_empty_skill_name(self):
        errors = validate_layer_skills({"frontend": [{"skill": " ", "weight": 0.5}]})
        assert len(errors) == 1

    def test_layer_not_list(self):
        errors = validate_layer_skills({"frontend": "react"})
        assert errors == ["Layer 'frontend' must be a list"]


class TestValidateLayerWeights:
    """Test layer weight validation."""

    def test_valid_partial(self):
        assert validate_layer_weights({"backend": 0.6, "database": 0.2}) == []

    def test_out_of_range(self):
        errors = validate_layer_weights({"backend": 2})
        assert errors == ["Weight for layer 'backend' must be a number in [0, 1]"]

    def test_unknown_layer(self):
        assert validate_layer_weights({"ml": 0.5}) == ["Unknown layer: ml"]


class TestValidateBid:
    """Test bid record validation."""

    def test_valid_layer_bid(self, layer_bid_json):
        assert validate_bid(layer_bid_json) == []

    def test_valid_legacy_bid(self):
        data = {"id": "b9", "company": "acme", "role": "dev", "mainStacks": ["react", "node"]}
        assert validate_bid(data) == []

    def test_missing_fields(self):
        errors = validate_bid({"id": "b1"})
        assert "Missing required field: company" in errors
        assert "Missing required field: role" in errors
        assert "Missing required field: mainStacks" in errors

    def test_legacy_non_string(self):
        data = {"id": "b9", "company": "acme", "role": "dev", "mainStacks": ["react", 3]}
        assert validate_bid(data) == ["Legacy mainStacks must be a list of strings"]

    def test_nested_layer_errors(self, layer_bid_json):
        layer_bid_json["mainStacks"]["backend"][0]["weight"] = 3
        errors = validate_bid(layer_bid_json)
        assert len(errors) == 1
        assert "python" in errors[0]

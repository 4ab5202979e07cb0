"""Tests for template duplication."""

import pytest

from config.errors import InvalidTemplateError
from models.estimate import EstimateRecord
from services.seed_data import find_template, seed_templates
from services.templates import instantiate_from_template


class TestInstantiateFromTemplate:

    def test_copies_scope(self):
        template = find_template("Modern Residential Kitchen")

        scope = instantiate_from_template(template)

        assert scope == template.scope
        assert scope is not template.scope
        assert isinstance(scope.rooms, tuple)

    def test_template_is_unchanged(self):
        template = find_template("Premium Whole Home Design")
        before = template.model_dump()

        instantiate_from_template(template)

        assert template.model_dump() == before

    def test_non_template_rejected(self, kitchen_scope):
        draft = EstimateRecord(id="est-1", title="Draft", scope=kitchen_scope)

        with pytest.raises(InvalidTemplateError) as exc_info:
            instantiate_from_template(draft)

        assert exc_info.value.code == "INVALID_TEMPLATE"
        assert exc_info.value.details["estimate_id"] == "est-1"

    def test_every_seed_template_instantiates(self):
        for template in seed_templates():
            assert instantiate_from_template(template).sqft > 0


class TestTemplateRecords:
    def test_template_needs_template_status(self, kitchen_scope):
        with pytest.raises(ValueError):
            EstimateRecord(scope=kitchen_scope, is_template=True, status="draft")

    def test_template_cannot_be_linked(self, kitchen_scope):
        with pytest.raises(ValueError):
            EstimateRecord(
                scope=kitchen_scope, is_template=True, status="template", client_id="client-1"
            )

    def test_template_status_requires_flag(self, kitchen_scope):
        with pytest.raises(ValueError):
            EstimateRecord(scope=kitchen_scope, status="template")

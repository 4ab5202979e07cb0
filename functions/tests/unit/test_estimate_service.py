"""Tests for EstimateService orchestration."""

from decimal import Decimal

import pytest

from config.errors import (
    ConfigNotFoundError,
    EstimateError,
    InvalidMilestoneError,
    InvalidScopeError,
    InvalidStatusTransitionError,
    InvalidTemplateError,
)
from models.rate_config import RateConfig
from services.estimate_service import EstimateService
from tests.fixtures.mock_rate_configs import KITCHEN_DOC


async def _set_kitchen_rate(store, per_sqft):
    await store.save_config(RateConfig.model_validate({
        **KITCHEN_DOC, "config": {"baseRate": 2500, "perSqftRate": per_sqft},
    }))


class TestCalculate:

    @pytest.mark.asyncio
    async def test_raw_dict_scope(self, estimate_service, kitchen_scope_data):
        breakdown = await estimate_service.calculate(kitchen_scope_data)

        assert breakdown.total == Decimal("33127.50")
        assert breakdown.milestone_percentages == [Decimal("40"), Decimal("40"), Decimal("20")]

    @pytest.mark.asyncio
    async def test_caller_milestones(self, estimate_service, kitchen_scope):
        breakdown = await estimate_service.calculate(kitchen_scope, [50, 50])

        assert [m.amount for m in breakdown.milestones] == [Decimal("16563.75"), Decimal("16563.75")]

    @pytest.mark.asyncio
    async def test_invalid_scope(self, estimate_service):
        with pytest.raises(InvalidScopeError):
            await estimate_service.calculate({"sqft": -10})

    @pytest.mark.asyncio
    async def test_missing_config_propagates(self, estimate_service, kitchen_scope_data):
        with pytest.raises(ConfigNotFoundError) as exc_info:
            await estimate_service.calculate({**kitchen_scope_data, "rooms": ["Wine Cellar"]})

        assert exc_info.value.name == "Wine Cellar"

    @pytest.mark.asyncio
    async def test_uses_latest_rates(self, estimate_service, config_store, kitchen_scope):
        await _set_kitchen_rate(config_store, 30)

        breakdown = await estimate_service.calculate(kitchen_scope)

        assert breakdown.subtotal == Decimal("32800.00")

    @pytest.mark.asyncio
    async def test_settings_milestones_by_default(self, config_store, kitchen_scope):
        service = EstimateService(config_store)

        breakdown = await service.calculate(kitchen_scope)

        assert len(breakdown.milestones) in (2, 3)
        assert sum(m.amount for m in breakdown.milestones) == breakdown.total

    @pytest.mark.asyncio
    async def test_empty_milestones_rejected(self, estimate_service, estimate_repository, kitchen_scope):
        with pytest.raises(InvalidMilestoneError):
            await estimate_service.calculate(kitchen_scope, [])

        assert estimate_repository.estimates == {}


class TestCreateEstimate:

    @pytest.mark.asyncio
    async def test_creates_draft(self, estimate_service, estimate_repository, kitchen_scope_data):
        record = await estimate_service.create_estimate(
            kitchen_scope_data, title="Smith Kitchen", client_id="client-1", lead_id="lead-7"
        )

        assert record.id == "est-1"
        assert record.status == "draft"
        assert record.total == Decimal("33127.50")
        assert record.client_id == "client-1"
        assert record.calculated_at is not None
        assert estimate_repository.estimates["est-1"] == record

    @pytest.mark.asyncio
    async def test_invalid_milestones_block_creation(self, estimate_service, estimate_repository, kitchen_scope):
        with pytest.raises(InvalidMilestoneError):
            await estimate_service.create_estimate(kitchen_scope, title="x", milestone_percentages=[60, 30])

        assert estimate_repository.estimates == {}

    @pytest.mark.asyncio
    async def test_empty_milestones_block_creation(self, estimate_service, estimate_repository, kitchen_scope):
        with pytest.raises(InvalidMilestoneError):
            await estimate_service.create_estimate(kitchen_scope, title="x", milestone_percentages=[])

        assert estimate_repository.estimates == {}

    @pytest.mark.asyncio
    async def test_missing_config_blocks_creation(self, estimate_service, estimate_repository, kitchen_scope_data):
        with pytest.raises(ConfigNotFoundError):
            await estimate_service.create_estimate(
                {**kitchen_scope_data, "additionalServices": ["Feng Shui"]}, title="x"
            )

        assert estimate_repository.estimates == {}

    @pytest.mark.asyncio
    async def test_requires_repository(self, config_store, kitchen_scope):
        service = EstimateService(config_store, default_milestones=[50, 50])

        with pytest.raises(EstimateError):
            await service.create_estimate(kitchen_scope, title="x")

    @pytest.mark.asyncio
    async def test_get_missing_estimate(self, estimate_service):
        with pytest.raises(EstimateError) as exc_info:
            await estimate_service.get_estimate("est-404")

        assert exc_info.value.code == "ESTIMATE_NOT_FOUND"


class TestTemplates:

    @pytest.mark.asyncio
    async def test_save_as_template(self, estimate_service, kitchen_scope):
        template = await estimate_service.save_as_template(kitchen_scope, "Standard Kitchen")

        assert template.is_template is True
        assert template.status == "template"
        assert template.template_name == "Standard Kitchen"
        assert await estimate_service.list_templates() == [template]

    @pytest.mark.asyncio
    async def test_create_from_template_reprices(self, estimate_service, config_store, kitchen_scope):
        template = await estimate_service.save_as_template(kitchen_scope, "Standard Kitchen")
        await _set_kitchen_rate(config_store, 30)

        estimate = await estimate_service.create_from_template(
            template.id, title="Jones Kitchen", client_id="client-2"
        )

        assert template.total == Decimal("33127.50")
        assert estimate.subtotal == Decimal("32800.00")
        assert estimate.total == Decimal("34440.00")
        assert estimate.scope == template.scope
        assert estimate.is_template is False
        assert estimate.status == "draft"
        assert estimate.client_id == "client-2"

    @pytest.mark.asyncio
    async def test_template_milestones_carry_over(self, estimate_service, whole_home_scope):
        template = await estimate_service.save_as_template(whole_home_scope, "Whole Home", [50, 30, 20])

        estimate = await estimate_service.create_from_template(template.id, title="Lee Residence")

        assert estimate.milestone_percentages == [Decimal("50"), Decimal("30"), Decimal("20")]
        assert [m.amount for m in estimate.milestones] == [
            Decimal("173985.00"), Decimal("104391.00"), Decimal("69594.00"),
        ]

    @pytest.mark.asyncio
    async def test_create_from_non_template(self, estimate_service, kitchen_scope):
        draft = await estimate_service.create_estimate(kitchen_scope, title="Draft")

        with pytest.raises(InvalidTemplateError):
            await estimate_service.create_from_template(draft.id, title="Copy")

    @pytest.mark.asyncio
    async def test_empty_milestones_not_replaced_by_template_split(
        self, estimate_service, estimate_repository, kitchen_scope
    ):
        template = await estimate_service.save_as_template(kitchen_scope, "Standard Kitchen")

        with pytest.raises(InvalidMilestoneError):
            await estimate_service.create_from_template(template.id, title="x", milestone_percentages=[])

        assert list(estimate_repository.estimates) == [template.id]


class TestRecalculate:

    @pytest.mark.asyncio
    async def test_recalculate_with_new_rates(self, estimate_service, config_store, kitchen_scope):
        draft = await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen")
        await _set_kitchen_rate(config_store, 30)

        updated = await estimate_service.recalculate(draft.id)

        assert draft.total == Decimal("33127.50")
        assert updated.total == Decimal("34440.00")
        assert updated.id == draft.id
        assert updated.title == "Smith Kitchen"

    @pytest.mark.asyncio
    async def test_recalculate_with_revised_scope(self, estimate_service, kitchen_scope_data):
        draft = await estimate_service.create_estimate(kitchen_scope_data, title="Smith Kitchen")

        updated = await estimate_service.recalculate(
            draft.id, scope={**kitchen_scope_data, "additionalServices": []}
        )

        assert updated.scope.additional_services == ()
        assert updated.subtotal == draft.subtotal - Decimal("800")

    @pytest.mark.asyncio
    async def test_approved_estimate_not_repriced(self, estimate_service, kitchen_scope):
        draft = await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen")
        await estimate_service.transition_status(draft.id, "sent")
        await estimate_service.transition_status(draft.id, "approved")

        with pytest.raises(InvalidStatusTransitionError):
            await estimate_service.recalculate(draft.id)

    @pytest.mark.asyncio
    async def test_recalculate_rejects_empty_milestones(self, estimate_service, estimate_repository, kitchen_scope):
        draft = await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen")

        with pytest.raises(InvalidMilestoneError):
            await estimate_service.recalculate(draft.id, milestone_percentages=[])

        assert estimate_repository.estimates[draft.id] == draft


class TestTransitions:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", [
        ["sent"],
        ["sent", "approved"],
        ["sent", "rejected", "draft"],
        ["sent", "draft", "sent"],
    ])
    async def test_allowed_paths(self, estimate_service, kitchen_scope, path):
        draft = await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen")

        record = draft
        for status in path:
            record = await estimate_service.transition_status(draft.id, status)

        assert record.status == path[-1]
        assert record.total == draft.total

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", [
        ["approved"],
        ["template"],
        ["sent", "approved", "draft"],
        ["archived"],
    ])
    async def test_rejected_paths(self, estimate_service, kitchen_scope, path):
        draft = await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen")

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            for status in path:
                await estimate_service.transition_status(draft.id, status)

        assert exc_info.value.requested == path[-1]

    @pytest.mark.asyncio
    async def test_template_status_is_terminal(self, estimate_service, kitchen_scope):
        template = await estimate_service.save_as_template(kitchen_scope, "Standard Kitchen")

        with pytest.raises(InvalidStatusTransitionError):
            await estimate_service.transition_status(template.id, "sent")

    @pytest.mark.asyncio
    async def test_delete(self, estimate_service, estimate_repository, kitchen_scope):
        draft = await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen")

        await estimate_service.delete_estimate(draft.id)

        assert estimate_repository.estimates == {}


class TestListing:

    @pytest.mark.asyncio
    async def test_list_estimates_returns_summaries(self, estimate_service, kitchen_scope, whole_home_scope):
        await estimate_service.save_as_template(kitchen_scope, "Standard Kitchen")
        kitchen = await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen", project_id="proj-1")
        await estimate_service.create_estimate(whole_home_scope, title="Lee Residence", project_id="proj-2")

        summaries = await estimate_service.list_estimates()

        assert [s.title for s in summaries] == ["Smith Kitchen", "Lee Residence"]
        assert summaries[0].id == kitchen.id
        assert summaries[0].total == Decimal("33127.50")
        assert summaries[0].status == "draft"
        assert summaries[0].project_type == "residential"
        assert all(s.is_template is False for s in summaries)

    @pytest.mark.asyncio
    async def test_list_estimates_for_project(self, estimate_service, kitchen_scope, whole_home_scope):
        await estimate_service.create_estimate(kitchen_scope, title="Smith Kitchen", project_id="proj-1")
        await estimate_service.create_estimate(whole_home_scope, title="Lee Residence", project_id="proj-2")

        summaries = await estimate_service.list_estimates(project_id="proj-2")

        assert [s.title for s in summaries] == ["Lee Residence"]
        assert summaries[0].total == Decimal("347970.00")

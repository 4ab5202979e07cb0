"""Estimate orchestration.

Loads the active rate configs, runs the pricing engine and persists the
result as an EstimateRecord. Engine errors propagate unchanged so the
caller can block creation and show the user what is missing.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import structlog

from config.errors import (
    ConfigNotFoundError,
    EstimateError,
    ErrorCode,
    InvalidStatusTransitionError,
)
from config.settings import settings
from models.estimate import EstimateBreakdown, EstimateRecord, EstimateStatus, EstimateSummary
from services.estimate_calculator import compute_estimate
from services.rate_config_store import RateConfigStore
from services.templates import instantiate_from_template
from validators.scope_validator import parse_scope

logger = structlog.get_logger(__name__)


class EstimateService:
    """Creates, recalculates and transitions estimates.

    Args:
        config_store: Source of rate configs.
        repository: Estimate persistence (FirestoreService or compatible).
        default_milestones: Split used when a caller supplies none.
    """

    def __init__(
        self,
        config_store: RateConfigStore,
        repository: Any = None,
        default_milestones: Optional[Sequence] = None
    ):
        self.config_store = config_store
        self.repository = repository
        self.default_milestones = list(default_milestones or settings.default_milestones)

    def _require_repository(self):
        if self.repository is None:
            raise EstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message="No estimate repository configured",
            )
        return self.repository

    async def calculate(
        self,
        scope: Any,
        milestone_percentages: Optional[Sequence] = None
    ) -> EstimateBreakdown:
        """Price a scope against the current active configs.

        Args:
            scope: ScopeModel or raw scope dictionary.
            milestone_percentages: Optional split; defaults to settings.

        Returns:
            EstimateBreakdown.
        """
        scope = parse_scope(scope)
        snapshot = await self.config_store.load_snapshot()
        try:
            breakdown = compute_estimate(
                scope,
                snapshot,
                self.default_milestones if milestone_percentages is None else milestone_percentages,
            )
        except ConfigNotFoundError as e:
            logger.warning(
                "estimate_config_missing",
                config_type=e.config_type,
                name=e.name,
            )
            raise
        logger.info(
            "estimate_calculated",
            sqft=scope.sqft,
            rooms=len(scope.rooms),
            line_items=len(breakdown.line_items),
            subtotal=str(breakdown.subtotal),
            total=str(breakdown.total),
        )
        return breakdown

    async def create_estimate(
        self,
        scope: Any,
        title: str,
        client_id: Optional[str] = None,
        project_id: Optional[str] = None,
        lead_id: Optional[str] = None,
        milestone_percentages: Optional[Sequence] = None
    ) -> EstimateRecord:
        """Price a scope and store it as a draft estimate."""
        scope = parse_scope(scope)
        breakdown = await self.calculate(scope, milestone_percentages)
        record = EstimateRecord.from_breakdown(
            scope,
            breakdown,
            title=title,
            client_id=client_id,
            project_id=project_id,
            lead_id=lead_id,
            status=EstimateStatus.DRAFT,
            calculated_at=datetime.now(timezone.utc),
        )
        return await self._require_repository().create_estimate(record)

    async def save_as_template(
        self,
        scope: Any,
        template_name: str,
        milestone_percentages: Optional[Sequence] = None
    ) -> EstimateRecord:
        """Store a scope as a reusable template.

        The template is priced once so it can be previewed, but that
        price is never reused; estimates created from it are recomputed.
        """
        scope = parse_scope(scope)
        breakdown = await self.calculate(scope, milestone_percentages)
        record = EstimateRecord.from_breakdown(
            scope,
            breakdown,
            title=template_name,
            template_name=template_name,
            status=EstimateStatus.TEMPLATE,
            is_template=True,
            calculated_at=datetime.now(timezone.utc),
        )
        return await self._require_repository().create_estimate(record)

    async def get_estimate(self, estimate_id: str) -> EstimateRecord:
        """Fetch an estimate or raise ESTIMATE_NOT_FOUND."""
        record = await self._require_repository().get_estimate(estimate_id)
        if record is None:
            raise EstimateError(
                code=ErrorCode.ESTIMATE_NOT_FOUND,
                message=f"Estimate {estimate_id} not found",
                details={"estimate_id": estimate_id}
            )
        return record

    async def list_estimates(self, project_id: Optional[str] = None) -> List[EstimateSummary]:
        """Summaries of non-template estimates, optionally for one project."""
        records = await self._require_repository().list_estimates(project_id)
        logger.info("estimates_listed", project_id=project_id, count=len(records))
        return [EstimateSummary.from_record(record) for record in records]

    async def list_templates(self) -> List[EstimateRecord]:
        return await self._require_repository().list_templates()

    async def create_from_template(
        self,
        template_id: str,
        title: str,
        client_id: Optional[str] = None,
        project_id: Optional[str] = None,
        lead_id: Optional[str] = None,
        milestone_percentages: Optional[Sequence] = None
    ) -> EstimateRecord:
        """Start a new draft from a template's scope, priced at current rates."""
        template = await self.get_estimate(template_id)
        scope = instantiate_from_template(template)
        logger.info("estimate_from_template", template_id=template_id, title=title)
        return await self.create_estimate(
            scope,
            title=title,
            client_id=client_id,
            project_id=project_id,
            lead_id=lead_id,
            milestone_percentages=(
                template.milestone_percentages or None
                if milestone_percentages is None else milestone_percentages
            ),
        )

    async def recalculate(
        self,
        estimate_id: str,
        scope: Any = None,
        milestone_percentages: Optional[Sequence] = None
    ) -> EstimateRecord:
        """Reprice an estimate, optionally with a revised scope.

        Produces a new record value with a fresh scope snapshot and totals;
        approved estimates are not repriced.
        """
        record = await self.get_estimate(estimate_id)
        if record.status == EstimateStatus.APPROVED.value:
            raise InvalidStatusTransitionError(record.status, "recalculate", estimate_id)

        new_scope = parse_scope(scope) if scope is not None else record.scope
        percentages = milestone_percentages
        if percentages is None:
            percentages = record.milestone_percentages or None
        breakdown = await self.calculate(new_scope, percentages)
        updated = record.with_breakdown(
            new_scope, breakdown, calculated_at=datetime.now(timezone.utc)
        )
        logger.info(
            "estimate_recalculated",
            estimate_id=estimate_id,
            previous_total=str(record.total),
            total=str(updated.total),
        )
        return await self._require_repository().update_estimate(updated)

    async def transition_status(self, estimate_id: str, status: str) -> EstimateRecord:
        """Move an estimate to a new status.

        Raises:
            InvalidStatusTransitionError: If the move is not allowed.
        """
        record = await self.get_estimate(estimate_id)
        try:
            new_status = EstimateStatus(status).value
        except ValueError:
            raise InvalidStatusTransitionError(record.status, str(status), estimate_id) from None
        if not record.can_transition_to(new_status):
            logger.warning(
                "estimate_status_rejected",
                estimate_id=estimate_id,
                current=record.status,
                requested=new_status,
            )
            raise InvalidStatusTransitionError(record.status, new_status, estimate_id)

        updated = record.model_copy(update={"status": new_status})
        logger.info(
            "estimate_status_changed",
            estimate_id=estimate_id,
            previous=record.status,
            status=new_status,
        )
        return await self._require_repository().update_estimate(updated)

    async def delete_estimate(self, estimate_id: str) -> None:
        """Delete an estimate; only ever done on explicit request."""
        await self._require_repository().delete_estimate(estimate_id)

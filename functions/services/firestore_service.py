"""Firestore service for the estimate engine.

Provides the Firestore-backed rate config store and CRUD operations for
estimate documents. Documents use camelCase keys; models are converted
with their aliases here and nowhere else.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
import inspect
import structlog

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from config.errors import EstimateError, ErrorCode
from config.settings import settings
from models.estimate import EstimateRecord
from models.rate_config import RateConfig
from services.rate_config_store import RateConfigStore

logger = structlog.get_logger(__name__)


class FirestoreService(RateConfigStore):
    """Service for Firestore operations.

    Handles rate config records and estimate documents.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    def __init__(self, db=None, rate_config_collection: Optional[str] = None,
                 estimate_collection: Optional[str] = None):
        """Initialize FirestoreService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
            rate_config_collection: Collection for rate configs.
            estimate_collection: Collection for estimates.
        """
        self._db = db
        self.collection_rate_configs = rate_config_collection or settings.rate_config_collection
        self.collection_estimates = estimate_collection or settings.estimate_collection

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    # ------------------------------------------------------------------
    # Rate configs
    # ------------------------------------------------------------------

    @staticmethod
    def _config_from_doc(doc) -> RateConfig:
        return RateConfig.model_validate({**(doc.to_dict() or {}), "id": doc.id})

    async def get_configs(self) -> List[RateConfig]:
        """Fetch every rate config document, active or not.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        try:
            docs = self.db.collection(self.collection_rate_configs).stream()
            return [self._config_from_doc(doc) for doc in docs]
        except Exception as e:
            logger.error("rate_configs_get_failed", error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get rate configs: {str(e)}",
            ) from e

    async def get_active_configs(self) -> List[RateConfig]:
        """Fetch active rate config documents.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        try:
            query = self.db.collection(self.collection_rate_configs).where(
                filter=FieldFilter("isActive", "==", True)
            )
            return [self._config_from_doc(doc) for doc in query.stream()]
        except Exception as e:
            logger.error("rate_configs_get_failed", active_only=True, error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get active rate configs: {str(e)}",
            ) from e

    async def save_config(self, config: RateConfig) -> RateConfig:
        """Create or replace a rate config document.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        try:
            coll_ref = self.db.collection(self.collection_rate_configs)
            doc_ref = coll_ref.document(config.id) if config.id else coll_ref.document()

            data = config.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"id"})
            data["updatedAt"] = firestore.SERVER_TIMESTAMP
            if config.created_at is None:
                data["createdAt"] = firestore.SERVER_TIMESTAMP
            else:
                data["createdAt"] = config.created_at

            await self._maybe_await(doc_ref.set(data))
            logger.info(
                "rate_config_saved",
                config_id=doc_ref.id,
                config_type=config.config_type,
                name=config.name,
                is_active=config.is_active,
            )

            now = datetime.now(timezone.utc)
            return config.model_copy(update={
                "id": doc_ref.id,
                "created_at": config.created_at or now,
                "updated_at": now,
            })

        except Exception as e:
            logger.error("rate_config_save_failed", name=config.name, error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to save rate config: {str(e)}",
                details={"config_type": config.config_type, "name": config.name}
            ) from e

    # ------------------------------------------------------------------
    # Estimates
    # ------------------------------------------------------------------

    @staticmethod
    def _estimate_to_document(record: EstimateRecord) -> Dict[str, Any]:
        """Camel-cased document; timestamps stay native Firestore timestamps."""
        data = record.to_firestore_dict()
        data["updatedAt"] = firestore.SERVER_TIMESTAMP
        data["createdAt"] = record.created_at or firestore.SERVER_TIMESTAMP
        if record.calculated_at is not None:
            data["calculatedAt"] = record.calculated_at
        return data

    async def create_estimate(self, record: EstimateRecord) -> EstimateRecord:
        """Create a new estimate document.

        Args:
            record: Estimate to store; an id is assigned when missing.

        Returns:
            The stored record with its id.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        try:
            coll_ref = self.db.collection(self.collection_estimates)
            doc_ref = coll_ref.document(record.id) if record.id else coll_ref.document()

            await self._maybe_await(doc_ref.set(self._estimate_to_document(record)))
            logger.info(
                "estimate_created",
                estimate_id=doc_ref.id,
                status=record.status,
                is_template=record.is_template,
                total=str(record.total),
            )

            now = datetime.now(timezone.utc)
            return record.model_copy(update={
                "id": doc_ref.id,
                "created_at": record.created_at or now,
                "updated_at": now,
            })

        except Exception as e:
            logger.error("estimate_create_failed", estimate_id=record.id, error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to create estimate: {str(e)}",
                details={"estimate_id": record.id}
            ) from e

    async def get_estimate(self, estimate_id: str) -> Optional[EstimateRecord]:
        """Fetch estimate document by ID.

        Args:
            estimate_id: The estimate document ID.

        Returns:
            Estimate record or None if not found.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(self.collection_estimates).document(estimate_id)
            doc = await self._maybe_await(doc_ref.get())

            if doc.exists:
                return EstimateRecord.model_validate({**doc.to_dict(), "id": doc.id})
            return None

        except Exception as e:
            logger.error("firestore_get_failed", estimate_id=estimate_id, error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            ) from e

    async def update_estimate(self, record: EstimateRecord) -> EstimateRecord:
        """Replace an existing estimate document with a new record value.

        Raises:
            EstimateError: If the record has no id or Firestore fails.
        """
        if not record.id:
            raise EstimateError(
                code=ErrorCode.ESTIMATE_NOT_FOUND,
                message="Cannot update an estimate without an id",
            )
        try:
            doc_ref = self.db.collection(self.collection_estimates).document(record.id)
            await self._maybe_await(doc_ref.set(self._estimate_to_document(record)))
            logger.info("estimate_updated", estimate_id=record.id, status=record.status)
            return record.model_copy(update={"updated_at": datetime.now(timezone.utc)})

        except Exception as e:
            logger.error("firestore_update_failed", estimate_id=record.id, error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to update estimate: {str(e)}",
                details={"estimate_id": record.id}
            ) from e

    async def list_estimates(self, project_id: Optional[str] = None) -> List[EstimateRecord]:
        """List non-template estimates, optionally for one project.

        Args:
            project_id: Only estimates linked to this project.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        if project_id is not None:
            field_filter = FieldFilter("projectId", "==", project_id)
        else:
            field_filter = FieldFilter("isTemplate", "==", False)
        try:
            query = self.db.collection(self.collection_estimates).where(filter=field_filter)
            return [
                EstimateRecord.model_validate({**(doc.to_dict() or {}), "id": doc.id})
                for doc in query.stream()
            ]
        except Exception as e:
            logger.error("estimates_list_failed", project_id=project_id, error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to list estimates: {str(e)}",
                details={"project_id": project_id}
            ) from e

    async def list_templates(self) -> List[EstimateRecord]:
        """List template estimates.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        try:
            query = self.db.collection(self.collection_estimates).where(
                filter=FieldFilter("isTemplate", "==", True)
            )
            return [
                EstimateRecord.model_validate({**(doc.to_dict() or {}), "id": doc.id})
                for doc in query.stream()
            ]
        except Exception as e:
            logger.error("templates_list_failed", error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to list templates: {str(e)}",
            ) from e

    async def delete_estimate(self, estimate_id: str) -> None:
        """Delete an estimate document.

        Args:
            estimate_id: The estimate document ID.

        Raises:
            EstimateError: If Firestore operation fails.
        """
        try:
            estimate_ref = self.db.collection(self.collection_estimates).document(estimate_id)
            await self._maybe_await(estimate_ref.delete())
            logger.info("estimate_deleted", estimate_id=estimate_id)

        except Exception as e:
            logger.error("estimate_delete_failed", estimate_id=estimate_id, error=str(e))
            raise EstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to delete estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            ) from e

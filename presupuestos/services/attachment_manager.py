"""
Attachment Lifecycle Service
Sequences budget and attachment operations across the record store and the
object store so attachment rows and blobs stay consistent.

Ordering rules:
- write: blob upload completes before its row is inserted
- remove: blob is deleted before its row
- budget delete: all blobs in one batched request, then the budget row

Nothing is retried or rolled back. Files persisted before a failure in a
multi-file batch stay persisted and are reported on the raised error.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from presupuestos.exceptions import (
    AppException,
    AttachmentWriteError,
    NotFoundError,
    RecordDeleteError,
    RecordReadError,
    RecordWriteError,
    StorageDeleteError,
    StorageReadError,
    StorageWriteError,
)
from presupuestos.logging_config import get_logger
from presupuestos.schemas.attachment import AttachmentResponse, AttachmentUpload
from presupuestos.schemas.budget import BudgetCreate, BudgetResponse, BudgetUpdate
from presupuestos.services.object_store import ObjectStore
from presupuestos.services.record_store import ATTACHMENTS, BUDGETS, RecordStore
from presupuestos.utils.storage_paths import build_storage_path

logger = get_logger(__name__)

UPLOAD_STEP = "upload"
RECORD_STEP = "record"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FileOutcome:
    """Result of persisting a single file: either an attachment or the failing step"""
    index: int
    file_name: str
    attachment: Optional[AttachmentResponse] = None
    step: Optional[str] = None
    error: Optional[AppException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AttachmentManager:
    """
    Service coordinating budget records and their attachment blobs.

    Both stores are injected so tests and deployments can choose their own
    backends.
    """

    def __init__(
        self,
        record_store: RecordStore,
        object_store: ObjectStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.records = record_store
        self.objects = object_store
        self.clock = clock
        self._last_timestamp_ms = 0

    def _next_timestamp_ms(self) -> int:
        # Strictly increasing, so two files in the same millisecond get distinct keys
        timestamp_ms = int(self.clock().timestamp() * 1000)
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms
        return timestamp_ms

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    async def create_budget_with_attachments(
        self,
        fields: BudgetCreate,
        files: Sequence[AttachmentUpload] = (),
    ) -> BudgetResponse:
        """
        Insert a budget, then store each file in the order given.

        Raises:
            RecordWriteError: budget insert failed, no file was uploaded
            AttachmentWriteError: a file failed; earlier files stay stored
        """
        try:
            row = await self.records.insert(BUDGETS, fields.model_dump())
        except Exception as e:
            logger.error(f"Error creating budget '{fields.title}': {e}")
            raise RecordWriteError("Could not save the budget", cause=e) from e

        budget = BudgetResponse.model_validate(row)
        logger.info(f"Created budget {budget.id}")

        if files:
            await self.add_attachments(budget.id, files)
        return budget

    async def get_budget(self, budget_id: str) -> BudgetResponse:
        rows = await self._select(BUDGETS, {"id": budget_id})
        if not rows:
            raise NotFoundError("Budget not found")
        return BudgetResponse.model_validate(rows[0])

    async def list_budgets(self) -> List[BudgetResponse]:
        """All budgets, newest first"""
        rows = await self._select(BUDGETS, order_by="created_at", descending=True)
        return [BudgetResponse.model_validate(row) for row in rows]

    async def update_budget(self, budget_id: str, fields: BudgetUpdate) -> BudgetResponse:
        """
        Overwrite title, details and deadline and refresh ``updated_at``.

        A missing budget is detected by the store rejecting the update.
        """
        values = fields.model_dump()
        values["updated_at"] = self.clock()
        try:
            await self.records.update(BUDGETS, budget_id, values)
        except NotFoundError:
            logger.warning(f"Update of missing budget {budget_id}")
            raise NotFoundError("Budget not found")
        except Exception as e:
            logger.error(f"Error updating budget {budget_id}: {e}")
            raise RecordWriteError("Could not save the changes", cause=e) from e

        logger.info(f"Updated budget {budget_id}")
        return await self.get_budget(budget_id)

    async def delete_budget_cascade(self, budget_id: str) -> None:
        """
        Delete a budget together with every attachment blob and row.

        Blobs go first in a single batched request. If that fails nothing
        else is touched. If the budget row delete then fails, its blobs are
        already gone and the rows linger until cleaned up by hand.
        """
        attachments = await self.list_attachments(budget_id)
        paths = [attachment.storage_path for attachment in attachments]

        if paths:
            try:
                await self.objects.delete_many(paths)
            except Exception as e:
                logger.error(f"Error removing {len(paths)} files of budget {budget_id}: {e}")
                raise StorageDeleteError("Could not delete the budget files", cause=e) from e
            logger.info(f"Removed {len(paths)} files of budget {budget_id}")

        if not self.records.cascades_deletes:
            for attachment in attachments:
                await self._delete_row(ATTACHMENTS, attachment.id, "Could not delete the attachment records")

        await self._delete_row(BUDGETS, budget_id, "Could not delete the budget")
        logger.info(f"Deleted budget {budget_id}")

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    async def add_attachments(
        self,
        budget_id: str,
        files: Sequence[AttachmentUpload],
    ) -> List[AttachmentResponse]:
        """
        Store files one after another, each upload followed by its row insert.

        Raises:
            AttachmentWriteError: identifies the failing file and step, and
                carries the attachments persisted before it
        """
        persisted: List[AttachmentResponse] = []
        for index, upload in enumerate(files):
            outcome = await self._persist_file(budget_id, index, upload)
            if not outcome.ok:
                raise AttachmentWriteError(
                    index=outcome.index,
                    file_name=outcome.file_name,
                    step=outcome.step,
                    cause=outcome.error,
                    persisted=persisted,
                    budget_id=budget_id,
                ) from outcome.error
            persisted.append(outcome.attachment)
        return persisted

    async def _persist_file(self, budget_id: str, index: int, upload: AttachmentUpload) -> FileOutcome:
        storage_path = build_storage_path(budget_id, self._next_timestamp_ms(), upload.file_name)

        try:
            await self.objects.put(storage_path, upload.content, upload.mime_type)
        except Exception as e:
            logger.error(f"Error uploading file #{index} '{upload.file_name}' for budget {budget_id}: {e}")
            return FileOutcome(
                index=index,
                file_name=upload.file_name,
                step=UPLOAD_STEP,
                error=StorageWriteError(f"Could not upload '{upload.file_name}'", cause=e),
            )

        try:
            row = await self.records.insert(ATTACHMENTS, {
                "budget_id": budget_id,
                "file_name": upload.file_name,
                "storage_path": storage_path,
                "mime_type": upload.mime_type,
                "size_bytes": upload.size_bytes,
            })
        except Exception as e:
            # The blob stays behind; it is unreferenced until cleaned up by hand
            logger.error(f"Error recording file #{index} '{upload.file_name}' at {storage_path}: {e}")
            return FileOutcome(
                index=index,
                file_name=upload.file_name,
                step=RECORD_STEP,
                error=RecordWriteError(f"Could not save '{upload.file_name}'", cause=e),
            )

        attachment = AttachmentResponse.model_validate(row)
        logger.info(f"Stored attachment {attachment.id} at {storage_path} ({attachment.size_bytes} bytes)")
        return FileOutcome(index=index, file_name=upload.file_name, attachment=attachment)

    async def get_attachment(self, attachment_id: str) -> AttachmentResponse:
        rows = await self._select(ATTACHMENTS, {"id": attachment_id})
        if not rows:
            raise NotFoundError("Attachment not found")
        return AttachmentResponse.model_validate(rows[0])

    async def list_attachments(self, budget_id: str) -> List[AttachmentResponse]:
        """Attachments of a budget, oldest first; empty when there are none"""
        rows = await self._select(ATTACHMENTS, {"budget_id": budget_id}, order_by="created_at")
        return [AttachmentResponse.model_validate(row) for row in rows]

    async def remove_attachment(self, attachment: AttachmentResponse) -> None:
        """
        Delete an attachment's blob, then its row.

        The row only counts as removed when both steps succeeded. Removing
        an attachment twice fails with ``RecordDeleteError``.
        """
        try:
            await self.objects.delete_many([attachment.storage_path])
        except Exception as e:
            logger.error(f"Error removing file {attachment.storage_path}: {e}")
            raise StorageDeleteError("Could not delete the file", cause=e) from e

        await self._delete_row(ATTACHMENTS, attachment.id, "Could not delete the attachment")
        logger.info(f"Removed attachment {attachment.id}")

    async def download_attachment(self, attachment: AttachmentResponse) -> bytes:
        try:
            return await self.objects.get(attachment.storage_path)
        except NotFoundError:
            logger.warning(f"File missing for attachment {attachment.id} at {attachment.storage_path}")
            raise NotFoundError("File not found")
        except Exception as e:
            logger.error(f"Error downloading {attachment.storage_path}: {e}")
            raise StorageReadError("Could not download the file", cause=e) from e

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    async def _select(self, table: str, filters=None, order_by=None, descending=False) -> List[dict]:
        try:
            return await self.records.select(table, filters, order_by=order_by, descending=descending)
        except Exception as e:
            logger.error(f"Error reading {table}: {e}")
            raise RecordReadError(cause=e) from e

    async def _delete_row(self, table: str, row_id: str, detail: str) -> None:
        try:
            await self.records.delete(table, row_id)
        except Exception as e:
            logger.error(f"Error deleting {table} row {row_id}: {e}")
            raise RecordDeleteError(detail, cause=e) from e

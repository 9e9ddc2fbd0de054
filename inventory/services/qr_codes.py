"""
QR code ledger.

Codes are generated in batches for printing ahead of time, then claimed by
at most one box each. Releasing a code puts it back into the pool.
"""
import logging

from ..constants import QR_BATCH_MAX, QR_BATCH_MIN
from ..exceptions import InvalidInput, InvalidQuantity, NotFound, QrCodeAlreadyAssigned
from ..models import QrCode, QrStatus
from ..utils import generate_qr_short_code, normalize_qr_short_code, to_uuid
from .base import StoreComponent

logger = logging.getLogger(__name__)


class QrCodeLedger(StoreComponent):

    def _codes(self):
        return QrCode.objects.using(self.using)

    def generate_batch(self, ctx, quantity) -> list[QrCode]:
        """Create ``quantity`` unassigned codes, all or nothing."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity(minimum=QR_BATCH_MIN, maximum=QR_BATCH_MAX)
        if not QR_BATCH_MIN <= quantity <= QR_BATCH_MAX:
            raise InvalidQuantity(minimum=QR_BATCH_MIN, maximum=QR_BATCH_MAX)

        def build():
            return QrCode(workspace=ctx.workspace, short_code=generate_qr_short_code())

        with self.atomic():
            codes = [self.insert_with_unique_code(build) for _ in range(quantity)]

        logger.info(f"Generated {quantity} QR code(s) in workspace {ctx.workspace_id}")
        return codes

    def list_codes(self, ctx, status: str | None = None) -> list[QrCode]:
        qs = self._codes().filter(workspace_id=ctx.workspace_id).select_related("box")
        if status:
            if status not in QrStatus.values:
                raise InvalidInput(
                    "Unknown QR code status.", fields={"status": [f"Choose one of: {', '.join(QrStatus.values)}."]}
                )
            qs = qs.filter(status=status)
        return list(qs)

    def resolve(self, short_code: str) -> QrCode:
        """Look a scanned code up across all workspaces. Malformed input is simply not found."""
        code = normalize_qr_short_code(short_code)
        if code is None:
            raise NotFound("QR code not found.")
        qr_code = self._codes().select_related("workspace", "box", "box__location").filter(short_code=code).first()
        if qr_code is None:
            raise NotFound("QR code not found.")
        return qr_code

    def get_claimable(self, ctx, qr_code_id) -> QrCode:
        """
        Pre-check that a code of this workspace is free.

        The real guarantee comes from ``assign``; this only gives an early
        and specific error.
        """
        pk = to_uuid(qr_code_id)
        qr_code = self._codes().filter(workspace_id=ctx.workspace_id, pk=pk).first() if pk else None
        if qr_code is None:
            raise NotFound("QR code not found.")
        if qr_code.status != QrStatus.GENERATED or qr_code.box_id is not None:
            raise QrCodeAlreadyAssigned()
        return qr_code

    def assign(self, qr_code_id, box) -> None:
        """
        Claim a code for ``box`` with a single conditional update.

        Of two concurrent claims on the same code exactly one matches the
        ``generated`` filter; the other updates nothing and raises
        QrCodeAlreadyAssigned, rolling back its enclosing transaction.
        """
        claimed = (
            self._codes()
            .filter(pk=qr_code_id, workspace_id=box.workspace_id, status=QrStatus.GENERATED, box__isnull=True)
            .update(status=QrStatus.ASSIGNED, box=box)
        )
        if claimed == 0:
            logger.info(f"QR code {qr_code_id} could not be claimed for box {box.pk}: already assigned")
            raise QrCodeAlreadyAssigned()
        logger.info(f"QR code {qr_code_id} assigned to box {box.pk}")

    def release(self, box) -> bool:
        """Return the box's code, if any, to the generated pool."""
        released = self._codes().filter(box=box).update(status=QrStatus.GENERATED, box=None)
        if released:
            logger.info(f"QR code released from box {box.pk}")
        return bool(released)

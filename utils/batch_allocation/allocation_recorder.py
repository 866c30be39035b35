"""
Batch Allocation Recorder
=========================
Writes allocation events into a batch's per-size ledger.

For the matched (variant type, color, size) entry of a batch:
- back-fills `originalQuantity` on first use (remaining + this allocation)
- adds the quantity to the running `allocated` counter
- appends an immutable event to `allocationLog`

By default stock `quantity` is not touched; the caller owns stock movements.
With `decrement_stock=True` the recorder checks the remaining quantity,
lowers it and records the event in the same write.
The read and the write share one transaction and, unless disabled, the
batch row is locked for its duration.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy.engine import Engine

from utils.config import config
from .ledger_data import BatchInventoryData
from .ledger_models import AllocationRequest, BatchAllocationEvent, as_records, to_number
from .ledger_validators import BatchAllocationValidator

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Result of a ledger operation"""
    success: bool
    message: str
    data: Dict = None
    errors: List[str] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []
        if self.data is None:
            self.data = {}


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def find_item(items: List[Dict], variant_type: str, color: str) -> Optional[Dict]:
    """First item whose variant type and color match exactly"""
    for item in as_records(items):
        if item.get('variantType') == variant_type and item.get('color') == color:
            return item
    return None


def find_size(item: Dict, size: str) -> Optional[Dict]:
    for entry in as_records(item.get('sizes')):
        if entry.get('size') == size:
            return entry
    return None


class BatchAllocationRecorder:
    """Records batch -> product allocations"""

    def __init__(
        self,
        engine: Optional[Engine] = None,
        strict_once: Optional[bool] = None,
        lock_batch: Optional[bool] = None
    ):
        self.data = BatchInventoryData(engine)
        self.engine = self.data.engine
        self.validator = BatchAllocationValidator()

        if strict_once is None:
            strict_once = config.get_app_setting('STRICT_ONCE_ALLOCATION', False)
        if lock_batch is None:
            lock_batch = config.get_app_setting('LOCK_BATCH_ON_ALLOCATE', True)
        self.strict_once = strict_once
        self.lock_batch = lock_batch

    def record_allocation(
        self,
        batch_id: str,
        allocation: Union[AllocationRequest, Mapping[str, Any]],
        decrement_stock: bool = False
    ) -> bool:
        """
        Record an allocation against a batch.

        Returns False (never raises) when the batch, item or size is missing,
        the request is invalid, stock is short (with `decrement_stock`), or the
        store fails.
        """
        return self.record_allocation_detailed(batch_id, allocation, decrement_stock).success

    def record_allocation_detailed(
        self,
        batch_id: str,
        allocation: Union[AllocationRequest, Mapping[str, Any]],
        decrement_stock: bool = False
    ) -> OperationResult:
        """Record an allocation and report what happened"""
        if isinstance(allocation, AllocationRequest):
            request = allocation
        else:
            request = AllocationRequest.from_dict(allocation)

        validation = self.validator.validate_allocation_request(request, strict_once=self.strict_once)
        if not validation.is_valid:
            logger.warning(f"Rejected allocation for batch {batch_id}: {'; '.join(validation.errors)}")
            return OperationResult(
                success=False,
                message="Validation failed",
                errors=validation.errors
            )

        try:
            with self.engine.begin() as conn:
                batch = self.data.get_batch(batch_id, conn=conn, for_update=self.lock_batch)
                if batch is None:
                    logger.warning(f"Batch {batch_id} not found for allocation recording")
                    return OperationResult(
                        success=False,
                        message="Batch not found",
                        errors=[f"Batch {batch_id} not found"]
                    )

                # Work on a copy; nothing is kept unless the write succeeds
                items = copy.deepcopy(batch.get('items') or [])

                item = find_item(items, request.variant_type, request.color)
                if item is None:
                    logger.warning(
                        f"Item {request.variant_type} {request.color} not found in batch {batch_id}"
                    )
                    return OperationResult(
                        success=False,
                        message="Item not found",
                        errors=[f"Item {request.variant_type} {request.color} not found in batch"]
                    )

                size_entry = find_size(item, request.size)
                if size_entry is None:
                    logger.warning(
                        f"Size {request.size} not found in {request.variant_type} {request.color} "
                        f"of batch {batch_id}"
                    )
                    return OperationResult(
                        success=False,
                        message="Size not found",
                        errors=[f"Size {request.size} not found in item"]
                    )

                log = size_entry.get('allocationLog') or []

                if self.strict_once and any(
                    entry.get('idempotencyKey') == request.idempotency_key for entry in log
                ):
                    logger.info(
                        f"Allocation {request.idempotency_key} already recorded on batch {batch_id}"
                    )
                    return OperationResult(
                        success=True,
                        message="Allocation already recorded",
                        data={'duplicate': True}
                    )

                remaining = to_number(size_entry.get('quantity'))
                if decrement_stock:
                    if request.quantity > remaining:
                        logger.warning(
                            f"Insufficient stock for {request.quantity} x {request.variant_type} "
                            f"{request.color} {request.size} in batch {batch_id}: {remaining} left"
                        )
                        return OperationResult(
                            success=False,
                            message="Insufficient stock",
                            errors=[f"Only {remaining} units of size {request.size} remain"]
                        )
                    remaining -= request.quantity
                    size_entry['quantity'] = remaining

                # remaining here is the stock left after this allocation
                if size_entry.get('originalQuantity') is None:
                    size_entry['originalQuantity'] = remaining + request.quantity

                size_entry['allocated'] = to_number(size_entry.get('allocated')) + request.quantity

                event = BatchAllocationEvent.from_request(request, allocated_at=_utc_timestamp())
                log.append(event.to_document())
                size_entry['allocationLog'] = log

                self.data.update_batch_items(batch_id, items, conn=conn)

        except Exception as e:
            logger.error(f"Error recording batch allocation on {batch_id}: {e}")
            return OperationResult(
                success=False,
                message="Failed to record batch allocation",
                errors=[str(e)]
            )

        logger.info(
            f"✅ Batch allocation recorded: {request.quantity} x {request.variant_type} "
            f"{request.color} {request.size} from {batch_id} to product {request.product_id}"
        )

        return OperationResult(
            success=True,
            message=f"Allocated {request.quantity} units to {request.product_name or request.product_id}",
            data={
                'batch_id': batch_id,
                'event': event,
                'allocated': size_entry['allocated'],
                'original_quantity': size_entry['originalQuantity'],
                'remaining': size_entry.get('quantity'),
                'warnings': validation.warnings
            }
        )

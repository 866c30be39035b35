"""
Batch Allocation Validators
===========================
Validation rules applied before an allocation is written to a batch.
"""

import logging
from typing import List
from dataclasses import dataclass, field

from .ledger_models import AllocationRequest

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of validation check"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str):
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str):
        self.warnings.append(message)


class BatchAllocationValidator:
    """Validator for batch allocation requests"""

    REQUIRED_FIELDS = {
        'product_id': 'Product',
        'variant_type': 'Variant type',
        'color': 'Color',
        'size': 'Size',
    }

    def validate_allocation_request(
        self,
        request: AllocationRequest,
        strict_once: bool = False
    ) -> ValidationResult:
        """
        Validate an allocation request.

        Rules:
        1. Product, variant type, color and size must be present
        2. Quantity must be a positive whole number
        3. In strict-once mode an idempotency key is mandatory
        """
        result = ValidationResult(is_valid=True)

        for attr, label in self.REQUIRED_FIELDS.items():
            value = getattr(request, attr)
            if value is None or (isinstance(value, str) and not value.strip()):
                result.add_error(f"{label} is required")

        qty = request.quantity
        if isinstance(qty, bool) or not isinstance(qty, int):
            result.add_error(f"Quantity must be a whole number, got {qty!r}")
        elif qty <= 0:
            result.add_error(f"Quantity must be greater than 0, got {qty}")

        if strict_once and not request.idempotency_key:
            result.add_error("An idempotency key is required when strict-once allocation is enabled")

        if not request.school_id:
            result.add_warning("No school attached to this allocation")

        if not result.is_valid:
            logger.debug(f"Allocation request for product {request.product_id} rejected: {result.errors}")

        return result

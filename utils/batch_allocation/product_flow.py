"""
Product Flow
============
Traces stock from a batch to the products it was allocated to, and from
those products to students.

Product stock and student distribution come from the product's own
variants: `sizes` for on-hand stock and `allocationHistory` for the
product -> student ledger. Neither is limited to the units that came from
this batch.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .batch_summary import summarize_batch
from .ledger_models import (
    BatchFlowNode,
    ProductFlow,
    ProductFlowNode,
    StudentAllocationEvent,
    StudentAllocationRow,
    as_records,
    to_number,
)

UNKNOWN_STUDENT = 'Unknown Student'


def _find_product(products: List[Mapping], product_id) -> Optional[Mapping]:
    for product in products:
        if product.get('id') == product_id:
            return product
    return None


def _student_names(students: Optional[Iterable[Mapping]]) -> Dict[Any, str]:
    names = {}
    for student in as_records(list(students or [])):
        names.setdefault(student.get('id'), student.get('name'))
    return names


def compose_product_flow(
    batch: Optional[Mapping[str, Any]],
    products: Optional[Iterable[Mapping]] = None,
    students: Optional[Iterable[Mapping]] = None
) -> Optional[ProductFlow]:
    """Build the batch -> product -> student flow, or None without batch items"""
    if not isinstance(batch, Mapping) or batch.get('items') is None:
        return None

    summary = summarize_batch(batch)
    products = as_records(list(products or []))
    names = _student_names(students)

    flow = ProductFlow(
        batch=BatchFlowNode(
            id=batch.get('id'),
            name=batch.get('name'),
            total_items=summary.total_original,
            allocated_items=summary.total_allocated,
            unallocated_items=summary.total_unallocated,
            allocation_rate=summary.allocation_rate,
        ),
        unallocated=summary.unallocated_items,
    )

    for group in summary.allocations_by_product:
        node = ProductFlowNode(
            product_id=group.product_id,
            product_name=group.product_name,
            school_id=group.school_id,
            school_name=group.school_name,
            total_quantity=group.total_quantity,
            allocations=group.allocations,
        )

        product = _find_product(products, group.product_id)
        for variant in as_records((product or {}).get('variants')):
            for size in as_records(variant.get('sizes')):
                node.current_stock += to_number(size.get('quantity'))

            for entry in as_records(variant.get('allocationHistory')):
                event = StudentAllocationEvent.from_document(entry)
                node.distributed_to_students += event.quantity
                node.student_allocations.append(StudentAllocationRow(
                    student_id=event.student_id,
                    student_name=names.get(event.student_id) or UNKNOWN_STUDENT,
                    size=event.size,
                    quantity=event.quantity,
                    allocated_at=event.allocated_at,
                ))

        flow.products.append(node)

    return flow

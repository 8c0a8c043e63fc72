"""Batch Planning Stage - Group image payloads under a transport budget.

Vision requests carry images as base64 data URLs, which inflate binary size
by about 4/3 plus headers. Estimates use a 1.37 factor.
"""

from typing import Sequence

from docverify.config import settings
from docverify.models import RecognitionBatch

BASE64_INFLATION_PERCENT = 137


def estimate_transport_bytes(payload: bytes) -> int:
    """Estimated encoded size of one payload in a request."""
    return (len(payload) * BASE64_INFLATION_PERCENT + 99) // 100


class BatchPlanner:
    """Greedy, single-pass, order-preserving batch partitioner."""

    def __init__(self, budget: int = None):
        """Initialize planner.

        Args:
            budget: Maximum estimated bytes per batch (default from settings).
        """
        self.budget = budget or settings.batch_payload_budget

    def plan(self, payloads: Sequence[bytes]) -> list[RecognitionBatch]:
        """Partition payloads into batches.

        A new batch starts when adding the next payload would push the
        current batch over budget. A payload larger than the budget on its
        own becomes a single-item batch.
        """
        batches: list[RecognitionBatch] = []
        current: list[bytes] = []
        current_bytes = 0

        for payload in payloads:
            estimate = estimate_transport_bytes(payload)
            if current and current_bytes + estimate > self.budget:
                batches.append(RecognitionBatch(images=current, estimated_bytes=current_bytes))
                current = []
                current_bytes = 0
            current.append(payload)
            current_bytes += estimate

        if current:
            batches.append(RecognitionBatch(images=current, estimated_bytes=current_bytes))

        return batches

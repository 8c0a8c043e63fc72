"""Tests for recognition batch planning."""

from docverify.pipeline.stage_batch import BatchPlanner, estimate_transport_bytes


class TestEstimate:
    def test_inflation(self):
        assert estimate_transport_bytes(b"x" * 100) == 137
        assert estimate_transport_bytes(b"x" * 3) == 5  # ceil(4.11)


class TestBatchPlanner:
    """Tests for greedy batch partitioning."""

    def test_default_budget(self):
        assert BatchPlanner().budget == 45 * 1024 * 1024

    def test_empty_input(self):
        assert BatchPlanner(budget=1000).plan([]) == []

    def test_all_fit_in_one_batch(self):
        payloads = [b"a" * 100, b"b" * 100, b"c" * 100]
        batches = BatchPlanner(budget=1000).plan(payloads)

        assert len(batches) == 1
        assert batches[0].images == payloads
        assert batches[0].estimated_bytes == 411

    def test_split_preserves_order_and_budget(self):
        """Concatenating batches gives back the input; each batch fits the budget."""
        payloads = [bytes([i]) * 300 for i in range(7)]
        batches = BatchPlanner(budget=1000).plan(payloads)

        assert [img for b in batches for img in b.images] == payloads
        assert all(b.estimated_bytes <= 1000 for b in batches)
        assert [b.size for b in batches] == [2, 2, 2, 1]

    def test_oversized_payload_alone(self):
        """A payload over budget becomes its own batch."""
        small, huge = b"s" * 10, b"h" * 5000
        batches = BatchPlanner(budget=1000).plan([small, huge, small])

        assert [b.images for b in batches] == [[small], [huge], [small]]

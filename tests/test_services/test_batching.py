"""Tests for batching and progress reporting."""

import pytest

from repolens.services.batching import ProgressWindow, make_batches
from repolens.services.progress import ProgressReporter


class TestMakeBatches:
    """Test fixed-size batching."""

    def test_ordered_chunks_last_smaller(self):
        """Items keep their order and the last batch holds the remainder."""
        batches = make_batches(list(range(25)), batch_size=10)

        assert [len(b) for b in batches] == [10, 10, 5]
        assert [x for b in batches for x in b] == list(range(25))

    def test_empty_input_yields_no_batches(self):
        """No items means no batches."""
        assert make_batches([], batch_size=10) == []

    def test_rejects_non_positive_size(self):
        """A batch size below one is an error."""
        with pytest.raises(ValueError):
            make_batches([1, 2], batch_size=0)


class TestProgressWindow:
    """Test progress arithmetic inside a stage window."""

    def test_batch_progress(self):
        """Completed batches advance linearly to the window end."""
        window = ProgressWindow(42, 70)

        assert window.batch_progress(0, 4) == pytest.approx(49)
        assert window.batch_progress(3, 4) == pytest.approx(70)

    def test_file_progress_interpolates_within_batch(self):
        """Files advance between the previous and current batch boundary."""
        window = ProgressWindow(0, 100)

        assert window.file_progress(1, 0, 4, 2) == pytest.approx(50)
        assert window.file_progress(1, 2, 4, 2) == pytest.approx(75)

    def test_file_progress_is_monotonic_across_batches(self):
        """Walking every file of every batch never goes backwards."""
        window = ProgressWindow(70, 91)
        sizes = [10, 10, 3]
        values = []
        for b, size in enumerate(sizes):
            for i in range(size):
                values.append(window.file_progress(b, i, size, len(sizes)))
            values.append(window.batch_progress(b, len(sizes)))

        assert values == sorted(values)
        assert values[-1] == pytest.approx(91)

    def test_invalid_window(self):
        """Windows outside 0-100 or reversed are rejected."""
        with pytest.raises(ValueError):
            ProgressWindow(50, 20)
        with pytest.raises(ValueError):
            ProgressWindow(0, 120)


class TestProgressReporter:
    """Test the monotonic, best-effort reporter."""

    @pytest.mark.asyncio
    async def test_never_goes_backwards(self, sink):
        """Lower values are raised to the highest value already emitted."""
        reporter = ProgressReporter(sink, "conn-1")

        await reporter.report(40, "a")
        await reporter.report(30, "b")
        await reporter.report(55.9, "c")

        assert sink.percentages == [40, 40, 55]
        assert all(cid == "conn-1" for cid, _, _ in sink.events)

    @pytest.mark.asyncio
    async def test_clamps_into_range(self, sink):
        """Values are clamped into [0, 100]."""
        reporter = ProgressReporter(sink)

        await reporter.report(-5, "low")
        await reporter.report(150, "high")

        assert sink.percentages == [0, 100]

    @pytest.mark.asyncio
    async def test_missing_sink_is_noop(self):
        """Without a sink the event is still returned."""
        event = await ProgressReporter().report(12, "hello")

        assert event.percentage == 12
        assert event.message == "hello"

    @pytest.mark.asyncio
    async def test_sink_failure_is_swallowed(self, failing_sink):
        """A failing sink does not break reporting."""
        reporter = ProgressReporter(failing_sink)

        event = await reporter.report(10, "still going")

        assert event.percentage == 10
        assert reporter.current == 10

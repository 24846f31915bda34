"""Tests for the status channel."""

import logging

from melodex.library_scanner.models import StatusMessage
from melodex.library_scanner.notifications import LoggingStatusSink, RecordingStatusSink, StatusSink, notify


class TestNotify:
    """Test fire-and-forget posting."""

    def test_posts_message(self):
        """Test that notify builds a StatusMessage."""
        sink = RecordingStatusSink()
        notify(sink, "started-scan", "Starting scanning files")
        assert sink.messages == [StatusMessage("started-scan", "Starting scanning files", "info")]

    def test_sink_errors_are_swallowed(self, caplog):
        """Test that a failing sink never raises into the pipeline."""

        class BrokenSink(StatusSink):
            def post(self, message):
                raise ConnectionError("ui closed")

        with caplog.at_level(logging.WARNING):
            notify(BrokenSink(), "scan-status", "Scanned x")

        assert "Status sink failed" in caplog.text

    def test_logging_sink_levels(self, caplog):
        """Test that error messages are logged at ERROR."""
        sink = LoggingStatusSink("melodex.status.test")
        with caplog.at_level(logging.INFO, logger="melodex.status.test"):
            sink.post(StatusMessage("completed-scan", "Scanning Completed"))
            sink.post(StatusMessage("scan-failed", "Scan failed: boom", "error"))

        levels = [record.levelno for record in caplog.records if record.name == "melodex.status.test"]
        assert levels == [logging.INFO, logging.ERROR]

    def test_with_id_filters(self):
        """Test filtering recorded messages by id."""
        sink = RecordingStatusSink()
        notify(sink, "scan-status", "Scanned a")
        notify(sink, "completed-scan", "Scanning Completed")
        assert [m.message for m in sink.with_id("scan-status")] == ["Scanned a"]

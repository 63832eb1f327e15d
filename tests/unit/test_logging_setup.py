import json
import logging
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "display_protocol"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from cactuspi_core.logging_setup import ConsoleFormatter, JsonFormatter


def _record(msg, **extra):
    record = logging.LogRecord("cactuspi.pipeline", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class FormatterTests(unittest.TestCase):
    def test_console_appends_kind_and_session(self):
        line = ConsoleFormatter().format(_record("session 3 completed", event="playback_done", kind="subway", session_id=3))
        self.assertIn("INFO cactuspi.pipeline session 3 completed", line)
        self.assertTrue(line.endswith("[kind=subway session_id=3]"))

    def test_console_without_context(self):
        line = ConsoleFormatter().format(_record("logging configured"))
        self.assertTrue(line.endswith("logging configured"))

    def test_json_carries_context_fields(self):
        payload = json.loads(JsonFormatter().format(_record("message dropped", event="message_dropped", kind="covid")))
        self.assertEqual(payload["event"], "message_dropped")
        self.assertEqual(payload["kind"], "covid")
        self.assertIn("thread", payload)
        self.assertNotIn("session_id", payload)


if __name__ == "__main__":
    unittest.main()

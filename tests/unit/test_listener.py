import sys
import unittest
from pathlib import Path
from types import SimpleNamespace

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "display_protocol"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from pubnub.enums import PNStatusCategory

from cactuspi_core.config import PubSubConfig
from cactuspi_core.listener import PipelineListener, start_listener


class FakeOrchestrator:
    def __init__(self):
        self.calls = []

    def handle_message(self, kind, metadata=None, payload=None):
        self.calls.append((kind, metadata, payload))
        return True


class FakeSubscribe:
    def __init__(self, client):
        self.client = client

    def channels(self, channels):
        self.client.channels = channels
        return self

    def execute(self):
        self.client.executed = True


class FakeClient:
    def __init__(self):
        self.listeners = []
        self.channels = None
        self.executed = False

    def add_listener(self, listener):
        self.listeners.append(listener)

    def subscribe(self):
        return FakeSubscribe(self)


class ListenerTests(unittest.TestCase):
    def test_message_forwards_metadata_name(self):
        orchestrator = FakeOrchestrator()
        listener = PipelineListener(orchestrator)
        meta = {"name": "subway", "priority": 2}
        listener.message(None, SimpleNamespace(user_metadata=meta, message="Q train\nDelayed"))

        self.assertEqual(orchestrator.calls, [("subway", meta, "Q train\nDelayed")])

    def test_message_without_metadata(self):
        orchestrator = FakeOrchestrator()
        PipelineListener(orchestrator).message(None, SimpleNamespace(user_metadata=None, message="hi"))
        self.assertEqual(orchestrator.calls, [(None, {}, "hi")])

    def test_status_is_logged(self):
        listener = PipelineListener(FakeOrchestrator())
        with self.assertLogs("cactuspi.listener", level="INFO") as logs:
            listener.status(None, SimpleNamespace(category=PNStatusCategory.PNConnectedCategory))
            listener.status(None, SimpleNamespace(category=PNStatusCategory.PNUnknownCategory))
        self.assertIn("connected", logs.output[0])
        self.assertTrue(logs.output[1].startswith("WARNING"))

    def test_start_listener_subscribes_channels(self):
        client = FakeClient()
        cfg = PubSubConfig(subscribe_key="sub-c", channels=["cactuspi", "lobby"])
        out = start_listener(cfg, FakeOrchestrator(), client=client)

        self.assertIs(out, client)
        self.assertEqual(len(client.listeners), 1)
        self.assertIsInstance(client.listeners[0], PipelineListener)
        self.assertEqual(client.channels, ["cactuspi", "lobby"])
        self.assertTrue(client.executed)


if __name__ == "__main__":
    unittest.main()

"""PubNub subscription wiring: forwards channel messages to the orchestrator."""

from __future__ import annotations

from typing import Any

from pubnub.callbacks import SubscribeCallback
from pubnub.enums import PNStatusCategory
from pubnub.pnconfiguration import PNConfiguration
from pubnub.pubnub import PubNub

from .config import PubSubConfig
from .logging_setup import get_logger
from .pipeline import PipelineOrchestrator


class PipelineListener(SubscribeCallback):
    def __init__(self, orchestrator: PipelineOrchestrator) -> None:
        super().__init__()
        self.orchestrator = orchestrator
        self._logger = get_logger("listener")

    def status(self, pubnub: Any, status: Any) -> None:
        if status.category == PNStatusCategory.PNConnectedCategory:
            self._logger.info("connected to pubsub", extra={"event": "pubsub_connected"})
        elif status.category == PNStatusCategory.PNUnknownCategory:
            self._logger.warning("unable to connect to pubsub", extra={"event": "pubsub_unknown"})

    def message(self, pubnub: Any, message: Any) -> None:
        metadata = getattr(message, "user_metadata", None)
        if not isinstance(metadata, dict):
            metadata = {}
        self.orchestrator.handle_message(metadata.get("name"), metadata, message.message)

    def presence(self, pubnub: Any, presence: Any) -> None:
        pass


def build_pubnub(config: PubSubConfig) -> PubNub:
    pnconfig = PNConfiguration()
    pnconfig.subscribe_key = config.subscribe_key
    pnconfig.publish_key = config.publish_key or None
    pnconfig.secret_key = config.secret_key or None
    pnconfig.user_id = config.user_id
    return PubNub(pnconfig)


def start_listener(config: PubSubConfig, orchestrator: PipelineOrchestrator, client: Any | None = None) -> Any:
    client = client or build_pubnub(config)
    client.add_listener(PipelineListener(orchestrator))
    client.subscribe().channels(list(config.channels)).execute()
    get_logger("listener").info(
        "waiting for messages on %s",
        ",".join(config.channels),
        extra={"event": "pubsub_subscribed"},
    )
    return client

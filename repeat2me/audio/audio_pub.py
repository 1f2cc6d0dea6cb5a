"""Audio publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.events import AudioEvent, RecordingCompleteEvent, TrimCompleteEvent

logger = logging.getLogger(__name__)

AUDIO_FRAME_TOPIC = "audio.frame"
RECORDING_COMPLETE_TOPIC = "recording.complete"
TRIM_COMPLETE_TOPIC = "trim.complete"


class AudioPublisher:
    """Publishes audio events using pubsub.pub for pub/sub architecture."""

    def __init__(self, topic: str = AUDIO_FRAME_TOPIC):
        """Initialize audio publisher.

        Args:
            topic: Pub/sub topic name for captured chunk events
        """
        self.topic = topic
        logger.info(f"AudioPublisher initialized with topic: {topic}")

    def publish_audio_event(self, audio_event: AudioEvent) -> None:
        """Publish a captured chunk to the pub/sub topic.

        Args:
            audio_event: AudioEvent to publish
        """
        pub.sendMessage(self.topic, event=audio_event)

    def publish_recording_complete(self, event: RecordingCompleteEvent) -> None:
        pub.sendMessage(RECORDING_COMPLETE_TOPIC, event=event)
        logger.debug(f"Published recording complete: {event.resource_url}")

    def publish_trim_complete(self, event: TrimCompleteEvent) -> None:
        pub.sendMessage(TRIM_COMPLETE_TOPIC, event=event)
        logger.debug(f"Published trim complete: {event.resource_url}")

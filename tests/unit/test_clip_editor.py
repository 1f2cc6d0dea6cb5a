"""Unit tests for ClipEditor."""

import asyncio

import numpy as np
import pytest
from pubsub import pub

from repeat2me.audio.audio_pub import AudioPublisher, TRIM_COMPLETE_TOPIC
from repeat2me.audio.decoder import SampleBufferDecoder
from repeat2me.audio.encoder import encode_wav
from repeat2me.errors import DecodeError
from repeat2me.models.audio import SampleBuffer
from repeat2me.services.editor_service import ClipEditor
from repeat2me.ui.trim_controller import TrimController
from repeat2me.ui.waveform import WaveformRenderer


class GatedDecoder(SampleBufferDecoder):
    """Decoder whose results are released by the test, one URL at a time."""

    def __init__(self, store):
        super().__init__(store)
        self.gates = {}

    async def decode(self, url):
        gate = self.gates.setdefault(url, asyncio.Event())
        await gate.wait()
        return await super().decode(url)


@pytest.fixture
def controller(store):
    return TrimController(WaveformRenderer(width=200, height=50), store)


def _wav(frames, sample_rate=8000):
    return encode_wav(SampleBuffer(samples=np.linspace(-0.5, 0.5, frames), sample_rate=sample_rate))


@pytest.mark.unit
class TestClipEditorLoading:
    """Decode sequencing."""

    def test_load_shows_buffer(self, store, controller):
        editor = ClipEditor(SampleBufferDecoder(store), controller, store)
        url = store.create_object_url(_wav(800))

        buffer = asyncio.run(editor.load(url))

        assert controller.buffer is buffer
        assert buffer.frame_count == 800
        assert editor.current_url == url
        assert controller.is_loading is False

    def test_failed_decode_leaves_state_untouched(self, store, controller):
        editor = ClipEditor(SampleBufferDecoder(store), controller, store)
        good = store.create_object_url(_wav(800))
        bad = store.create_object_url(b"not audio at all, really not")
        asyncio.run(editor.load(good))
        controller.select(10, 60)
        buffer = controller.buffer

        with pytest.raises(DecodeError):
            asyncio.run(editor.load(bad))

        assert controller.buffer is buffer
        assert (controller.trim_window.start, controller.trim_window.end) == (10, 60)
        assert controller.accepts_input
        assert editor.current_url == good

    def test_stale_decode_is_discarded(self, store, controller):
        decoder = GatedDecoder(store)
        editor = ClipEditor(decoder, controller, store)
        old = store.create_object_url(_wav(400))
        new = store.create_object_url(_wav(1600))

        async def scenario():
            first = asyncio.ensure_future(editor.load(old))
            await asyncio.sleep(0)
            second = asyncio.ensure_future(editor.load(new))
            await asyncio.sleep(0)
            assert controller.accepts_input is False

            decoder.gates[new].set()
            newer = await second
            decoder.gates[old].set()
            stale = await first
            return newer, stale

        newer, stale = asyncio.run(scenario())

        assert stale is None
        assert newer.frame_count == 1600
        assert controller.buffer.frame_count == 1600
        assert editor.current_url == new
        assert editor.generation == 2


@pytest.mark.unit
class TestClipEditorCommit:
    """Trim commits and URL ownership."""

    def test_commit_forwards_url(self, store, controller):
        completed = []
        editor = ClipEditor(SampleBufferDecoder(store), controller, store, on_trim_complete=completed.append)
        asyncio.run(editor.load(store.create_object_url(_wav(8000))))
        controller.select(20, 80)

        url = editor.commit()

        assert completed == [url]
        assert editor.current_url == url
        assert editor.buffer.frame_count == 4800

    def test_superseded_trim_is_revoked(self, store, controller):
        editor = ClipEditor(SampleBufferDecoder(store), controller, store)
        source = store.create_object_url(_wav(8000))
        asyncio.run(editor.load(source))

        controller.select(0, 50)
        first = editor.commit()
        controller.select(0, 50)
        second = editor.commit()

        assert first not in store
        assert second in store
        # The loaded source is not owned by the editor
        assert source in store

    def test_superseded_trim_kept_when_release_disabled(self, store, controller):
        editor = ClipEditor(SampleBufferDecoder(store), controller, store, release_superseded=False)
        asyncio.run(editor.load(store.create_object_url(_wav(8000))))

        first = editor.commit()
        second = editor.commit()

        assert first in store and second in store

    def test_commit_without_buffer(self, store, controller):
        editor = ClipEditor(SampleBufferDecoder(store), controller, store)
        assert editor.commit() is None

    def test_commit_publishes_event(self, store, controller):
        events = []

        def on_trim(event):
            events.append(event)

        pub.subscribe(on_trim, TRIM_COMPLETE_TOPIC)
        try:
            editor = ClipEditor(SampleBufferDecoder(store), controller, store, publisher=AudioPublisher())
            asyncio.run(editor.load(store.create_object_url(_wav(8000))))
            controller.select(25, 75)
            url = editor.commit()
        finally:
            pub.unsubscribe(on_trim, TRIM_COMPLETE_TOPIC)

        assert len(events) == 1
        assert events[0].resource_url == url
        assert (events[0].start_frame, events[0].end_frame) == (2000, 6000)
        assert events[0].duration_seconds == 0.5

"""
Shared fixtures: fake services, a fixed clock, sample payloads.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from notestudio.data.schema import AudioUpload, NoteEvent
from notestudio.editor.note_store import NoteStore, counter_ids


ANALYSIS_PAYLOAD = {
    "tempo": 118.6,
    "duration": 12.5,
    "key": "A minor",
    "chords": ["Am", "F", "C", "G"],
    "detected_notes": ["A4", "C5", "E5"],
}

GENERATION_PAYLOAD = {
    "notes": [
        {"pitch": 60, "velocity": 90, "start_time": 0.0, "end_time": 0.5},
        {"pitch": 64, "velocity": 80, "start_time": 0.5, "end_time": 1.0},
        {"pitch": 67, "velocity": 100, "start_time": 1.0, "end_time": 2.0},
    ],
    "total_time": 2.0,
}


class FakeAnalysisService:
    """Returns a fixed payload (or raises) and records every call."""

    def __init__(self, payload=None, error=None):
        self.payload = ANALYSIS_PAYLOAD if payload is None else payload
        self.error = error
        self.calls = []

    async def analyze(self, audio):
        self.calls.append(audio)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeGenerationService:
    """Hands out responses in order; an Exception response is raised."""

    def __init__(self, *responses):
        self.responses = list(responses) or [GENERATION_PAYLOAD]
        self.calls = []

    async def generate(self, payload):
        self.calls.append(payload)
        response = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


class GatedService:
    """Blocks inside the call until ``gate`` is set, to observe busy states."""

    def __init__(self, payload):
        self.payload = payload
        self.gate = asyncio.Event()
        self.calls = 0

    async def analyze(self, audio):
        self.calls += 1
        await self.gate.wait()
        return self.payload

    async def generate(self, payload):
        self.calls += 1
        await self.gate.wait()
        return self.payload


class FakeSaveService:
    def __init__(self, error=None):
        self.error = error
        self.saved = []

    async def save(self, document):
        if self.error is not None:
            raise self.error
        self.saved.append(document)


class StepClock:
    """Deterministic clock: each call is one second after the previous."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


@pytest.fixture
def wav_upload():
    return AudioUpload(filename="take1.wav", content_type="audio/wav", data=b"RIFF....WAVE")


@pytest.fixture
def store():
    return NoteStore(id_factory=counter_ids())


def make_note(note_id="n1", pitch=60, velocity=100, start_time=0.0, duration=0.5):
    return NoteEvent(id=note_id, pitch=pitch, velocity=velocity,
                     start_time=start_time, duration=duration)

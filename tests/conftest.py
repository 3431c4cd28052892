from __future__ import annotations

import random

import pytest

from trafficbot.models.session import TargetKind
from trafficbot.session_manager.broadcaster import StatusBroadcaster
from trafficbot.session_manager.humanize import HumanInteractionSimulator
from trafficbot.session_manager.orchestrator import SessionOrchestrator

from fakes import FakeController, ScriptedStrategy


@pytest.fixture
def simulator():
    """Deterministic simulator."""
    return HumanInteractionSimulator(rng=random.Random(1234))


@pytest.fixture
def instant_simulator():
    """Simulator whose scroll pauses are zero-length."""
    return HumanInteractionSimulator(rng=random.Random(99), duration_ms=(0, 0), jitter_ms=(0, 0))


@pytest.fixture
def broadcaster():
    return StatusBroadcaster(max_queue_size=50)


@pytest.fixture
def controller():
    return FakeController()


@pytest.fixture
def scripted_strategies():
    return {
        TargetKind.VIDEO_PLATFORM: ScriptedStrategy(messages=("Heading to YouTube...",)),
        TargetKind.WEBSITE: ScriptedStrategy(messages=("Heading to target website...",)),
    }


@pytest.fixture
def orchestrator(controller, broadcaster, scripted_strategies):
    return SessionOrchestrator(controller, broadcaster, strategies=scripted_strategies)

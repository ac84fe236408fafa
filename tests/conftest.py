import pytest

from interview_coach.interview.testing import create_mock_interview_setup


@pytest.fixture
def setup_factory():
    """Build an orchestrator wired to fakes, with every emitted event recorded."""

    def factory(responses=None, **kwargs):
        setup = create_mock_interview_setup(responses, **kwargs)
        events = []
        setup["orchestrator"].event_bus.subscribe_all(events.append)
        setup["events"] = events
        return setup

    return factory


def event_types(events):
    return [event.event_type for event in events]


def listening_setup(factory, responses=None, **kwargs):
    """Begin the interview and let the first question play out."""
    setup = factory(responses if responses is not None else ["Tell me about yourself."], **kwargs)
    setup["orchestrator"].begin()
    setup["synthesis_engine"].finish()
    setup["scheduler"].advance(0.5)
    return setup



import pytest

from rta_samvada.config import Settings
from rta_samvada.pipeline import Session
from rta_samvada.storage import SessionStore


class StubLLM:
    """Return canned responses in order and record every call.

    An Exception instance in the response list is raised instead of returned.
    Running out of responses sets `unexpected`; the session turns the raised
    error into a failure message, so fixtures assert on the flag instead.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []  # list of (system, prompt) tuples
        self.unexpected = False

    async def __call__(self, system, prompt):
        self.calls.append((system, prompt))
        if not self.responses:
            self.unexpected = True
            raise AssertionError(f"Unexpected LLM call #{len(self.calls)}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "data")


@pytest.fixture
def stub_llms():
    """Every StubLLM handed out by a fixture; none may see an unplanned call."""
    llms = []
    yield llms
    for llm in llms:
        assert not llm.unexpected, f"LLM called {len(llm.calls)} times, more than planned"


@pytest.fixture
def make_session(store, stub_llms):
    """Build an opened Session over the tmp store with canned responses."""

    def _make(responses=None, acknowledge=None, **settings):
        llm = StubLLM(responses)
        stub_llms.append(llm)
        kwargs = {}
        if acknowledge is not None:
            kwargs["acknowledge"] = acknowledge
        session = Session.open(store, llm, settings=Settings(**settings), **kwargs)
        return session, llm

    return _make

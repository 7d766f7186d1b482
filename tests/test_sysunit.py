from functools import partial

import pytest

from pktforge.sysunit import GlobalMock, Initializer, InitializerRegistry
from pktforge.sysunit import TestSuite as SuiteBase


class Recording(Initializer):
    def __init__(self, name, events, subsystem, order, registry):
        self.name = name
        self.events = events
        super().__init__(subsystem, order, registry)

    def set_up(self):
        self.events.append(("up", self.name))

    def tear_down(self):
        self.events.append(("down", self.name))


def recording_suite(events, registry):
    suite = SuiteBase(registry)
    suite.test_case_set_up = partial(events.append, ("case_up", None))
    suite.test_case_tear_down = partial(events.append, ("case_down", None))
    return suite


def test_set_up_runs_in_sorted_order():
    registry = InitializerRegistry()
    events = []
    Recording("c", events, 2, 0, registry)
    Recording("a", events, 1, 5, registry)
    Recording("b", events, 1, 7, registry)
    registry.set_up_all()
    assert events == [("up", "a"), ("up", "b"), ("up", "c")]
    assert registry.initialized


def test_tear_down_runs_in_reverse_order():
    registry = InitializerRegistry()
    events = []
    Recording("x", events, 3, 0, registry)
    Recording("y", events, 1, 0, registry)
    assert len(registry) == 2
    registry.set_up_all()
    assert registry.initialized
    events.clear()
    registry.tear_down_all()
    assert events == [("down", "x"), ("down", "y")]
    assert len(registry) == 2


def test_late_registration_rejected():
    registry = InitializerRegistry()
    registry.set_up_all()
    with pytest.raises(RuntimeError, match="registered too late"):
        Initializer(0, 0, registry)
    assert len(registry) == 0


def test_initializer_ordering():
    registry = InitializerRegistry()
    low = Initializer(1, 2, registry)
    high = Initializer(1, 3, registry)
    assert low < high
    assert not high < low
    assert len(registry) == 2


def test_suite_calls_hooks_around_initializers():
    registry = InitializerRegistry()
    events = []
    Recording("i", events, 0, 0, registry)
    suite = recording_suite(events, registry)
    suite.set_up()
    assert registry.initialized
    suite.tear_down()
    assert len(registry) == 1
    assert events == [
        ("up", "i"),
        ("case_up", None),
        ("case_down", None),
        ("down", "i"),
    ]


def test_global_mock_lifecycle():
    registry = InitializerRegistry()

    class Clock(GlobalMock, registry=registry):
        def now(self):
            raise AssertionError("real clock must not be called")

    assert len(registry) == 1
    with pytest.raises(RuntimeError, match="Mock Clock was not initialized."):
        Clock.mock_obj()

    suite = SuiteBase(registry)
    suite.set_up()
    clock = Clock.mock_obj()
    assert Clock.mock_obj() is clock
    clock.now.return_value = 42
    assert clock.now() == 42
    clock.now.assert_called_once_with()
    with pytest.raises(AttributeError):
        clock.missing_method

    suite.tear_down()
    with pytest.raises(RuntimeError):
        Clock.mock_obj()


def test_global_mocks_are_independent():
    registry = InitializerRegistry()

    class First(GlobalMock, registry=registry):
        def go(self):
            return None

    class Second(GlobalMock, registry=registry):
        def go(self):
            return None

    First.set_up()
    assert First.mock_obj() is First.mock_obj()
    with pytest.raises(RuntimeError):
        Second.mock_obj()
    assert len(registry) == 2
    First.tear_down()
    with pytest.raises(RuntimeError):
        First.mock_obj()
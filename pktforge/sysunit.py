"""Ordered set-up and tear-down of global test fixtures.

Initializers register themselves with a registry when created. Before each
test the registry sorts them by ``(subsystem, order)`` and sets each one up;
after the test they are torn down in reverse order. Registering once the
registry has run is an error.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, List, Optional
from unittest import mock

_log = logging.getLogger(__name__)


class InitializerRegistry:
    """The ordered list of initializers shared by a set of test suites."""

    def __init__(self) -> None:
        self.initializers: List["Initializer"] = []
        self.initialized = False

    def register(self, initializer: "Initializer") -> None:
        if self.initialized:
            raise RuntimeError("Initializer registered too late")
        self.initializers.append(initializer)

    def set_up_all(self) -> None:
        """Sort the initializers and set each one up, in order."""
        self.initializers.sort(key=lambda i: (i.subsystem, i.order))
        _log.debug("setting up %d initializers", len(self.initializers))
        for initializer in self.initializers:
            _log.debug("initializer %s", type(initializer).__name__)
            initializer.set_up()
        self.initialized = True

    def tear_down_all(self) -> None:
        """Tear every initializer down, last one first."""
        for initializer in reversed(self.initializers):
            initializer.tear_down()

    def __len__(self) -> int:
        return len(self.initializers)


default_registry = InitializerRegistry()


class Initializer:
    """A global fixture, ordered by subsystem and then by order."""

    def __init__(
        self, subsystem: int = 0, order: int = 0, registry: Optional[InitializerRegistry] = None
    ) -> None:
        self.subsystem = subsystem
        self.order = order
        (default_registry if registry is None else registry).register(self)

    def __lt__(self, other: "Initializer") -> bool:
        return (self.subsystem, self.order) < (other.subsystem, other.order)

    def set_up(self) -> None:
        """Prepare the fixture; the base class does nothing."""

    def tear_down(self) -> None:
        """Release the fixture; the base class does nothing."""


class TestSuite:
    """Base for test suites that run the registered initializers around each test."""

    __test__ = False

    def __init__(self, registry: Optional[InitializerRegistry] = None) -> None:
        self.registry = default_registry if registry is None else registry

    def set_up(self) -> None:
        self.registry.set_up_all()
        self.test_case_set_up()

    def tear_down(self) -> None:
        self.test_case_tear_down()
        self.registry.tear_down_all()

    def test_case_set_up(self) -> None:
        """Per-test preparation for subclasses; does nothing by default."""

    def test_case_tear_down(self) -> None:
        """Per-test clean-up for subclasses; does nothing by default."""


class _GlobalMockInitializer(Initializer):
    def __init__(self, mock_class: type, registry: Optional[InitializerRegistry]) -> None:
        self.mock_class = mock_class
        super().__init__(registry=registry)

    def set_up(self) -> None:
        self.mock_class.set_up()

    def tear_down(self) -> None:
        self.mock_class.tear_down()


class GlobalMock:
    """Base for a mock that replaces a global interface during each test.

    Each subclass gets an initializer that creates a strict mock of the
    subclass before the test and discards it after. ``mock_obj`` returns the
    current mock and fails if none has been created.
    """

    _initializer: ClassVar[Optional[Initializer]] = None

    def __init_subclass__(cls, registry: Optional[InitializerRegistry] = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._mock_instance = None
        cls._initializer = _GlobalMockInitializer(cls, registry)

    @classmethod
    def set_up(cls) -> None:
        cls._mock_instance = mock.create_autospec(cls, instance=True, spec_set=True)

    @classmethod
    def tear_down(cls) -> None:
        cls._mock_instance = None

    @classmethod
    def mock_obj(cls) -> Any:
        instance = cls.__dict__.get("_mock_instance")
        if instance is None:
            raise RuntimeError(f"Mock {cls.__name__} was not initialized.")
        return instance
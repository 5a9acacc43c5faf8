"""
Fixture registry: named setup/teardown units with dependency resolution.

A fixture is registered under a name together with a setup callable.  Its
dependencies are other fixture names, either declared explicitly or taken
from the setup callable's parameter names.  For every test invocation the
registry computes a dependency order, sets each fixture up exactly once,
hands the values to the test and tears everything down in reverse order,
whatever the outcome of the test.

Setup callables come in two shapes::

    registry.define("api", lambda config: ApiHelper(config.api_base_url),
                    teardown=lambda api: api.close())

    @registry.fixture("store")
    def store(config):
        store = OutcomeStore(config.outcome_file)
        yield store            # code after the yield is the teardown
        store.clear()

Lifecycle of one invocation (:class:`FixtureRun`)::

    PENDING -> RESOLVING -> READY -> RUNNING_TEST -> TEARING_DOWN -> DONE
                   |                      |                 |
                   +------> FAILED <------+-----------------+

A setup failure tears down what was already set up and ends in FAILED
without the test ever running; a test failure still goes through
TEARING_DOWN before ending in FAILED.

Key Concepts Demonstrated:
- Depth-first topological sort with cycle detection
- Scoped acquisition with guaranteed, reverse-ordered release
- Generator-based fixtures in the pytest style
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from e2e_kit.errors import CycleError, SetupError, TeardownError, UnknownFixtureError

logger = logging.getLogger(__name__)


class FixtureState(str, Enum):
    """States of a single test's fixture lifecycle."""

    PENDING = "pending"
    RESOLVING = "resolving"
    READY = "ready"
    RUNNING_TEST = "running_test"
    TEARING_DOWN = "tearing_down"
    DONE = "done"
    FAILED = "failed"


def parameter_names(func: Callable[..., Any]) -> tuple[str, ...]:
    """
    Names a callable expects to receive as fixtures.

    Parameters with defaults and ``*args``/``**kwargs`` are skipped, the
    same way pytest decides which arguments are fixture requests.
    """
    names = []
    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is not param.empty:
            continue
        names.append(param.name)
    return tuple(names)


@dataclass(frozen=True)
class FixtureHandle:
    """
    A registered fixture.

    Attributes:
        name: Registry key.
        setup: Callable producing the value (or a generator yielding it).
        dependencies: Fixture names passed to ``setup`` as keyword arguments.
        teardown: Optional cleanup called with the value.
    """

    name: str
    setup: Callable[..., Any]
    dependencies: tuple[str, ...] = ()
    teardown: Callable[[Any], Any] | None = None

    @property
    def is_generator(self) -> bool:
        return inspect.isgeneratorfunction(self.setup)


@dataclass
class _ActiveFixture:
    handle: FixtureHandle
    value: Any
    generator: Any = None


class FixtureRegistry:
    """Collection of fixtures that tests request by name."""

    def __init__(self) -> None:
        self._fixtures: dict[str, FixtureHandle] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._fixtures

    def __len__(self) -> int:
        return len(self._fixtures)

    @property
    def names(self) -> list[str]:
        return list(self._fixtures)

    def get(self, name: str) -> FixtureHandle:
        try:
            return self._fixtures[name]
        except KeyError:
            raise UnknownFixtureError(name) from None

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def define(
        self,
        name: str,
        setup: Callable[..., Any],
        teardown: Callable[[Any], Any] | None = None,
        depends_on: Iterable[str] | None = None,
    ) -> FixtureHandle:
        """
        Register (or replace) a fixture.

        Args:
            name: Name tests use to request the fixture.
            setup: Produces the value.  Generator functions yield it once
                and run their teardown after the yield.
            teardown: Cleanup for plain setup callables.
            depends_on: Dependency names.  Defaults to the parameter names
                of ``setup``.

        Returns:
            The registered handle.
        """
        if teardown is not None and inspect.isgeneratorfunction(setup):
            raise ValueError(
                f"Fixture '{name}' is a generator; put its teardown after the yield"
            )
        dependencies = tuple(depends_on) if depends_on is not None else parameter_names(setup)
        handle = FixtureHandle(name, setup, dependencies, teardown)
        if name in self._fixtures:
            logger.debug("Redefining fixture '%s'", name)
        self._fixtures[name] = handle
        return handle

    def fixture(
        self,
        name: str | None = None,
        *,
        teardown: Callable[[Any], Any] | None = None,
        depends_on: Iterable[str] | None = None,
    ):
        """Decorator form of :meth:`define`; the function name is the default name."""

        def decorator(func):
            self.define(name or func.__name__, func, teardown=teardown, depends_on=depends_on)
            return func

        return decorator

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def setup_order(
        self, names: Iterable[str], provided: Iterable[str] = ()
    ) -> list[str]:
        """
        Topological setup order for the requested fixtures.

        Dependencies come before dependents; ties follow request and
        declaration order.  Names in ``provided`` are treated as already
        available and are not part of the order.

        Raises:
            UnknownFixtureError: A name is neither registered nor provided.
            CycleError: The dependency graph contains a cycle.
        """
        provided = set(provided)
        order: list[str] = []
        done: set[str] = set()
        path: list[str] = []

        def visit(name: str, required_by: str | None) -> None:
            if name in provided or name in done:
                return
            if name in path:
                raise CycleError(path[path.index(name):] + [name])
            handle = self._fixtures.get(name)
            if handle is None:
                raise UnknownFixtureError(name, required_by)
            path.append(name)
            for dependency in handle.dependencies:
                visit(dependency, name)
            path.pop()
            done.add(name)
            order.append(name)

        for name in names:
            visit(name, None)
        return order

    def resolve(
        self, names: Iterable[str], provided: Mapping[str, Any] | None = None
    ) -> "FixtureRun":
        """
        Prepare one test invocation's fixtures.

        Use the result as a context manager; entering it sets everything
        up and returns the requested values, leaving it tears down::

            with registry.resolve(["login_page"], provided={"page": page}) as fx:
                fx["login_page"].login(email, password)
        """
        return FixtureRun(self, names, provided)

    def run(
        self,
        test: Callable[..., Any],
        names: Iterable[str] | None = None,
        provided: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Run ``test`` with its fixtures injected as keyword arguments.

        Args:
            test: The test body.
            names: Fixtures to inject.  Defaults to the test's parameter names.
            provided: Values owned by the caller (never set up or torn down).

        Returns:
            The test's return value.
        """
        names = parameter_names(test) if names is None else tuple(names)
        with self.resolve(names, provided) as values:
            return test(**values)


class FixtureRun:
    """
    Fixtures of a single test invocation.

    Attributes:
        requested: Names the test asked for.
        provided: Caller-owned values available as dependencies.
        state: Current :class:`FixtureState`.
        order: Setup order once resolution has started.
        values: Every value set up so far, plus the provided ones.
        history: States passed through, in order.
    """

    def __init__(
        self,
        registry: FixtureRegistry,
        names: Iterable[str],
        provided: Mapping[str, Any] | None = None,
    ):
        self.registry = registry
        self.requested = tuple(names)
        self.provided = dict(provided or {})
        self.state = FixtureState.PENDING
        self.history: list[FixtureState] = [FixtureState.PENDING]
        self.order: list[str] = []
        self.values: dict[str, Any] = dict(self.provided)
        self._active: list[_ActiveFixture] = []

    def __enter__(self) -> dict[str, Any]:
        self.setup()
        self._transition(FixtureState.RUNNING_TEST)
        return {name: self.values[name] for name in self.requested}

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.finish(exc)
        return False

    def _transition(self, state: FixtureState) -> None:
        logger.debug("Fixture run %s: %s -> %s", self.requested, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def setup(self) -> None:
        """
        Set up every fixture in dependency order.

        Raises:
            CycleError: Before any setup runs.
            UnknownFixtureError: Before any setup runs.
            SetupError: A setup raised; fixtures already set up have been
                torn down in reverse order.
        """
        if self.state is not FixtureState.PENDING:
            raise RuntimeError(f"Fixture run already started (state={self.state.value})")
        self._transition(FixtureState.RESOLVING)

        try:
            self.order = self.registry.setup_order(self.requested, self.provided)
        except (CycleError, UnknownFixtureError):
            self._transition(FixtureState.FAILED)
            raise

        for name in self.order:
            handle = self.registry.get(name)
            try:
                self._setup_one(handle)
            except BaseException as exc:
                logger.error("Setup of fixture '%s' failed: %s", name, exc)
                self._teardown_active(propagating=True, mark=False)
                self._transition(FixtureState.FAILED)
                if not isinstance(exc, Exception):
                    raise
                raise SetupError(name, f"Setup of fixture '{name}' failed: {exc}") from exc

        self._transition(FixtureState.READY)

    def _setup_one(self, handle: FixtureHandle) -> None:
        kwargs = {dep: self.values[dep] for dep in handle.dependencies}
        generator = None
        if handle.is_generator:
            generator = handle.setup(**kwargs)
            try:
                value = next(generator)
            except StopIteration:
                raise RuntimeError(f"Fixture '{handle.name}' did not yield a value") from None
        else:
            value = handle.setup(**kwargs)

        self._active.append(_ActiveFixture(handle, value, generator))
        self.values[handle.name] = value
        logger.debug("Fixture '%s' ready", handle.name)

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def finish(self, exc: BaseException | None = None) -> None:
        """
        Tear down after the test body.

        Args:
            exc: The exception the test body raised, if any.

        Raises:
            TeardownError: A teardown failed and nothing else is propagating.
        """
        if self.state not in (FixtureState.READY, FixtureState.RUNNING_TEST):
            raise RuntimeError(f"Cannot tear down from state {self.state.value}")
        failed_name, failure = self._teardown_active(propagating=exc is not None)

        if exc is not None or failure is not None:
            self._transition(FixtureState.FAILED)
        else:
            self._transition(FixtureState.DONE)

        if exc is None and failure is not None:
            raise TeardownError(failed_name) from failure

    def _teardown_active(
        self, propagating: bool, mark: bool = True
    ) -> tuple[str | None, BaseException | None]:
        """
        Tear down every active fixture once, newest first.

        Returns:
            The name and error of the first failing teardown, if any.

        Raises:
            BaseException: The first teardown that raised something other
                than an ``Exception`` (``KeyboardInterrupt``, pytest
                outcomes), re-raised once every fixture has been torn down.
        """
        if mark:
            self._transition(FixtureState.TEARING_DOWN)
        first_name: str | None = None
        first_error: BaseException | None = None
        interrupt: BaseException | None = None

        while self._active:
            active = self._active.pop()
            try:
                self._teardown_one(active)
            except BaseException as exc:
                logger.error("Teardown of fixture '%s' failed: %s", active.handle.name, exc)
                if not isinstance(exc, Exception):
                    interrupt = interrupt or exc
                elif first_error is None:
                    first_name, first_error = active.handle.name, exc

        if interrupt is not None:
            self._transition(FixtureState.FAILED)
            raise interrupt

        if first_error is not None and propagating:
            logger.warning(
                "Teardown error in '%s' suppressed by an earlier failure", first_name
            )
        return first_name, first_error

    @staticmethod
    def _teardown_one(active: _ActiveFixture) -> None:
        if active.generator is not None:
            try:
                next(active.generator)
            except StopIteration:
                return
            raise RuntimeError(f"Fixture '{active.handle.name}' yielded more than once")
        if active.handle.teardown is not None:
            active.handle.teardown(active.value)

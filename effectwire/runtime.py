# -*- test-case-name: effectwire.test_runtime -*-

"""
Runtimes carry a set of default implementations around, and service programs
declare up front which services they use.
"""

from collections.abc import Mapping
from types import SimpleNamespace

import attr

from ._base import run as base_run
from ._environment import environment, merge, require
from ._sync import run_sync as base_run_sync

__all__ = ['Runtime', 'ServiceProgram']


@attr.s(frozen=True)
class Runtime(object):
    """
    Default implementations for running programs with.

    Environments passed to :meth:`run` are merged over the defaults, so the
    defaults can be overridden per call (e.g. per request)::

        runtime = Runtime({Logger: ConsoleLogger, Config: EnvConfig()})
        result = await runtime.run(handle(request), {Database: conn})

    :param defaults: Mapping of service name (or :obj:`Token`) to
        implementation.
    """

    defaults = attr.ib(default=attr.Factory(dict), converter=environment)

    def environment_for(self, overrides=None):
        """Return the environment a program would be run with."""
        return merge(self.defaults, overrides or {})

    def run(self, program, overrides=None, cancellation=None):
        """
        Run a program with the defaults plus ``overrides``.

        :return: a coroutine, as with :func:`effectwire.run`.
        """
        return base_run(program, self.environment_for(overrides), cancellation)

    def run_sync(self, program, overrides=None, cancellation=None):
        """Like :meth:`run`, but with :func:`effectwire.run_sync`."""
        return base_run_sync(
            program, self.environment_for(overrides), cancellation)

    def extend(self, *mappings, **implementations):
        """Return a new Runtime with additional defaults."""
        return Runtime(
            environment(self.defaults, *mappings, **implementations))


def _services_by_name(services):
    if isinstance(services, Mapping):
        return dict(services)
    return dict((t.name, t) for t in services)


@attr.s(frozen=True)
class ServiceProgram(object):
    """
    A program that names the services it uses.

    ``factory`` is called with an object whose attributes are the declared
    tokens, and must return a program::

        def make_report(deps):
            logger = yield deps.logger
            db = yield deps.db
            ...

        report = ServiceProgram(
            {'logger': Logger, 'db': Database}, make_report)
        await report.run({Logger: ConsoleLogger, Database: conn})

    Since the services are known before the program starts, :meth:`run`
    checks that every one of them is provided before running anything.

    :param services: Mapping of attribute name to :obj:`Token`, or a sequence
        of tokens, which are then available under their own names.
    :param factory: Function taking the dependencies object (plus any
        arguments given to :meth:`with_args`) and returning a program.
    """

    services = attr.ib(converter=_services_by_name)
    factory = attr.ib()
    args = attr.ib(default=(), converter=tuple)
    kwargs = attr.ib(default=attr.Factory(dict))

    def tokens(self):
        """Return the declared tokens."""
        return list(self.services.values())

    def with_args(self, *args, **kwargs):
        """
        Return a copy whose factory is also passed these arguments, after any
        given to earlier calls.
        """
        return attr.evolve(
            self, args=self.args + args, kwargs=dict(self.kwargs, **kwargs))

    def _start(self, implementations):
        if isinstance(implementations, Mapping):
            implementations = environment(implementations)
        env = require(implementations, self.tokens())
        deps = SimpleNamespace(**self.services)
        return self.factory(deps, *self.args, **self.kwargs), env

    async def run(self, implementations, cancellation=None):
        """
        Check that every declared service is provided, then run the program.

        :raises: :obj:`ServiceNotProvided` before the program is started if
            any declared service is missing.
        """
        program, env = self._start(implementations)
        return await base_run(program, env, cancellation)

    def run_sync(self, implementations, cancellation=None):
        """Like :meth:`run`, for synchronous programs."""
        program, env = self._start(implementations)
        return base_run_sync(program, env, cancellation)

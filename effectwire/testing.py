"""
Various functions and environments for testing programs.

Usually the best way to test a program is by using :func:`run_sequence`.
"""

import asyncio
from contextlib import contextmanager
from unittest import mock

import attr

from ._base import run
from ._environment import ComposedEnvironment
from ._program import is_async_program
from ._sync import run_sync
from ._token import Token

__all__ = [
    'run_sequence',
    'SequenceEnvironment',
    'step',
    'throw',
    'Completed',
    'mock_environment',
]


def _name(key):
    return key.name if isinstance(key, Token) else key


def run_sequence(seq, program, fallback=None):
    """
    Run a program by looking up services in an ordered "plan".

    First, an example::

        def code_under_test():
            logger = yield Logger
            db = yield Database
            return db.query('SELECT 1')

        def test_code():
            seq = [
                (Logger, FakeLogger()),
                (Database, FakeDatabase([{'n': 1}])),
            ]
            assert run_sequence(seq, code_under_test()) == [{'n': 1}]

    Every time the program asks for a service, the request is checked against
    the next item in the sequence, and the associated implementation is handed
    to the program. Programs which ask for services out of order, or for
    services that aren't in the sequence, fail the test.

    If a service can't be found in the sequence or the fallback environment,
    an ``AssertionError`` is raised with a log of all services requested so
    far. Each item in the log starts with one of these prefixes:

    * ``sequence``: this service was found in the sequence
    * ``fallback``: this service was provided by the fallback environment
    * ``NOT FOUND``: this service was found in neither.
    * ``NEXT EXPECTED``: the next item in the sequence, if there is one. This
      will appear immediately after a ``NOT FOUND``.

    Asynchronous programs are run to completion with :func:`asyncio.run`, so
    this can't be called from a running event loop; in an asynchronous test,
    use :obj:`SequenceEnvironment` with :func:`effectwire.run` directly.

    :param list seq: List of ``(token, implementation)`` tuples. Service
        names may be used instead of tokens.
    :param program: The program to run.
    :param fallback: An environment to use for services that aren't found in
        the sequence.
    """
    sequence = SequenceEnvironment(seq)
    env = _LoggingEnvironment(sequence, fallback or {})
    with sequence.consume():
        if is_async_program(program):
            return asyncio.run(run(program, env))
        return run_sync(program, env)


@attr.s
class _LoggingEnvironment(object):
    sequence = attr.ib()
    fallback = attr.ib()
    log = attr.ib(default=attr.Factory(list))

    def fmt_log(self):
        next_item = ''
        if len(self.sequence.sequence) > 0:
            next_item = '\nNEXT EXPECTED: %s' % (
                _name(self.sequence.sequence[0][0]),)
        return '{{{\n%s%s\n}}}' % (
            '\n'.join('%s: %s' % x for x in self.log),
            next_item)

    def __getitem__(self, name):
        try:
            implementation = self.sequence[name]
        except KeyError:
            pass
        else:
            self.log.append(("sequence", name))
            return implementation
        try:
            implementation = self.fallback[name]
        except KeyError:
            self.log.append(("NOT FOUND", name))
            raise AssertionError(
                "Service not found: %s! Log follows:\n%s" % (
                    name, self.fmt_log()))
        self.log.append(("fallback", name))
        return implementation


@attr.s
class SequenceEnvironment(object):
    """
    An environment which steps through a sequence of (token, implementation)
    tuples and hands out the implementations in strict sequence.

    This is the environment used by :func:`run_sequence`. In general that
    function should be used directly, unless the test is itself
    asynchronous::

        env = SequenceEnvironment([(Logger, logger), (Database, db)])
        with env.consume():
            result = await run(code_under_test(), env)

    It's important to use `with sequence.consume():` to ensure that all of the
    services are requested. Otherwise, if your code has a bug that causes it to
    return before asking for everything, your test may not fail.

    :obj:`KeyError` is raised if the next service in the sequence is not the
    one being requested, or if there are no more items left in the sequence
    (this is standard behavior for environments that don't have a service).
    This lets this environment be composed easily with others, e.g. with
    :obj:`ComposedEnvironment`.

    :param list sequence: Sequence of (token, implementation).
    """

    sequence = attr.ib()

    def __getitem__(self, name):
        if len(self.sequence) == 0:
            raise KeyError(name)
        expected, implementation = self.sequence[0]
        if _name(expected) != name:
            raise KeyError(name)
        self.sequence = self.sequence[1:]
        return implementation

    def consumed(self):
        """Return True if all of the steps were performed."""
        return len(self.sequence) == 0

    @contextmanager
    def consume(self):
        """
        Return a context manager that can be used with the `with` syntax to
        ensure that all steps are performed by the end.
        """
        yield
        if not self.consumed():
            raise AssertionError(
                "Not all services were requested: {0}".format(
                    [_name(x[0]) for x in self.sequence]))

    def composed_with(self, fallback):
        """Return an environment which falls back to ``fallback``."""
        return ComposedEnvironment([fallback, self])


@attr.s
class Completed(object):
    """What :func:`step` returns when the program finished."""

    value = attr.ib()


def step(program, value=None):
    """
    Resume a synchronous program by sending it ``value``, and return the next
    thing it yields.

    This allows you to test your code in a somewhat "channel"-oriented way::

        gen = code_under_test()
        assert step(gen) == Logger
        assert step(gen, FakeLogger()) == Database
        assert step(gen, FakeDatabase([])) == Completed([])

    It's a pretty low-level testing utility; it's usually much better to use
    a higher-level tool like :func:`run_sequence` in your tests.

    :return: the next payload, or :obj:`Completed` with the program's return
        value.
    """
    try:
        return program.send(value)
    except StopIteration as stop:
        return Completed(stop.value)


def throw(program, exception):
    """
    Like :func:`step`, but raise ``exception`` inside the program instead of
    sending it a value.
    """
    try:
        return program.throw(exception)
    except StopIteration as stop:
        return Completed(stop.value)


def mock_environment(*tokens, **overrides):
    """
    Build an environment of :class:`unittest.mock.Mock` objects for tokens.

    Each mock is specced on its token's contract, so asking for a method that
    the contract doesn't have fails, and ``async def`` methods of a contract
    class become :class:`unittest.mock.AsyncMock`. Keyword arguments replace
    the mock for the service of that name.
    """
    env = dict(
        (t.name, mock.Mock(spec=t.contract) if t.contract is not None
         else mock.Mock())
        for t in tokens)
    env.update(overrides)
    return env

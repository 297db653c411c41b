import asyncio
import logging

import pytest

from testtools import TestCase
from testtools.matchers import Equals, MatchesListwise, raises

from ._base import run
from ._environment import ServiceNotProvided
from ._program import ResolutionTypeError, done
from ._sync import run_sync
from ._test_utils import IsError, RecordingEnvironment, perf
from ._token import token
from ._unify import to_async


Logger = token('Logger')
Database = token('Database')
Cache = token('Cache')


def requesting(t):
    """A program that asks for one service and returns it."""
    impl = yield t
    return impl


class RunTests(TestCase):
    """Tests for :func:`run`."""

    def test_service_not_provided(self):
        """
        When a requested token is not in the environment,
        :obj:`ServiceNotProvided` is raised with its name.
        """
        self.assertThat(
            lambda: perf(requesting(Database), {'Logger': object()}),
            raises(ServiceNotProvided('Database')))

    def test_not_resumed_after_missing_service(self):
        """
        The program isn't resumed after asking for a missing service, though
        it is closed.
        """
        log = []

        def program():
            try:
                yield Logger
                log.append('resumed')
            finally:
                log.append('finally')

        self.assertRaises(ServiceNotProvided, perf, program(), {})
        self.assertEqual(log, ['finally'])

    def test_service_provided(self):
        """The program is sent exactly the implementation it asked for."""
        impl = object()
        self.assertIs(perf(requesting(Logger), {'Logger': impl}), impl)

    def test_none_implementation(self):
        self.assertIs(perf(requesting(Logger), {'Logger': None}), None)

    def test_yield_from_token(self):
        def program():
            logger = yield from Logger
            db = yield from Database
            return (logger, db)

        self.assertEqual(perf(program(), {'Logger': 'l', 'Database': 'd'}),
                         ('l', 'd'))

    def test_async_program(self):
        """Async generators finish by yielding ``done``."""
        async def program():
            logger = yield Logger
            await asyncio.sleep(0)
            yield done(logger)

        self.assertEqual(perf(program(), {'Logger': 'l'}), 'l')

    def test_async_fall_off_the_end(self):
        """An async program that never yields ``done`` results in None."""
        async def program():
            yield Logger

        self.assertIs(perf(program(), {'Logger': 'l'}), None)

    def test_sync_fall_off_the_end(self):
        def program():
            yield Logger

        self.assertIs(perf(program(), {'Logger': 'l'}), None)

    def test_not_resumed_after_done(self):
        """Nothing after ``yield done(...)`` runs."""
        log = []

        async def program():
            yield done('result')
            log.append('resumed')

        self.assertEqual(perf(program(), {}), 'result')
        self.assertEqual(log, [])

    def test_passthrough(self):
        """Other values are sent straight back."""
        value = {'some': 'value'}

        def program():
            got = yield value
            return got

        self.assertIs(perf(program(), {}), value)

    def test_nested(self):
        """
        A yielded program is run with the same environment, and its result is
        sent back to the outer program.
        """
        def inner():
            db = yield Database
            return ('inner', db)

        def outer():
            logger = yield Logger
            result = yield inner()
            return (logger, result)

        self.assertEqual(
            perf(outer(), {'Logger': 'l', 'Database': 'd'}),
            ('l', ('inner', 'd')))

    def test_nested_transparency(self):
        """
        Running an outer program with a nested one gives the same result as
        running the nested program by hand and substituting its result.
        """
        env = {'Logger': 'l', 'Database': 'd'}

        def inner():
            db = yield Database
            return db * 2

        def outer(nested):
            x = yield nested
            return [x]

        by_hand = perf(inner(), env)
        self.assertEqual(perf(outer(inner()), env), perf(outer(by_hand), env))

    def test_deeply_nested_mixed(self):
        """Sync and async programs can be nested in each other freely."""
        async def innermost():
            c = yield Cache
            yield done(c)

        def middle():
            c = yield innermost()
            db = yield Database
            return c + db

        async def outer():
            x = yield middle()
            yield done(x + '!')

        self.assertEqual(
            perf(outer(), {'Cache': 'c', 'Database': 'd'}), 'cd!')

    def test_nested_failure(self):
        """
        When a nested program fails, the outer run fails with the same
        exception, and the outer program is closed.
        """
        error = ValueError('inner')
        log = []

        def inner():
            yield Logger
            raise error

        def outer():
            try:
                yield inner()
                log.append('resumed')
            finally:
                log.append('finally')

        e = self.assertRaises(ValueError, perf, outer(), {'Logger': 'l'})
        self.assertIs(e, error)
        self.assertEqual(log, ['finally'])

    def test_nested_missing_service(self):
        def inner():
            yield Database

        def outer():
            yield inner()

        e = self.assertRaises(ServiceNotProvided, perf, outer(), {})
        self.assertEqual(e.name, 'Database')

    def test_error_identity(self):
        """Errors raised by the program come out of ``run`` unchanged."""
        error = RuntimeError('boom')

        def program():
            yield Logger
            raise error

        e = self.assertRaises(RuntimeError, perf, program(), {'Logger': 'l'})
        self.assertIs(e, error)

    def test_program_handles_implementation_errors(self):
        """
        Implementations are called by the program itself, so it can handle
        their errors.
        """
        class FailingDatabase(object):
            def query(self, sql):
                raise IOError(sql)

        def program():
            db = yield Database
            try:
                db.query('SELECT 1')
            except IOError as e:
                return 'failed: %s' % (e,)

        self.assertEqual(perf(program(), {'Database': FailingDatabase()}),
                         'failed: SELECT 1')

    def test_failure_short_circuit(self):
        """
        When an implementation fails, no further services are looked up and
        the run fails with that exact error.
        """
        error = IOError('down')

        class Broken(object):
            async def query(self, sql):
                raise error

        async def program():
            logger = yield Logger
            logger.append('start')
            db = yield Database
            await db.query('SELECT 1')
            yield Cache
            yield done('unreachable')

        logger = []
        env = RecordingEnvironment(
            {'Logger': logger, 'Database': Broken(), 'Cache': 'c'})
        e = self.assertRaises(IOError, perf, program(), env)
        self.assertIs(e, error)
        self.assertEqual(env.lookups, ['Logger', 'Database'])
        self.assertEqual(logger, ['start'])

    def test_resolution_order(self):
        """Services are looked up strictly in the order they're yielded."""
        def inner():
            yield Cache

        def program():
            yield Logger
            yield inner()
            yield Database
            yield Logger

        env = RecordingEnvironment(
            {'Logger': 'l', 'Database': 'd', 'Cache': 'c'})
        perf(program(), env)
        self.assertEqual(
            env.lookups, ['Logger', 'Cache', 'Database', 'Logger'])

    def test_sync_async_equivalence(self):
        """
        A synchronous program gives the same result whether it's run directly
        or after being lifted with :func:`to_async`.
        """
        env = {'Logger': 'l', 'Database': 'd'}

        def program():
            logger = yield Logger
            db = yield Database
            passed = yield 3
            return (logger, db, passed)

        self.assertEqual(perf(program(), env), perf(to_async(program()), env))
        self.assertEqual(perf(program(), env), run_sync(program(), env))

    def test_yielded_coroutine(self):
        """
        Yielding a coroutine raises :obj:`ResolutionTypeError` from ``run``,
        and the program is closed.
        """
        log = []

        async def fetch():
            return 1

        async def program():
            try:
                yield fetch()
            finally:
                log.append('finally')

        self.assertRaises(ResolutionTypeError, perf, program(), {})
        self.assertEqual(log, ['finally'])

    def test_not_a_program(self):
        self.assertRaises(ResolutionTypeError, perf, 42, {})

    def test_environment_not_modified(self):
        env = {'Logger': 'l'}
        perf(requesting(Logger), env)
        self.assertEqual(env, {'Logger': 'l'})


@pytest.mark.asyncio
async def test_concurrent_isolation():
    """
    Concurrent runs sharing one environment each get their own results, even
    when their suspension points interleave.
    """
    events = []

    class Store(object):
        def __init__(self, name):
            self.name = name

        async def get(self, key):
            events.append((self.name, key))
            await asyncio.sleep(0)
            return '%s:%s' % (self.name, key)

    env = {'Users': Store('users'), 'Orders': Store('orders')}

    async def program(t, keys):
        store = yield t
        results = []
        for key in keys:
            results.append(await store.get(key))
        yield done(results)

    users, orders = await asyncio.gather(
        run(program(token('Users'), [1, 2, 3]), env),
        run(program(token('Orders'), ['a', 'b']), env))
    assert users == ['users:1', 'users:2', 'users:3']
    assert orders == ['orders:a', 'orders:b']
    # they really did run at the same time
    assert events[:2] == [('users', 1), ('orders', 'a')]


@pytest.mark.asyncio
async def test_concurrent_failure_is_isolated():
    """One run failing doesn't affect another sharing its environment."""
    env = {'Logger': 'l'}

    async def ok():
        logger = yield Logger
        await asyncio.sleep(0)
        yield done(logger)

    results = await asyncio.gather(
        run(requesting(Database), env), run(ok(), env),
        return_exceptions=True)
    assert MatchesListwise([
        IsError(ServiceNotProvided('Database')),
        Equals('l'),
    ]).match(results) is None


@pytest.mark.asyncio
async def test_logging(caplog):
    """Resolutions and nested programs are logged at debug level."""
    caplog.set_level(logging.DEBUG, logger='effectwire')

    def inner():
        yield Database

    def outer():
        yield Logger
        yield inner()
        yield 'value'

    await run(outer(), {'Logger': 'l', 'Database': 'd'})
    messages = [r.getMessage() for r in caplog.records]
    assert "Resolved service 'Logger'" in messages
    assert "Resolved service 'Database'" in messages
    assert "Passing 'value' back through" in messages
    assert any(m.startswith('Running nested program') for m in messages)

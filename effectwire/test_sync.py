from testtools import TestCase
from testtools.matchers import raises

from ._environment import ServiceNotProvided
from ._program import ResolutionTypeError, done
from ._sync import NotSynchronousError, run_sync
from ._token import token


Logger = token('Logger')
Database = token('Database')


class RunSyncTests(TestCase):
    """Tests for :func:`run_sync`."""

    def test_result(self):
        """run_sync returns the result of the program."""
        def program():
            logger = yield Logger
            return logger

        impl = object()
        self.assertIs(run_sync(program(), {'Logger': impl}), impl)

    def test_service_not_provided(self):
        def program():
            yield Logger

        self.assertThat(
            lambda: run_sync(program(), {}),
            raises(ServiceNotProvided('Logger')))

    def test_error_bubbles_up(self):
        """
        When the program fails, the exception is raised up through
        run_sync.
        """
        def program():
            yield Logger
            raise ValueError('oh dear')

        self.assertThat(
            lambda: run_sync(program(), {'Logger': 'l'}),
            raises(ValueError('oh dear')))

    def test_nested(self):
        def inner():
            db = yield Database
            return db + '!'

        def outer():
            logger = yield Logger
            x = yield inner()
            return logger + x

        self.assertEqual(
            run_sync(outer(), {'Logger': 'l', 'Database': 'd'}), 'ld!')

    def test_passthrough(self):
        value = object()

        def program():
            got = yield value
            return got

        self.assertIs(run_sync(program(), {}), value)

    def test_done(self):
        """Synchronous programs may finish with ``done`` too."""
        def program():
            yield done('early')
            yield Logger

        self.assertEqual(run_sync(program(), {}), 'early')

    def test_async_program(self):
        """If the program is asynchronous, run_sync raises an error."""
        async def program():
            yield Logger

        self.assertRaises(
            NotSynchronousError, run_sync, program(), {'Logger': 'l'})

    def test_nested_async_program(self):
        """
        If a nested program is asynchronous, run_sync raises an error and the
        outer program is closed.
        """
        log = []

        async def inner():
            yield Logger

        def outer():
            try:
                yield inner()
            finally:
                log.append('finally')

        self.assertRaises(
            NotSynchronousError, run_sync, outer(), {'Logger': 'l'})
        self.assertEqual(log, ['finally'])

    def test_not_a_program(self):
        self.assertRaises(ResolutionTypeError, run_sync, 'program', {})

"""Helpers shared by the test modules."""

import asyncio

import attr

from testtools.matchers import Mismatch

from ._base import run


@attr.s
class IsError(object):
    """
    Match an exception *instance* (e.g. one returned by
    ``asyncio.gather(..., return_exceptions=True)``) by type and arguments.
    """

    expected = attr.ib()

    def match(self, actual):
        if type(actual) is not type(self.expected):
            return Mismatch("%r is not a %s" % (
                actual, type(self.expected).__name__))
        if actual.args != self.expected.args:
            return Mismatch("%r has arguments %r, not %r" % (
                actual, actual.args, self.expected.args))


@attr.s
class RecordingEnvironment(object):
    """An environment that remembers which names were looked up."""

    implementations = attr.ib()
    lookups = attr.ib(default=attr.Factory(list))

    def __getitem__(self, name):
        self.lookups.append(name)
        return self.implementations[name]


def perf(program, environment, cancellation=None):
    """Run a program to completion on a fresh event loop."""
    return asyncio.run(run(program, environment, cancellation))

# -*- test-case-name: effectwire.test_program -*-

"""
Effect programs, and how the payloads they yield are told apart.

A program is a generator (or async generator) that yields one of:

- a :obj:`Token`, to be sent back the service implementation;
- another program, to be sent back that program's result;
- anything else, which is sent straight back unchanged.

Synchronous programs finish with ``return value``. Async generators can't
return a value, so asynchronous programs finish with ``yield done(value)``.
"""

import inspect
from functools import wraps

import attr

from ._token import Token


SERVICE_REQUEST = 'service-request'
NESTED_PROGRAM = 'nested-program'
COMPLETION = 'completion'
PASSTHROUGH = 'passthrough'


class ResolutionTypeError(TypeError):
    """
    Raised when a program yields something that can't be resolved, like an
    un-awaited coroutine or a program function that was never called.

    :ivar payload: The offending value.
    """

    def __init__(self, payload, message=None):
        if message is None:
            message = "Can't resolve %r yielded by a program" % (payload,)
        super(ResolutionTypeError, self).__init__(message)
        self.payload = payload


@attr.s
class Done(object):
    """The final value of an asynchronous program. See :func:`done`."""

    value = attr.ib()


def done(value=None):
    """
    Specify the result of an asynchronous program. The result of this function
    must be yielded, and the program is not resumed afterwards::

        @program
        async def count_users():
            db = yield Database
            rows = await db.query('SELECT count(*) AS n FROM users')
            yield done(rows[0]['n'])
    """
    return Done(value)


def is_async_program(obj):
    """Return True if ``obj`` can be driven as an asynchronous program."""
    return inspect.isasyncgen(obj) or all(
        hasattr(obj, name)
        for name in ('asend', 'athrow', 'aclose', '__anext__'))


def is_sync_program(obj):
    """Return True if ``obj`` can be driven as a synchronous program."""
    return inspect.isgenerator(obj) or all(
        hasattr(obj, name) for name in ('send', 'throw', 'close', '__next__'))


def is_program(obj):
    return is_async_program(obj) or is_sync_program(obj)


def _is_malformed(payload):
    if inspect.iscoroutine(payload):
        return "a coroutine was yielded; it needs to be awaited instead"
    if (inspect.isgeneratorfunction(payload)
            or inspect.isasyncgenfunction(payload)
            or getattr(payload, 'effectwire_program', None) is True):
        return "a program function was yielded instead of being called"


def classify(payload):
    """
    Work out what a program wants from a yielded payload.

    The checks are made in a fixed order, so that an object matching more than
    one of them (a :obj:`Token` is iterable, for instance) is treated as the
    first one: service request, then nested program, then completion, then
    passthrough.

    :return: One of :data:`SERVICE_REQUEST`, :data:`NESTED_PROGRAM`,
        :data:`COMPLETION` or :data:`PASSTHROUGH`.
    :raises: :obj:`ResolutionTypeError` if the payload is clearly a mistake.
    """
    if isinstance(payload, Token):
        return SERVICE_REQUEST
    if is_program(payload):
        return NESTED_PROGRAM
    if type(payload) is Done:
        return COMPLETION
    problem = _is_malformed(payload)
    if problem is not None:
        if inspect.iscoroutine(payload):
            # Silence the "never awaited" warning; it's reported here instead.
            payload.close()
        raise ResolutionTypeError(
            payload, "Can't resolve %r: %s" % (payload, problem))
    return PASSTHROUGH


def program(f):
    """
    A decorator for functions that make programs.

    ``@program`` must decorate a generator function or an async generator
    function. Calling the decorated function returns the generator, just like
    calling the original, but raises :obj:`TypeError` right away if something
    else came back::

        @program
        def greet(name):
            logger = yield Logger
            logger.info('hello %s' % (name,))
            return name

    Decorated functions are also recognised if they are accidentally yielded
    without being called.
    """

    @wraps(f)
    def program_wrapper(*args, **kwargs):
        gen = f(*args, **kwargs)
        if not is_program(gen):
            raise TypeError(
                "%r is not a generator function. It returned %r." % (f, gen))
        return gen

    program_wrapper.effectwire_program = True
    return program_wrapper

# -*- test-case-name: effectwire.test_unify -*-

"""
Lifting synchronous programs into asynchronous ones, so one driver can run
both.
"""

from ._program import (
    ResolutionTypeError, done, is_async_program, is_sync_program)


def _step(generator, value=None, error=None):
    """
    Resume a generator, either sending it ``value`` or throwing ``error``
    into it.

    Return ``(finished, payload)``: if the generator returned, ``finished`` is
    True and ``payload`` is its return value.
    """
    try:
        if error is not None:
            return False, generator.throw(error)
        return False, generator.send(value)
    except StopIteration as stop:
        return True, stop.value


async def to_async(generator):
    """
    Wrap a synchronous program in an async generator that suspends exactly
    where the original does.

    Values sent into the wrapper are sent on unchanged. Exceptions thrown into
    the wrapper with ``athrow`` are thrown into the original generator, so its
    own ``except`` and ``finally`` blocks see them, and closing the wrapper
    closes the original. When the original returns, the wrapper yields
    :func:`done` with its return value.
    """
    finished, payload = _step(generator)
    while not finished:
        try:
            value = yield payload
        except GeneratorExit:
            generator.close()
            raise
        except BaseException as error:
            finished, payload = _step(generator, error=error)
        else:
            finished, payload = _step(generator, value)
    yield done(payload)


def as_async(program):
    """
    Return ``program`` as something that can be driven asynchronously.

    Anything that supports the async generator protocol is returned as is,
    even if it also supports the synchronous one. Synchronous programs are
    wrapped with :func:`to_async`.

    :raises: :obj:`ResolutionTypeError` if ``program`` isn't a program.
    """
    if is_async_program(program):
        return program
    if is_sync_program(program):
        return to_async(program)
    raise ResolutionTypeError(program, "%r is not a program" % (program,))

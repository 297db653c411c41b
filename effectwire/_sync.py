# -*- test-case-name: effectwire.test_sync -*-

"""
Tools for running programs synchronously.
"""

import logging

from ._base import _resolve
from ._program import (
    COMPLETION, NESTED_PROGRAM, ResolutionTypeError, classify,
    is_async_program, is_sync_program)

log = logging.getLogger(__name__)


class NotSynchronousError(Exception):
    """An asynchronous program was given to :func:`run_sync`."""


def run_sync(program, environment, cancellation=None):
    """
    Run a synchronous program and return its ultimate result. If the program
    fails, the exception will be raised.

    This behaves exactly like :func:`effectwire.run`, except that it blocks
    instead of returning a coroutine, and it requires that the program (and
    every program nested in it) be a plain generator. Asynchronous programs
    raise :class:`NotSynchronousError` when they're reached.
    """
    if is_async_program(program):
        raise NotSynchronousError(
            "Running %r was not synchronous!" % (program,))
    if not is_sync_program(program):
        raise ResolutionTypeError(program, "%r is not a program" % (program,))

    value = error = None
    try:
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        while True:
            try:
                if error is None:
                    payload = program.send(value)
                else:
                    payload = program.throw(error)
            except StopIteration as stop:
                log.debug("Program %r finished", program)
                return stop.value
            value = error = None

            kind = classify(payload)
            if kind == COMPLETION:
                log.debug("Program %r finished", program)
                return payload.value

            if cancellation is not None and cancellation.cancelled:
                error = cancellation.error()
            elif kind == NESTED_PROGRAM:
                log.debug("Running nested program %r", payload)
                value = run_sync(payload, environment, cancellation)
            else:
                value = _resolve(kind, payload, environment)
    finally:
        program.close()

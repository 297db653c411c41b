# -*- test-case-name: effectwire.test_base -*-

import logging

from ._environment import lookup
from ._program import (
    COMPLETION, NESTED_PROGRAM, SERVICE_REQUEST, classify)
from ._unify import as_async

log = logging.getLogger(__name__)


def _resolve(kind, payload, environment):
    """Work out the value to resume a program with, for non-nested payloads."""
    if kind == SERVICE_REQUEST:
        implementation = lookup(environment, payload.name)
        log.debug("Resolved service %r", payload.name)
        return implementation
    log.debug("Passing %r back through", payload)
    return payload


async def run(program, environment, cancellation=None):
    """
    Run a program until it finishes, and return its result.

    Every time the program suspends, the payload it yielded is resolved and
    the program resumed with the result:

    - a :obj:`Token` is looked up by name in ``environment``, and the program
      is sent the implementation. If there is none, :obj:`ServiceNotProvided`
      is raised from here and the program is not resumed.
    - a nested program is run to completion with this same function and
      environment, and its result sent back. If the nested program fails, this
      run fails with the same exception.
    - anything else is sent back unchanged.

    Synchronous programs are accepted too; see :func:`to_async`.

    Payloads are resolved strictly one at a time, in the order they were
    yielded. Exceptions raised by the program (including any raised by the
    implementations it calls) are propagated as they are, never caught,
    retried or wrapped. Whenever the program is abandoned before it finishes,
    it is closed, so its ``finally`` blocks still run.

    The environment is only ever read, so it can be shared by any number of
    concurrent runs.

    :param program: A generator or async generator.
    :param environment: Anything supporting ``environment[name]``, typically
        a dict of service name to implementation.
    :param cancellation: An optional :obj:`Cancellation`, checked every time
        the program suspends.
    :return: The program's result.
    """
    gen = as_async(program)
    value = error = None
    try:
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        while True:
            try:
                if error is None:
                    payload = await gen.asend(value)
                else:
                    payload = await gen.athrow(error)
            except StopAsyncIteration:
                log.debug("Program %r finished", gen)
                return None
            value = error = None

            kind = classify(payload)
            if kind == COMPLETION:
                log.debug("Program %r finished", gen)
                return payload.value

            if cancellation is not None and cancellation.cancelled:
                error = cancellation.error()
            elif kind == NESTED_PROGRAM:
                log.debug("Running nested program %r", payload)
                value = await run(payload, environment, cancellation)
            else:
                value = _resolve(kind, payload, environment)
    finally:
        await gen.aclose()
        if gen is not program:
            # to_async only closes the original once it has started it
            program.close()

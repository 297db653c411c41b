"""
A small runtime for writing business logic that asks for its dependencies
instead of importing them.

Logic is written as a generator (a "program") which yields service tokens
and gets implementations back. At invocation time, :func:`run` drives the
program against an environment mapping service names to implementations, so
the same program can run against production services, test doubles, or
anything in between.
"""

from ._token import Token, token
from ._environment import (
    ComposedEnvironment,
    ServiceNotProvided,
    environment,
    lookup,
    merge,
    require)
from ._program import (
    Done, ResolutionTypeError, classify, done, is_async_program, is_program,
    is_sync_program, program)
from ._unify import as_async, to_async
from ._cancel import Cancellation, Cancelled
from ._base import run
from ._sync import NotSynchronousError, run_sync
from .runtime import Runtime, ServiceProgram


__all__ = [
    # Order here affects the order that these things show up in the API docs.
    "Token", "token",
    "run", "run_sync",
    "program", "done", "Done",
    "environment", "merge", "require", "lookup", "ComposedEnvironment",
    "Runtime", "ServiceProgram",
    "Cancellation", "Cancelled",
    "to_async", "as_async",
    "classify", "is_program", "is_async_program", "is_sync_program",
    "ServiceNotProvided", "ResolutionTypeError", "NotSynchronousError",
]

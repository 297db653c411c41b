# -*- test-case-name: effectwire.test_cancel -*-

"""
Cooperative cancellation of running programs.
"""

import logging

import attr

log = logging.getLogger(__name__)


@attr.s(auto_exc=True)
class Cancelled(Exception):
    """
    Raised into a program at its next suspension point after its
    :obj:`Cancellation` has been cancelled.

    :ivar reason: Whatever was passed to :meth:`Cancellation.cancel`.
    """

    reason = attr.ib(default=None)


class Cancellation(object):
    """
    A flag that can be handed to :func:`effectwire.run` to stop a program.

    Cancellation is cooperative: the driver checks the flag every time the
    program suspends, and when it is set raises :obj:`Cancelled` into the
    program, so the program's own ``except`` and ``finally`` blocks run.
    Nested programs share their parent's Cancellation, so they are stopped at
    their next suspension point too.

    A Cancellation can be shared between any number of runs, and can only be
    cancelled once; later calls to :meth:`cancel` are ignored.
    """

    def __init__(self):
        self.cancelled = False
        self.reason = None

    def cancel(self, reason=None):
        """Request that every run using this Cancellation stops."""
        if self.cancelled:
            return
        log.info("Cancellation requested: %r", reason)
        self.cancelled = True
        self.reason = reason

    def error(self):
        """Return the :obj:`Cancelled` exception for this cancellation."""
        return Cancelled(self.reason)

    def raise_if_cancelled(self):
        if self.cancelled:
            raise self.error()

    def __repr__(self):
        return "<Cancellation(cancelled={!r}) at 0x{:x}>".format(
            self.cancelled, id(self))

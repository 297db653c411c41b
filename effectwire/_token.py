# -*- test-case-name: effectwire.test_token -*-

"""
Service tokens: named descriptions of a capability a program can ask for.
"""

import attr


@attr.s(frozen=True)
class Token(object):
    """
    A named request for a service implementation.

    Yield a Token from an effect program to receive the implementation
    registered under its name in the environment the program is run with::

        Logger = token('Logger', LoggerProtocol)

        def greet(name):
            logger = yield Logger
            logger.info('hello %s' % (name,))

    Tokens are also iterable, so ``logger = yield from Logger`` works the same
    way.

    Tokens are compared (and hashed) by ``name`` only. The ``contract`` is
    purely descriptive -- usually a :class:`typing.Protocol` class or an
    example value -- and is never consulted when a program is run.

    :param str name: The key the implementation is looked up by.
    :param contract: What the implementation is expected to look like.
    """

    name = attr.ib()
    contract = attr.ib(default=None, eq=False, repr=False)

    def __iter__(self):
        implementation = yield self
        return implementation

    def make(self, implementation):
        """
        Return ``implementation`` unchanged.

        This only exists so that implementations can be declared next to the
        token they implement::

            ConsoleLogger = Logger.make(PrintingLogger())
        """
        return implementation

    def provide(self, implementation):
        """Return a one-entry environment providing ``implementation``."""
        return {self.name: implementation}


def token(name, contract=None):
    """
    Create a :obj:`Token`.

    This is a plain constructor: nothing is registered anywhere, and two calls
    with the same name produce equal tokens.
    """
    return Token(name, contract)

# -*- test-case-name: effectwire.test_environment -*-

"""
Environments: where programs get their service implementations from.

An environment is anything that supports ``environment[name]``, returning
the implementation registered under ``name`` or raising ``KeyError(name)``.
A plain :obj:`dict` is the usual choice. Any other :obj:`KeyError` (say, one
from inside a lazily-built implementation) is a failure of the environment
itself and is propagated unchanged.
"""

import logging
from collections.abc import Mapping

import attr

from ._token import Token

log = logging.getLogger(__name__)


class ServiceNotProvided(Exception):
    """
    Raised when a program asks for a token that its environment does not
    provide.

    This always means the program was wired up incorrectly, so it should
    never be retried.

    :ivar name: The name of the missing service.
    """

    retryable = False

    def __init__(self, name):
        super(ServiceNotProvided, self).__init__(name)
        self.name = name

    def __str__(self):
        return "Service %r not provided" % (self.name,)


def _absent(error, name):
    """
    Is ``error`` the environment saying it has no ``name``, rather than a
    :obj:`KeyError` from somewhere inside a lazy environment?
    """
    return error.args == (name,)


def _key(key):
    return key.name if isinstance(key, Token) else key


def environment(*mappings, **implementations):
    """
    Build an environment dict.

    Mappings are applied in order and then keyword arguments, each overriding
    what came before. :obj:`Token` keys are replaced by their names, so both of
    these are the same::

        environment({Logger: ConsoleLogger}, Database=db)
        {'Logger': ConsoleLogger, 'Database': db}
    """
    result = {}
    for mapping in mappings:
        result.update((_key(k), v) for k, v in mapping.items())
    result.update(implementations)
    return result


def merge(*environments):
    """
    Shallowly merge several environments into a new dict; later entries win.
    """
    return environment(*environments)


@attr.s
class ComposedEnvironment(Mapping):
    """
    An environment which looks names up in several other environments without
    copying them.

    The environments are searched from the last one to the first, so later
    environments override earlier ones, just as with :func:`merge`.

    :param environments: Environments to search.
    """

    environments = attr.ib()

    def __getitem__(self, name):
        for env in reversed(self.environments):
            try:
                return env[name]
            except KeyError as e:
                if not _absent(e, name):
                    raise
        raise KeyError(name)

    def __iter__(self):
        seen = set()
        for env in self.environments:
            for name in env:
                if name not in seen:
                    seen.add(name)
                    yield name

    def __len__(self):
        return sum(1 for _ in self)


def lookup(environment, name):
    """
    Return the implementation of the service called ``name``.

    :raises: :obj:`ServiceNotProvided` if the environment doesn't have it,
        i.e. it raised ``KeyError(name)``.
    """
    try:
        return environment[name]
    except KeyError as e:
        if not _absent(e, name):
            raise
        log.warning("Service %r not provided", name)
        raise ServiceNotProvided(name) from None


def require(environment, tokens):
    """
    Check up front that ``environment`` provides every one of ``tokens``.

    Nothing about the implementations themselves is checked, only that they
    are there.

    :return: ``environment``
    :raises: :obj:`ServiceNotProvided` for the first missing token.
    """
    for t in tokens:
        lookup(environment, t.name)
    return environment

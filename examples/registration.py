"""
Run this example with:
    python -m examples.registration

A small user-registration service written as effectwire programs. None of
:func:`select_one`, :func:`register_user` or :func:`user_count` knows where
its logger or database come from: they're only named by tokens, and
:func:`main` decides what to plug in for them.
"""

import asyncio

from effectwire import Runtime, done, program, token


class LoggerContract(object):
    def info(self, message):
        """Record an informational message."""


class DatabaseContract(object):
    async def query(self, sql, *params):
        """Run ``sql`` and return a list of rows."""

    def count(self, table):
        """Return the number of rows in ``table``."""


Logger = token('Logger', LoggerContract)
Database = token('Database', DatabaseContract)


async def select_one():
    """
    Log, then ask the database for a constant.

    :return: A program resulting in ``[{'n': 1}]`` from a real database.
    """
    logger = yield Logger
    logger.info("start")
    db = yield Database
    yield done(await db.query("SELECT 1"))


@program
async def register_user(name):
    """
    Store a user, and return how many users there are now.
    """
    logger = yield Logger
    db = yield Database
    await db.query("INSERT INTO users (name) VALUES (?)", name)
    logger.info("registered %s" % (name,))
    count = yield user_count()
    yield done(count)


def user_count():
    db = yield Database
    return db.count('users')


class PrintLogger(object):
    def info(self, message):
        print(message)


class MemoryDatabase(object):
    """A pretend database which keeps rows in a dict of lists."""

    def __init__(self):
        self.tables = {'users': []}

    async def query(self, sql, *params):
        if sql.startswith("INSERT INTO users"):
            self.tables['users'].append(params)
            return []
        return [{'n': 1}]

    def count(self, table):
        return len(self.tables[table])


def main():
    runtime = Runtime({Logger: PrintLogger(), Database: MemoryDatabase()})
    print(asyncio.run(runtime.run(select_one())))
    for name in ['alice', 'bob']:
        print(asyncio.run(runtime.run(register_user(name))))


if __name__ == '__main__':
    main()

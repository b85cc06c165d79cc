from sqlalchemy.dialects import postgresql


class FakeTransactionManager:
    """Runs the callback against a mocked session, without begin/commit."""

    def __init__(self, db):
        self.db = db
        self.calls = 0

    async def run(self, fn):
        self.calls += 1
        return await fn(self.db)


def make_db(mocker):
    db = mocker.Mock()
    db.execute = mocker.AsyncMock()
    db.scalar = mocker.AsyncMock()
    return db


def db_with_first(mocker, row):
    res = mocker.Mock()
    res.first.return_value = row
    db = make_db(mocker)
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def db_with_rowcount(mocker, rowcount):
    res = mocker.Mock()
    res.rowcount = rowcount
    db = make_db(mocker)
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def executed_sql(db):
    return [str(c.args[0]) for c in db.execute.await_args_list]


def failing_on(sql, error):
    async def _execute(stmt, *args, **kwargs):
        if str(stmt) == sql:
            raise error
    return _execute


def make_session(mocker):
    session = mocker.Mock()
    session.begin = mocker.AsyncMock()
    session.connection = mocker.AsyncMock()
    session.commit = mocker.AsyncMock()
    session.rollback = mocker.AsyncMock()
    return session


def make_session_factory(mocker, session):
    factory = mocker.MagicMock()
    factory.return_value.__aenter__ = mocker.AsyncMock(return_value=session)
    factory.return_value.__aexit__ = mocker.AsyncMock(return_value=False)
    return factory


def compile_pg(stmt):
    return stmt.compile(dialect=postgresql.dialect())

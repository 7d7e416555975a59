from __future__ import annotations


class DummySession:
    def __init__(self) -> None:
        self.flushes = 0
        self.nested_entered = 0
        self.nested_exited_with_error = 0

    def begin_nested(self) -> DummyNested:
        return DummyNested(self)

    async def flush(self) -> None:
        self.flushes += 1


class DummyNested:
    def __init__(self, session: DummySession) -> None:
        self._session = session

    async def __aenter__(self) -> DummyNested:
        self._session.nested_entered += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._session.nested_exited_with_error += 1
        return False


class DummySessionContext:
    def __init__(self, factory: DummySessionFactory, *, transactional: bool) -> None:
        self._factory = factory
        self._transactional = transactional

    async def __aenter__(self) -> DummySession:
        self._factory.opened += 1
        return self._factory.session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if self._transactional:
            if exc_type is None:
                self._factory.commits += 1
            else:
                self._factory.rollbacks += 1
        return False


class DummySessionFactory:
    """Stand-in for ``async_sessionmaker``: ``factory()`` and ``factory.begin()``."""

    def __init__(self) -> None:
        self.session = DummySession()
        self.opened = 0
        self.commits = 0
        self.rollbacks = 0

    def __call__(self) -> DummySessionContext:
        return DummySessionContext(self, transactional=False)

    def begin(self) -> DummySessionContext:
        return DummySessionContext(self, transactional=True)

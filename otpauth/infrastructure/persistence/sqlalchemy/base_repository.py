from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session


class BaseRepository:
    """Shared persistence plumbing, passed by reference to each concrete repository.

    Every operation gets its own Session so no state is shared between
    concurrent requests.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

from typing import Iterator

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from cmdb.config import database_url


def make_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(url, echo=False)


engine = make_engine(database_url())


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session

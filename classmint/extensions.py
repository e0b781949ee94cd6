from __future__ import annotations

import logging
import sys

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.orm import backref, declarative_base, relationship, scoped_session, sessionmaker

Base = declarative_base()


class Database:
    """Engine, scoped session and the column vocabulary the models are declared with."""

    Model = Base
    Column = Column
    Integer = Integer
    String = String
    Date = Date
    DateTime = DateTime
    JSON = JSON
    ForeignKey = ForeignKey
    UniqueConstraint = UniqueConstraint
    CheckConstraint = CheckConstraint
    Index = Index
    # Plain functions would bind as methods on the instance
    relationship = staticmethod(relationship)
    backref = staticmethod(backref)
    func = func
    select = staticmethod(select)

    def __init__(self, database_url: str):
        # Request handlers run in a threadpool, so sqlite connections cross threads
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, future=True, connect_args=connect_args)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)
        self.session = scoped_session(self.SessionLocal)

    def remove_session(self) -> None:
        self.session.remove()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)


def configure_logging(level: str = "INFO") -> logging.Logger:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    return logging.getLogger("classmint")


from classmint.config import settings

db = Database(settings.DATABASE_URL)

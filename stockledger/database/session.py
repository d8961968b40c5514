from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from stockledger.database.engine import engine


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


SessionLocal = build_session_factory(engine)

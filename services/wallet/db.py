from sqlmodel import create_engine, SQLModel, Session

from libs.py_common.config import settings

# Ledger reads and reconciliation writes are short and synchronous.
DATABASE_URL = settings.wallet_db_url

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)

def init_db(bind=None):
    # Imported for its side effect of registering the wallet_ledger table.
    from . import models # noqa: F401
    SQLModel.metadata.create_all(bind or engine)

def get_session():
    with Session(engine) as session:
        yield session

# db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from dotenv import load_dotenv
import os as _os

# When running inside a container, avoid loading the repository `.env` file.
# Loading it at import-time can override platform provided env vars.
if not _os.path.exists("/.dockerenv"):
    load_dotenv()

DATABASE_URL = _os.getenv("DATABASE_URL", "sqlite:///local.db")

# SQLite connections are shared with FastAPI's threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine)
Base = declarative_base()

def init_db():
    from backend.models import Config

    Base.metadata.create_all(bind=engine)


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()

class DecisionRow(Base):
    __tablename__ = "decisions"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(100), index=True, nullable=False)
    category_id = Column(String(50), index=True)
    title = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, default=list)
    confidence = Column(Integer, default=3)
    result = Column(String(20), default="pending", index=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    resolved_at = Column(DateTime, nullable=True)

_engines = {}
_session_factories = {}

def get_engine(database_url: str = "sqlite:///./decision_journal.db"):
    if database_url not in _engines:
        _engines[database_url] = create_engine(
            database_url,
            connect_args={"check_same_thread": False} if "sqlite" in database_url else {}
        )
    return _engines[database_url]

def init_db(database_url: str = "sqlite:///./decision_journal.db"):
    engine = get_engine(database_url)
    Base.metadata.create_all(bind=engine)
    return engine

def get_session(database_url: str = "sqlite:///./decision_journal.db"):
    if database_url not in _session_factories:
        engine = get_engine(database_url)
        _session_factories[database_url] = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return _session_factories[database_url]()

"""Database models for MindEase."""
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class AppActivity(Base):
    """One uninterrupted stint of an application in the foreground."""
    __tablename__ = 'app_activity'

    id = Column(Integer, primary_key=True)
    app_name = Column(String(255), nullable=False, index=True)
    window_title = Column(String(500))
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    total_seconds = Column(Float, default=0.0)

    def __repr__(self):
        return f"<AppActivity(app={self.app_name}, duration={self.total_seconds}s)>"


class Setting(Base):
    """Persisted key-value pair."""
    __tablename__ = 'settings'

    id = Column(Integer, primary_key=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text)

    def __repr__(self):
        return f"<Setting(key={self.key})>"


def init_database(db_path: str = "data/mindease.db"):
    """Create tables if needed and return a thread-safe session factory."""
    engine = create_engine(
        f'sqlite:///{db_path}',
        echo=False,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

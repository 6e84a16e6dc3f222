from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clubhouse.core.config import get_settings

settings = get_settings()

# pool_pre_ping drops connections the managed Postgres has already closed
engine = create_engine(settings.database_url_sync, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

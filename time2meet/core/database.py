from .config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

engine = create_async_engine(
    DATABASE_URL,
    pool_size=DB_POOL_SIZE,
    max_overflow=DB_MAX_OVERFLOW,
    pool_pre_ping=True
)

# Sessions are opened only through TransactionManager, which controls begin/commit itself
AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)

Base = declarative_base()

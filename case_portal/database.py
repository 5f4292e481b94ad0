import re
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import async_sessionmaker
from case_portal.config import settings

def build_async_url(url: str) -> str:
    """Normalise a database URL to an async driver."""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        # asyncpg does not understand sslmode
        url = re.sub(r'[?&]sslmode=[^&]*', '', url)
    elif url.startswith("sqlite://"):
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url

db_url = build_async_url(settings.DATABASE_URL)

connect_args = {}
if settings.DATABASE_SSL and db_url.startswith("postgresql+asyncpg"):
    connect_args["ssl"] = True

# Create async SQLAlchemy engine
engine = create_async_engine(
    db_url,
    echo=False,
    future=True,
    connect_args=connect_args,
)

# Create base class for models
Base = declarative_base()

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)

# Dependency to get DB session
async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

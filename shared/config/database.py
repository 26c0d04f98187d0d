from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from .settings import DATABASE_URL, DB_ECHO

engine = create_async_engine(DATABASE_URL, echo=DB_ECHO)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def create_all(bind=None):
    """Create every registered table. Import models before calling."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

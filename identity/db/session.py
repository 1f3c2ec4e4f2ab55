# identity/db/session.py
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from identity.core.config import settings
import logging

logger = logging.getLogger(__name__)

connect_args = {}
if settings.SQLALCHEMY_DATABASE_URI.startswith("postgresql+asyncpg://"):
    connect_args = {"server_settings": {"application_name": settings.PROJECT_NAME}}

engine = create_async_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args,
)

AsyncSessionLocal = async_sessionmaker(
    engine, expire_on_commit=False, class_=AsyncSession
)


async def get_db():
    """Request-scoped session; one transaction per account use case."""
    async with AsyncSessionLocal() as db:
        try:
            await db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database is unavailable",
            )
        yield db

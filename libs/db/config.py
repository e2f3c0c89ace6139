from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for ``settings.DATABASE_URL``.

    SQLite gets a longer busy timeout so concurrent writers wait for the
    write lock instead of failing; pooled servers get the usual pool knobs.
    """
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=settings.DB_ECHO,
            future=True,
            connect_args={"timeout": 15},
        )
    return create_async_engine(
        url,
        echo=settings.DB_ECHO,
        future=True,
        pool_pre_ping=True,  # Test connections before using
        pool_size=20,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


settings = get_settings()

engine = build_engine(settings)

# Create async session factory
AsyncSessionLocal = build_session_factory(engine)

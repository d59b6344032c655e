"""MongoDB database setup and Beanie ODM initialization."""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from beanie import init_beanie
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from winehub.config import settings

if TYPE_CHECKING:
    from beanie import Document

logger = logging.getLogger(__name__)

# Global database client and database references
client: AsyncIOMotorClient | None = None
database: AsyncIOMotorDatabase | None = None
transactions_enabled: bool = False


def get_document_models() -> list[type["Document"]]:
    """Get all Beanie document models for initialization."""
    from winehub.models import User, Vintage, Wine, Winery

    return [
        User,
        Winery,
        Wine,
        Vintage,
    ]


async def detect_transaction_support(motor_client: AsyncIOMotorClient) -> bool:
    """Check whether the deployment accepts multi-document transactions.

    Transactions need a replica set member or a mongos router; a standalone
    server rejects them.
    """
    try:
        hello = await motor_client.admin.command("hello")
    except PyMongoError as e:
        logger.warning("Could not determine transaction support: %s", e)
        return False
    return bool(hello.get("setName")) or hello.get("msg") == "isdbgrid"


async def init_db(
    mongodb_url: str | None = None,
    mongodb_database: str | None = None,
    motor_client: AsyncIOMotorClient | None = None,
) -> None:
    """Initialize the MongoDB database connection and Beanie ODM.

    Args:
        mongodb_url: Optional MongoDB connection URL. Defaults to settings.
        mongodb_database: Optional database name. Defaults to settings.
        motor_client: Optional pre-configured motor client (for testing).
    """
    global client, database, transactions_enabled

    if motor_client is not None:
        client = motor_client
    else:
        url = mongodb_url or settings.mongodb_url
        client = AsyncIOMotorClient(
            url,
            minPoolSize=settings.min_pool_size,
            maxPoolSize=settings.max_pool_size,
        )

    db_name = mongodb_database or settings.mongodb_database
    database = client[db_name]

    await init_beanie(
        database=database,
        document_models=get_document_models(),
    )

    configured = settings.use_transactions
    if configured is None:
        transactions_enabled = await detect_transaction_support(client)
    else:
        transactions_enabled = configured
    logger.info(
        "Database %s initialised (transactions %s)",
        db_name,
        "enabled" if transactions_enabled else "disabled",
    )


async def close_db() -> None:
    """Close the MongoDB database connection."""
    global client, database, transactions_enabled

    if client is not None:
        client.close()
        client = None
        database = None
        transactions_enabled = False


def get_database() -> AsyncIOMotorDatabase:
    """Get the current database instance.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if database is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return database


@asynccontextmanager
async def transaction() -> AsyncIterator[AsyncIOMotorClientSession | None]:
    """Run a block inside a multi-document transaction when supported.

    Yields the session to pass to Beanie operations, or None when the
    deployment has no transaction support; the block then runs unwrapped.
    """
    if client is None or not transactions_enabled:
        yield None
        return

    async with await client.start_session() as session:
        async with session.start_transaction():
            yield session

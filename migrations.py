"""
Database Migration System

Versioned schema migrations stored as migrations/NNN_name.sql.
Each migration is applied in its own transaction and recorded in the
schema_migrations table, so re-running is a no-op.
"""
import re
import logging
from pathlib import Path
from typing import List, Set, Tuple
import asyncpg

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATION_FILE_PATTERN = re.compile(r'^(\d+)_(.+)\.sql$')


async def ensure_migrations_table(conn: asyncpg.Connection):
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            applied_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)


async def get_applied_migrations(conn: asyncpg.Connection) -> Set[str]:
    rows = await conn.fetch("SELECT version FROM schema_migrations")
    return {row["version"] for row in rows}


def get_migration_files(migrations_dir: Path = MIGRATIONS_DIR) -> List[Tuple[str, Path]]:
    """
    Migration files sorted by numeric version.

    Returns:
        List of (version, path)
    """
    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return []

    migrations = []
    for file_path in migrations_dir.glob("*.sql"):
        match = MIGRATION_FILE_PATTERN.match(file_path.name)
        if match:
            migrations.append((match.group(1), file_path))
        else:
            logger.warning(f"Migration file name doesn't match pattern: {file_path.name}")

    # Numeric, not lexicographic
    migrations.sort(key=lambda x: int(x[0]))
    return migrations


async def apply_migration(conn: asyncpg.Connection, version: str, migration_path: Path) -> None:
    """
    Apply one migration. The caller owns the transaction.

    Raises:
        asyncpg.PostgresError: SQL failed
    """
    sql_content = migration_path.read_text(encoding='utf-8')

    if not sql_content.strip():
        logger.warning(f"Migration {version} is empty, skipping")
    else:
        logger.info(f"Applying migration {version}: {migration_path.name}")
        # asyncpg executes multi-statement SQL natively
        await conn.execute(sql_content)

    await conn.execute(
        "INSERT INTO schema_migrations (version) VALUES ($1) ON CONFLICT (version) DO NOTHING",
        version
    )
    logger.info(f"Migration {version} applied successfully")


async def run_migrations(conn: asyncpg.Connection) -> bool:
    """
    Apply all pending migrations, each in its own transaction.

    Returns:
        True if all migrations are applied, False on the first failure
    """
    try:
        await ensure_migrations_table(conn)
        applied = await get_applied_migrations(conn)
        logger.info(f"Applied migrations: {sorted(applied)}")

        migration_files = get_migration_files()
        if not migration_files:
            logger.warning("No migration files found")
            return True

        for version, migration_path in migration_files:
            if version in applied:
                logger.debug(f"Migration {version} already applied, skipping")
                continue
            async with conn.transaction():
                await apply_migration(conn, version, migration_path)

        logger.info("All migrations applied successfully")
        return True

    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"CRITICAL: Migration failed: {type(e).__name__}: {e}")
        return False


async def run_migrations_safe(pool: asyncpg.Pool) -> bool:
    """Apply migrations using a pooled connection"""
    async with pool.acquire() as conn:
        return await run_migrations(conn)

"""
Storefront Database Layer
=========================

asyncpg pool plus the schema migrator for the PostgreSQL catalog.

Migrations live in storefront/migrations as NNN_description.sql and are
applied once each, in version order. schema_migrations records the
version, file name and SHA-256 of every applied file; an applied file
whose content later changes is reported, never re-run.
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping

import asyncpg

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

MIGRATION_NAME = re.compile(r"^(?P<version>\d{3})_(?P<label>[a-z0-9_]+)\.sql$")


@dataclass(frozen=True)
class Migration:
    version: str
    path: Path
    checksum: str

    @property
    def name(self) -> str:
        return self.path.name

    def read_sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> List[Migration]:
    """
    Migration files in version order.

    Files not matching NNN_description.sql are skipped with a warning.

    Raises:
        ValueError: two files share a version number
    """
    found: Dict[str, Migration] = {}
    for path in sorted(directory.glob("*.sql")):
        match = MIGRATION_NAME.match(path.name)
        if not match:
            logger.warning(f"Ignoring migration file with unexpected name: {path.name}")
            continue
        version = match.group("version")
        if version in found:
            raise ValueError(
                f"Duplicate migration version {version}: {found[version].name} and {path.name}"
            )
        found[version] = Migration(
            version=version,
            path=path,
            checksum=hashlib.sha256(path.read_bytes()).hexdigest(),
        )
    return [found[v] for v in sorted(found)]


def pending_migrations(
    migrations: List[Migration], applied: Mapping[str, str]
) -> List[Migration]:
    """
    Filter out applied versions. applied maps version -> recorded checksum;
    drift between the recorded and current checksum is logged.
    """
    pending = []
    for migration in migrations:
        recorded = applied.get(migration.version)
        if recorded is None:
            pending.append(migration)
        elif recorded and recorded != migration.checksum:
            logger.warning(
                f"Migration {migration.name} changed after it was applied; "
                "schema changes belong in a new migration"
            )
    return pending


async def init_database(database_url: str, min_size: int = 2, max_size: int = 10) -> asyncpg.Pool:
    """Create the connection pool and bring the schema up to date."""
    logger.info("Connecting to the catalog database...")
    pool = await asyncpg.create_pool(
        database_url,
        min_size=min_size,
        max_size=max_size,
    )

    applied = await run_migrations(pool)
    logger.info(f"Catalog database ready ({len(applied)} new migration(s) applied)")
    return pool


async def run_migrations(pool: asyncpg.Pool, directory: Path = MIGRATIONS_DIR) -> List[str]:
    """Apply pending migrations, one transaction each; returns the applied versions."""
    migrations = discover_migrations(directory)
    newly_applied: List[str] = []

    async with pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version VARCHAR(10) PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                checksum TEXT NOT NULL DEFAULT '',
                applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """)
        rows = await conn.fetch("SELECT version, checksum FROM schema_migrations")
        applied = {row["version"]: row["checksum"] for row in rows}

        for migration in pending_migrations(migrations, applied):
            logger.info(f"Applying migration {migration.name}")
            try:
                async with conn.transaction():
                    await conn.execute(migration.read_sql())
                    await conn.execute(
                        "INSERT INTO schema_migrations (version, name, checksum) VALUES ($1, $2, $3)",
                        migration.version,
                        migration.name,
                        migration.checksum,
                    )
            except Exception:
                logger.exception(f"Migration {migration.name} failed; schema left at the previous version")
                raise
            newly_applied.append(migration.version)

    return newly_applied

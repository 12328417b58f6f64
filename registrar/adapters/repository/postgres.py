"""
PostgreSQL repository adapter - Implements RegistryStore protocol.

This module provides the PostgreSQL implementation of the domain's
store port using psycopg3 with raw SQL.

Concurrency Design - Serialized Record Mutation:
------------------------------------------------
Every registry operation runs inside a single database transaction, so
its record writes and balance movements commit or roll back together.

1. **SELECT ... FOR UPDATE**: Configuration and domain rows are locked when
   loaded. Two operations touching the same record queue behind each other;
   operations on different domains proceed in parallel.

2. **INSERT ... ON CONFLICT DO NOTHING**: Record creation is an atomic claim.
   The row count tells the domain whether the name (or the singleton) was
   free, so concurrent registrations of one name yield exactly one winner.

3. **Ordered ledger locks**: Transfers lock both ledger rows in account
   order, preventing deadlocks between opposite-direction transfers.

4. **Discriminator column**: Each row carries the record type tag, checked
   on load before the row is decoded.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from psycopg import Cursor
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from registrar.domain.exceptions import InsufficientFunds, RecordDecodeError
from registrar.domain.models import (
    ChainAddress,
    DomainRecord,
    RegistryConfig,
    Transfer,
    config_address,
    domain_address,
)

logger = logging.getLogger(__name__)


def _encode_addresses(addresses: list[ChainAddress]) -> Jsonb:
    return Jsonb([{"chain_id": a.chain_id, "address": a.address} for a in addresses])


def _decode_addresses(raw: list[dict]) -> list[ChainAddress]:
    return [ChainAddress(chain_id=item["chain_id"], address=item["address"]) for item in raw]


def _check_discriminator(found: str, expected: str) -> None:
    if found != expected:
        raise RecordDecodeError(f"Expected {expected} record, found {found}")


class _PostgresTransaction:
    """RegistryTransaction bound to one open cursor."""

    def __init__(self, cursor: Cursor, program_id: str) -> None:
        self._cursor = cursor
        self._program_id = program_id
        self._config_address = config_address(program_id)

    def get_config(self) -> RegistryConfig | None:
        self._cursor.execute(
            """
            SELECT discriminator, authority, base_price_usd_cents,
                   grace_period_seconds, domains_registered
            FROM registry_config
            WHERE address = %s
            FOR UPDATE
            """,
            (self._config_address,),
        )
        row = self._cursor.fetchone()
        if row is None:
            return None
        _check_discriminator(row[0], RegistryConfig.DISCRIMINATOR)
        return RegistryConfig(
            authority=row[1],
            base_price_usd_cents=row[2],
            grace_period_seconds=row[3],
            domains_registered=row[4],
        )

    def insert_config(self, config: RegistryConfig) -> bool:
        self._cursor.execute(
            """
            INSERT INTO registry_config (address, discriminator, authority,
                base_price_usd_cents, grace_period_seconds, domains_registered)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (address) DO NOTHING
            """,
            (
                self._config_address,
                RegistryConfig.DISCRIMINATOR,
                config.authority,
                config.base_price_usd_cents,
                config.grace_period_seconds,
                config.domains_registered,
            ),
        )
        return self._cursor.rowcount == 1

    def update_config(self, config: RegistryConfig) -> None:
        self._cursor.execute(
            """
            UPDATE registry_config
            SET authority = %s,
                base_price_usd_cents = %s,
                grace_period_seconds = %s,
                domains_registered = %s
            WHERE address = %s
            """,
            (
                config.authority,
                config.base_price_usd_cents,
                config.grace_period_seconds,
                config.domains_registered,
                self._config_address,
            ),
        )

    def get_domain(self, domain_name: str) -> DomainRecord | None:
        self._cursor.execute(
            """
            SELECT discriminator, domain_name, owner, expiry_timestamp,
                   registration_timestamp, addresses
            FROM domain_records
            WHERE address = %s
            FOR UPDATE
            """,
            (domain_address(self._program_id, domain_name),),
        )
        row = self._cursor.fetchone()
        if row is None:
            return None
        _check_discriminator(row[0], DomainRecord.DISCRIMINATOR)
        return DomainRecord(
            domain_name=row[1],
            owner=row[2],
            expiry_timestamp=row[3],
            registration_timestamp=row[4],
            addresses=_decode_addresses(row[5]),
        )

    def insert_domain(self, record: DomainRecord) -> bool:
        self._cursor.execute(
            """
            INSERT INTO domain_records (address, discriminator, domain_name, owner,
                expiry_timestamp, registration_timestamp, addresses)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (address) DO NOTHING
            """,
            (
                domain_address(self._program_id, record.domain_name),
                DomainRecord.DISCRIMINATOR,
                record.domain_name,
                record.owner,
                record.expiry_timestamp,
                record.registration_timestamp,
                _encode_addresses(record.addresses),
            ),
        )
        # Returns 1 if INSERT succeeded, 0 if the name was already claimed
        return self._cursor.rowcount == 1

    def update_domain(self, record: DomainRecord) -> None:
        # domain_name is the identity key and is never rewritten
        self._cursor.execute(
            """
            UPDATE domain_records
            SET owner = %s,
                expiry_timestamp = %s,
                registration_timestamp = %s,
                addresses = %s
            WHERE address = %s
            """,
            (
                record.owner,
                record.expiry_timestamp,
                record.registration_timestamp,
                _encode_addresses(record.addresses),
                domain_address(self._program_id, record.domain_name),
            ),
        )

    def balance(self, account: str) -> int:
        self._cursor.execute("SELECT balance FROM ledger_accounts WHERE account = %s", (account,))
        row = self._cursor.fetchone()
        return row[0] if row is not None else 0

    def transfer(self, transfer: Transfer) -> None:
        # Lock both rows in account order
        self._cursor.execute(
            """
            SELECT account, balance FROM ledger_accounts
            WHERE account = ANY(%s)
            ORDER BY account
            FOR UPDATE
            """,
            ([transfer.source, transfer.destination],),
        )
        balances = dict(self._cursor.fetchall())
        available = balances.get(transfer.source, 0)
        if available < transfer.amount:
            raise InsufficientFunds(
                f"Account {transfer.source} holds {available}, needs {transfer.amount}"
            )
        if transfer.amount == 0:
            return

        self._cursor.execute(
            "UPDATE ledger_accounts SET balance = balance - %s WHERE account = %s",
            (transfer.amount, transfer.source),
        )
        self._cursor.execute(
            """
            INSERT INTO ledger_accounts (account, balance)
            VALUES (%s, %s)
            ON CONFLICT (account) DO UPDATE
            SET balance = ledger_accounts.balance + EXCLUDED.balance
            """,
            (transfer.destination, transfer.amount),
        )


class PostgresRegistryStore:
    """
    Implements RegistryStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool, program_id: str) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            program_id: Identity of the registrar program, seeds record addresses
        """
        self._pool = pool
        self._program_id = program_id

    @contextmanager
    def transaction(self) -> Iterator[_PostgresTransaction]:
        """
        Open one database transaction for a registry operation.

        The pool's connection context commits when the block completes and
        rolls back if an exception escapes it.
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            yield _PostgresTransaction(cursor, self._program_id)


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: registrar/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %s migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e

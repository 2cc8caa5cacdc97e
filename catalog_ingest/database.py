"""Database layer for the books catalog."""
import psycopg2
from psycopg2 import pool
from psycopg2.extras import execute_values
from typing import List
import logging

from catalog_ingest.errors import StoreWriteError
from catalog_ingest.models import CatalogRecord, WriteResult

logger = logging.getLogger(__name__)

INSERT_BOOKS_SQL = """
    INSERT INTO books (
        title, author, isbn, description, genre, publication_date, cover_image
    ) VALUES %s
    ON CONFLICT (isbn) DO NOTHING
    RETURNING isbn
"""


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 2):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool

        Raises:
            StoreWriteError: if the store cannot be reached
        """
        try:
            self.connection_pool = pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            raise StoreWriteError(f"Could not connect to database: {e}") from e

        logger.info("Database connection pool created successfully")

    def init_schema(self):
        """Create the books table if it doesn't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                # isbn is the conflict key for upsert_books
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS books (
                        id SERIAL PRIMARY KEY,
                        title TEXT NOT NULL,
                        author TEXT NOT NULL,
                        isbn VARCHAR(20) NOT NULL UNIQUE,
                        description TEXT,
                        genre VARCHAR(100),
                        publication_date DATE,
                        cover_image TEXT,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_genre
                    ON books (genre)
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_created
                    ON books (created_at DESC)
                """)

                conn.commit()
                logger.info("Database schema initialized successfully")
        except psycopg2.Error as e:
            conn.rollback()
            raise StoreWriteError(f"Failed to initialize schema: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def ensure_isbn_constraint(self):
        """
        Check that books.isbn is covered by a single-column unique index.

        Without it ON CONFLICT (isbn) cannot ignore duplicates.

        Raises:
            StoreWriteError: if no such index exists
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT 1
                    FROM pg_index i
                    JOIN pg_attribute a
                      ON a.attrelid = i.indrelid AND a.attnum = ANY(i.indkey)
                    WHERE i.indrelid = to_regclass('books')
                      AND i.indisunique
                      AND i.indnatts = 1
                      AND a.attname = 'isbn'
                    LIMIT 1
                """)
                row = cur.fetchone()
        except psycopg2.Error as e:
            raise StoreWriteError(f"Failed to inspect books constraints: {e}") from e
        finally:
            # read-only; end the transaction before the connection idles in the pool
            conn.rollback()
            self.connection_pool.putconn(conn)

        if not row:
            raise StoreWriteError("books.isbn has no unique constraint; refusing to write")

    def upsert_books(self, records: List[CatalogRecord]) -> WriteResult:
        """
        Insert a batch of books in one statement, ignoring known ISBNs.

        Args:
            records: Normalized records to write

        Returns:
            WriteResult with the number of rows actually inserted

        Raises:
            StoreWriteError: if the write fails; nothing is committed
        """
        if not records:
            return WriteResult(records_submitted=0, records_accepted=0)

        rows = [record.to_row() for record in records]
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                inserted = execute_values(
                    cur, INSERT_BOOKS_SQL, rows, page_size=len(rows), fetch=True
                )
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to insert books: {e}")
            raise StoreWriteError(f"Failed to insert {len(rows)} books: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

        result = WriteResult(records_submitted=len(rows), records_accepted=len(inserted))
        if result.records_ignored:
            logger.info(f"Ignored {result.records_ignored} books already in the catalog")
        return result

    def count_books(self) -> int:
        """Total number of books stored."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM books")
                return cur.fetchone()[0]
        finally:
            conn.rollback()
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

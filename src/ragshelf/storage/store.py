"""SQLite-backed document store."""

import asyncio
import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

import numpy as np

from ragshelf.errors import StoreUnavailableError
from ragshelf.models import Chunk, ChunkMetadata, Document
from ragshelf.storage.schema import SCHEMA


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SQLiteDocumentStore:
    """SQLite-backed storage for vendor documents, chunks and embeddings.

    ``find_all`` and ``update`` implement the DocumentStore protocol and
    run in a worker thread, each with its own connection. sqlite errors
    surface as StoreUnavailableError.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create schema if not exists."""
        try:
            with self.connection() as conn:
                conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                f"Could not initialize document store: {exc}",
                operation="initialize",
                details={"path": str(self.path)},
            ) from exc

    def add_document(self, doc: Document) -> None:
        """Insert or replace a document, along with any chunks it carries."""
        with self.connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO documents
                   (id, vendor_id, title, content, type, category, metadata,
                    is_active, last_indexed, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    doc.id,
                    doc.vendor_id,
                    doc.title,
                    doc.content,
                    doc.type,
                    doc.category,
                    json.dumps(doc.metadata),
                    1 if doc.is_active else 0,
                    _format_timestamp(doc.last_indexed),
                    _format_timestamp(doc.updated_at),
                ),
            )
            self._replace_chunks(conn, doc.id, doc.chunks)

    def get(self, document_id: str) -> Optional[Document]:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT * FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
            return self._load_document(conn, row) if row else None

    # DocumentStore protocol

    async def find_all(
        self,
        *,
        is_active: Optional[bool] = None,
        vendor_id: Optional[str] = None,
    ) -> list[Document]:
        return await self._run("find_all", self._select_documents, is_active, vendor_id)

    async def update(
        self,
        document_id: str,
        *,
        chunks: Optional[list[Chunk]] = None,
        last_indexed: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> Optional[Document]:
        return await self._run(
            "update", self._update_document, document_id, chunks, last_indexed, updated_at
        )

    async def _run(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                f"Document store {operation} failed: {exc}",
                operation=operation,
                details={"path": str(self.path)},
            ) from exc

    def _select_documents(
        self, is_active: Optional[bool], vendor_id: Optional[str]
    ) -> list[Document]:
        clauses = []
        params: list[Any] = []
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(1 if is_active else 0)
        if vendor_id is not None:
            clauses.append("vendor_id = ?")
            params.append(vendor_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        with self.connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM documents{where} ORDER BY rowid", params
            ).fetchall()
            return [self._load_document(conn, row) for row in rows]

    def _update_document(
        self,
        document_id: str,
        chunks: Optional[list[Chunk]],
        last_indexed: Optional[datetime],
        updated_at: Optional[datetime],
    ) -> Optional[Document]:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT id FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
            if row is None:
                return None

            if chunks is not None:
                self._replace_chunks(conn, document_id, chunks)
            if last_indexed is not None:
                conn.execute(
                    "UPDATE documents SET last_indexed = ? WHERE id = ?",
                    (_format_timestamp(last_indexed), document_id),
                )
            # updated_at is kept unless set explicitly
            if updated_at is not None:
                conn.execute(
                    "UPDATE documents SET updated_at = ? WHERE id = ?",
                    (_format_timestamp(updated_at), document_id),
                )

            row = conn.execute(
                "SELECT * FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
            return self._load_document(conn, row)

    @staticmethod
    def _replace_chunks(
        conn: sqlite3.Connection, document_id: str, chunks: list[Chunk]
    ) -> None:
        conn.execute(
            "DELETE FROM vectors WHERE chunk_id IN (SELECT id FROM chunks WHERE document_id = ?)",
            (document_id,),
        )
        conn.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
        for chunk in chunks:
            conn.execute(
                """INSERT INTO chunks (id, document_id, ordinal, content, start_offset, end_offset)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    chunk.id,
                    document_id,
                    chunk.ordinal,
                    chunk.content,
                    chunk.metadata.start_offset,
                    chunk.metadata.end_offset,
                ),
            )
            if chunk.has_embedding:
                conn.execute(
                    "INSERT INTO vectors (chunk_id, embedding) VALUES (?, ?)",
                    (chunk.id, np.asarray(chunk.embedding, dtype=np.float32).tobytes()),
                )

    @staticmethod
    def _load_document(conn: sqlite3.Connection, row: sqlite3.Row) -> Document:
        cursor = conn.execute(
            """SELECT c.ordinal, c.content, c.start_offset, c.end_offset, v.embedding
               FROM chunks c LEFT JOIN vectors v ON c.id = v.chunk_id
               WHERE c.document_id = ? ORDER BY c.ordinal""",
            (row["id"],),
        )
        chunks = [
            Chunk(
                document_id=row["id"],
                ordinal=chunk_row["ordinal"],
                content=chunk_row["content"],
                document_title=row["title"],
                metadata=ChunkMetadata(
                    type=row["type"],
                    category=row["category"],
                    start_offset=chunk_row["start_offset"] or 0,
                    end_offset=chunk_row["end_offset"] or 0,
                ),
                embedding=(
                    np.frombuffer(chunk_row["embedding"], dtype=np.float32).tolist()
                    if chunk_row["embedding"] is not None
                    else []
                ),
            )
            for chunk_row in cursor
        ]
        return Document(
            id=row["id"],
            vendor_id=row["vendor_id"],
            title=row["title"],
            content=row["content"],
            type=row["type"],
            category=row["category"],
            metadata=json.loads(row["metadata"]),
            chunks=chunks,
            last_indexed=_parse_timestamp(row["last_indexed"]),
            updated_at=_parse_timestamp(row["updated_at"]),
            is_active=bool(row["is_active"]),
        )

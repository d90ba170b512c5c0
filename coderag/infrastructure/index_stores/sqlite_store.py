"""
SQLite Index Store

Persistent storage for documents, chunks, keyword postings and vectors.
Uses SQLite with FTS5 for keyword search and a full scan for vectors.
"""

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from coderag.core.errors import IndexStoreError
from coderag.core.models.document import (
    Chunk,
    Document,
    IndexStats,
    SearchMethod,
    SearchResult,
)
from coderag.core.strategies.scoring import cosine_similarities, normalize_rank_score

logger = logging.getLogger(__name__)

DB_FILENAME = "index.sqlite"

# Little-endian float32
VECTOR_DTYPE = np.dtype("<f4")

SCHEMA = """
    CREATE TABLE IF NOT EXISTS documents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        repo TEXT NOT NULL,
        file_path TEXT NOT NULL,
        file_hash TEXT NOT NULL,
        language TEXT,
        indexed_at TEXT NOT NULL,
        UNIQUE(repo, file_path)
    );

    CREATE TABLE IF NOT EXISTS chunks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        doc_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
        start_line INTEGER NOT NULL,
        end_line INTEGER NOT NULL,
        content TEXT NOT NULL,
        chunk_type TEXT DEFAULT 'code',
        UNIQUE(doc_id, start_line)
    );

    CREATE INDEX IF NOT EXISTS idx_chunks_doc ON chunks(doc_id);

    -- Keyword postings, keyed by chunk rowid
    CREATE VIRTUAL TABLE IF NOT EXISTS chunks_fts USING fts5(
        content,
        file_path,
        tokenize='porter unicode61'
    );

    CREATE TABLE IF NOT EXISTS vectors (
        chunk_id INTEGER PRIMARY KEY REFERENCES chunks(id) ON DELETE CASCADE,
        embedding BLOB NOT NULL
    );
"""

RESULT_COLUMNS = """
    c.id AS chunk_id,
    c.content,
    c.start_line,
    c.end_line,
    d.file_path,
    d.repo,
    d.language
"""


def build_match_query(query: str) -> str:
    """Build an FTS5 query: every term required, each as a prefix."""
    terms = [term.replace('"', "") for term in query.split()]
    return " AND ".join(f'"{term}"*' for term in terms if term)


def encode_vector(vector: Sequence[float]) -> bytes:
    return np.asarray(vector, dtype=VECTOR_DTYPE).tobytes()


def decode_vector(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype=VECTOR_DTYPE)


class SQLiteIndexStore:
    """
    Index store backed by one SQLite file per data directory.

    Connections are thread-local; writes go through a single lock so a
    document's chunk set is always replaced as a whole.
    """

    def __init__(self, data_dir: str | Path):
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._db_path = self._data_dir / DB_FILENAME
        self._local = threading.local()
        self._write_lock = threading.Lock()
        self._connections: list[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()
        self._closed = False
        self._init_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def __enter__(self) -> "SQLiteIndexStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get_conn(self) -> sqlite3.Connection:
        """Get thread-local connection."""
        if self._closed:
            raise IndexStoreError(f"Index store is closed: {self._db_path}")

        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA foreign_keys=ON")
            self._local.conn = conn
            with self._connections_lock:
                self._connections.append(conn)
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        conn = self._get_conn()
        with self._write_lock:
            conn.executescript(SCHEMA)
            conn.commit()

    def close(self) -> None:
        """Close every connection opened by this store."""
        with self._connections_lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
            self._closed = True
        self._local = threading.local()

    def has_changed(self, collection: str, file_path: str, file_hash: str) -> bool:
        document = self.get_document(collection, file_path)
        return document is None or document.file_hash != file_hash

    def get_document(self, collection: str, file_path: str) -> Optional[Document]:
        row = self._get_conn().execute(
            """
            SELECT repo, file_path, file_hash, language, indexed_at
            FROM documents WHERE repo = ? AND file_path = ?
            """,
            (collection, file_path),
        ).fetchone()
        if row is None:
            return None
        return Document(
            collection=row["repo"],
            file_path=row["file_path"],
            file_hash=row["file_hash"],
            language=row["language"],
            indexed_at=row["indexed_at"],
        )

    def index_document(
        self,
        collection: str,
        file_path: str,
        file_hash: str,
        chunks: Sequence[Chunk],
    ) -> None:
        """
        Replace a document and its chunk set in one transaction.

        Args:
            collection: Collection name
            file_path: Path relative to the collection root
            file_hash: Content hash
            chunks: New chunk set

        Raises:
            IndexStoreError: If anything fails; nothing is changed then
        """
        language = chunks[0].language if chunks else "unknown"
        now = datetime.now(timezone.utc).isoformat()
        conn = self._get_conn()

        with self._write_lock:
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO documents (repo, file_path, file_hash, language, indexed_at)
                        VALUES (?, ?, ?, ?, ?)
                        ON CONFLICT(repo, file_path) DO UPDATE SET
                            file_hash = excluded.file_hash,
                            language = excluded.language,
                            indexed_at = excluded.indexed_at
                        """,
                        (collection, file_path, file_hash, language, now),
                    )
                    doc_id = conn.execute(
                        "SELECT id FROM documents WHERE repo = ? AND file_path = ?",
                        (collection, file_path),
                    ).fetchone()["id"]

                    self._delete_chunks(conn, doc_id)

                    for chunk in chunks:
                        cursor = conn.execute(
                            """
                            INSERT INTO chunks (doc_id, start_line, end_line, content, chunk_type)
                            VALUES (?, ?, ?, ?, ?)
                            """,
                            (
                                doc_id,
                                chunk.start_line,
                                chunk.end_line,
                                chunk.content,
                                chunk.type.value,
                            ),
                        )
                        conn.execute(
                            "INSERT INTO chunks_fts (rowid, content, file_path) VALUES (?, ?, ?)",
                            (cursor.lastrowid, chunk.content, file_path),
                        )
            except sqlite3.Error as e:
                logger.error(f"Failed to index {collection}:{file_path}: {e}")
                raise IndexStoreError(
                    f"Failed to index {collection}:{file_path}: {e}"
                ) from e

        logger.debug(f"Indexed {collection}:{file_path} ({len(chunks)} chunks)")

    def _delete_chunks(self, conn: sqlite3.Connection, doc_id: int) -> None:
        """Delete a document's vectors, postings and chunks."""
        conn.execute(
            "DELETE FROM vectors WHERE chunk_id IN (SELECT id FROM chunks WHERE doc_id = ?)",
            (doc_id,),
        )
        conn.execute(
            "DELETE FROM chunks_fts WHERE rowid IN (SELECT id FROM chunks WHERE doc_id = ?)",
            (doc_id,),
        )
        conn.execute("DELETE FROM chunks WHERE doc_id = ?", (doc_id,))

    def delete_document(self, collection: str, file_path: str) -> bool:
        conn = self._get_conn()
        with self._write_lock:
            try:
                with conn:
                    row = conn.execute(
                        "SELECT id FROM documents WHERE repo = ? AND file_path = ?",
                        (collection, file_path),
                    ).fetchone()
                    if row is None:
                        return False
                    self._delete_chunks(conn, row["id"])
                    conn.execute("DELETE FROM documents WHERE id = ?", (row["id"],))
            except sqlite3.Error as e:
                raise IndexStoreError(
                    f"Failed to delete {collection}:{file_path}: {e}"
                ) from e

        logger.debug(f"Deleted {collection}:{file_path}")
        return True

    def document_paths(self, collection: str) -> list[str]:
        rows = self._get_conn().execute(
            "SELECT file_path FROM documents WHERE repo = ? ORDER BY file_path",
            (collection,),
        ).fetchall()
        return [row["file_path"] for row in rows]

    def store_vectors(
        self, collection: str, file_path: str, vectors: Sequence[Sequence[float]]
    ) -> int:
        """
        Attach vectors to a document's chunks.

        Vector i belongs to the i-th chunk by ascending start line; callers
        must embed chunks in that order. Extra chunks or vectors are ignored.

        Returns:
            Number of vectors stored
        """
        conn = self._get_conn()

        with self._write_lock:
            doc = conn.execute(
                "SELECT id FROM documents WHERE repo = ? AND file_path = ?",
                (collection, file_path),
            ).fetchone()
            if doc is None:
                logger.warning(f"No document for vectors: {collection}:{file_path}")
                return 0

            chunk_ids = [
                row["id"]
                for row in conn.execute(
                    "SELECT id FROM chunks WHERE doc_id = ? ORDER BY start_line ASC",
                    (doc["id"],),
                )
            ]

            if len(chunk_ids) != len(vectors):
                logger.warning(
                    f"Vector count mismatch for {collection}:{file_path}: "
                    f"{len(vectors)} vectors, {len(chunk_ids)} chunks"
                )

            pairs = [
                (chunk_id, encode_vector(vector))
                for chunk_id, vector in zip(chunk_ids, vectors)
            ]
            try:
                with conn:
                    conn.executemany(
                        "INSERT OR REPLACE INTO vectors (chunk_id, embedding) VALUES (?, ?)",
                        pairs,
                    )
            except sqlite3.Error as e:
                raise IndexStoreError(
                    f"Failed to store vectors for {collection}:{file_path}: {e}"
                ) from e

        return len(pairs)

    def lexical_search(
        self, query: str, limit: int = 10, collection: str | None = None
    ) -> list[SearchResult]:
        """
        Keyword search with bm25 ranking.

        Every query term must match, each as a prefix. Scores are
        normalized to [0, 1) without changing the bm25 order.
        """
        match_query = build_match_query(query)
        if not match_query or limit <= 0:
            return []

        clauses = ["chunks_fts MATCH ?"]
        params: list = [match_query]
        if collection is not None:
            clauses.append("d.repo = ?")
            params.append(collection)
        params.append(limit)
        where = " AND ".join(clauses)

        try:
            rows = self._get_conn().execute(
                f"""
                SELECT {RESULT_COLUMNS},
                    bm25(chunks_fts, 1.0, 5.0) AS score
                FROM chunks_fts
                JOIN chunks c ON c.id = chunks_fts.rowid
                JOIN documents d ON d.id = c.doc_id
                WHERE {where}
                ORDER BY score ASC, c.id ASC
                LIMIT ?
                """,
                params,
            ).fetchall()
        except sqlite3.OperationalError as e:
            logger.warning(f"Keyword query rejected ({match_query!r}): {e}")
            return []

        return [
            self._to_result(row, normalize_rank_score(row["score"]), SearchMethod.KEYWORD)
            for row in rows
        ]

    def vector_search(
        self,
        query_vector: Sequence[float],
        limit: int = 10,
        collection: str | None = None,
    ) -> list[SearchResult]:
        """Cosine similarity against every stored vector."""
        if limit <= 0:
            return []

        sql = f"""
            SELECT {RESULT_COLUMNS}, v.embedding
            FROM vectors v
            JOIN chunks c ON c.id = v.chunk_id
            JOIN documents d ON d.id = c.doc_id
        """
        params: list = []
        if collection is not None:
            sql += " WHERE d.repo = ?"
            params.append(collection)
        sql += " ORDER BY c.id ASC"

        rows = self._get_conn().execute(sql, params).fetchall()
        if not rows:
            return []

        query = np.asarray(query_vector, dtype=np.float64)
        scores = cosine_similarities(query, [decode_vector(row["embedding"]) for row in rows])

        ranked = sorted(range(len(rows)), key=lambda i: scores[i], reverse=True)[:limit]
        return [
            self._to_result(rows[i], float(scores[i]), SearchMethod.SEMANTIC)
            for i in ranked
        ]

    def stats(self) -> IndexStats:
        conn = self._get_conn()
        documents = conn.execute("SELECT COUNT(*) AS count FROM documents").fetchone()
        chunks = conn.execute("SELECT COUNT(*) AS count FROM chunks").fetchone()
        vectors = conn.execute("SELECT COUNT(*) AS count FROM vectors").fetchone()
        repos = conn.execute("SELECT DISTINCT repo FROM documents ORDER BY repo").fetchall()

        return IndexStats(
            document_count=documents["count"],
            chunk_count=chunks["count"],
            vector_count=vectors["count"],
            collections=[row["repo"] for row in repos],
        )

    @staticmethod
    def _to_result(row: sqlite3.Row, score: float, method: SearchMethod) -> SearchResult:
        """Map a joined chunk/document row to a search result."""
        return SearchResult(
            file_path=row["file_path"],
            content=row["content"],
            start_line=row["start_line"],
            end_line=row["end_line"],
            language=row["language"],
            collection=row["repo"],
            score=score,
            method=method,
        )

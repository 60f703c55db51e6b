"""Database schema for the SQLite document store."""

SCHEMA = """
-- Documents table: vendor-owned documents and their index timestamps
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    vendor_id TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    type TEXT NOT NULL DEFAULT 'other',
    category TEXT NOT NULL DEFAULT 'other',
    metadata TEXT NOT NULL DEFAULT '{}',  -- JSON object
    is_active INTEGER NOT NULL DEFAULT 1,
    last_indexed TEXT,                    -- ISO-8601, NULL until first index write
    updated_at TEXT NOT NULL
);

-- Chunks table: id is "<document_id>_<ordinal>"
CREATE TABLE IF NOT EXISTS chunks (
    id TEXT PRIMARY KEY,
    document_id TEXT NOT NULL,
    ordinal INTEGER NOT NULL,
    content TEXT NOT NULL,
    start_offset INTEGER,
    end_offset INTEGER,
    FOREIGN KEY (document_id) REFERENCES documents(id)
);

-- Vectors table: float32 embeddings, only for chunks that have one
CREATE TABLE IF NOT EXISTS vectors (
    chunk_id TEXT PRIMARY KEY,
    embedding BLOB NOT NULL,
    FOREIGN KEY (chunk_id) REFERENCES chunks(id)
);

-- Indexes for efficient queries
CREATE INDEX IF NOT EXISTS idx_documents_vendor ON documents(vendor_id, is_active);
CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id);
"""

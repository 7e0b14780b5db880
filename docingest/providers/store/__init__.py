"""Chunk store providers.

SQLiteChunkStore keeps document records and embedded chunks in
data/docingest.db.  Embeddings are stored as JSON arrays.
"""

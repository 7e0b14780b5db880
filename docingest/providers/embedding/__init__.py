"""Embedding provider implementations.

    OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims) by default;
    also serves OpenAI-compatible endpoints through ``openai_base_url``.
"""

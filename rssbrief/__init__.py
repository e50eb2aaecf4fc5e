"""
RSS Brief Backend

Feed ingestion and brief-generation pipeline.
Crawls followed RSS/Atom feeds, summarizes new articles with an LLM,
and delivers scheduled email digests.
"""

__version__ = "1.0.0"

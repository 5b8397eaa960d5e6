"""
LanceDB Vector Index

Context retrieval for the planning stage.

Modules:
    retriever: LanceDBContextRetriever (cosine search, kind filter, indexing)
"""

from ontology_agent.storage.lancedb.retriever import LanceDBContextRetriever

__all__ = ["LanceDBContextRetriever"]

"""
ChromaDB-backed retriever.

Documents live in one collection whose metadata carries ``title``,
``category``, ``source_page`` and ``source_file``; images live in a
second collection whose metadata carries ``title`` and ``url``.
ChromaDB is synchronous, so every query runs in the default executor.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any

import chromadb

from rrchat.core.config import settings
from rrchat.core.errors import EmbeddingError
from rrchat.schemas.chat import RequestOverrides, RetrievalMode
from rrchat.schemas.retrieval import DocumentRecord, SupportingImageRecord
from rrchat.services.embedding import OpenAIEmbeddingService
from rrchat.services.interfaces import EmbeddingService
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.services.vector_store")

# Thread-local storage for ChromaDB clients (one per executor thread)
_thread_local = threading.local()
_chroma_client_lock = threading.Lock()

_INCLUDE = ["documents", "metadatas", "distances"]


def _get_persist_directory(persist_directory: str | None = None) -> str:
    """
    Resolve the directory where ChromaDB data is stored.
    Defaults to rrchat/vector_db/chroma_db.
    """
    if persist_directory is not None:
        return persist_directory
    if settings.chromadb_persist_directory:
        return settings.chromadb_persist_directory
    base_dir = Path(__file__).resolve().parents[1]
    return str(base_dir / "vector_db" / "chroma_db")


def get_chroma_client(persist_directory: str | None = None) -> chromadb.ClientAPI:
    """Return this thread's persistent ChromaDB client."""
    path = _get_persist_directory(persist_directory)
    if getattr(_thread_local, "persist_path", None) != path:
        with _chroma_client_lock:
            _thread_local.chroma_client = chromadb.PersistentClient(
                path=path,
                settings=chromadb.Settings(anonymized_telemetry=False),
            )
            _thread_local.persist_path = path
    return _thread_local.chroma_client


class ChromaRetriever:
    """
    Retriever over two ChromaDB collections.

    Every leg queries by embedding: ``vector`` uses the question
    embedding, ``text`` embeds the planned search query with the same
    service that embedded the corpus, and ``hybrid`` runs the question
    embedding first, filling remaining slots from the search query.
    ChromaDB's built-in embedding function is never used, so all legs
    share the collection's dimensionality.  Semantic captions and
    ranking have no ChromaDB equivalent and are ignored.
    """

    def __init__(
        self,
        embeddings: EmbeddingService | None = None,
        client: Any | None = None,
        documents_collection: str | None = None,
        images_collection: str | None = None,
    ):
        self._embeddings = embeddings or OpenAIEmbeddingService()
        self._client = client
        self._documents_collection = documents_collection or settings.documents_collection
        self._images_collection = images_collection or settings.images_collection

    @property
    def client(self) -> Any:
        return self._client if self._client is not None else get_chroma_client()

    async def query_documents(
        self,
        query: str | None,
        embedding: list[float] | None,
        overrides: RequestOverrides,
    ) -> list[DocumentRecord]:
        if overrides.semantic_captions or overrides.semantic_ranker:
            logger.debug("[RETRIEVAL] Semantic captions/ranker requested; not supported by ChromaDB")

        mode = overrides.retrieval_mode
        top = overrides.top
        where = _category_filter(overrides)

        hits: list[tuple[str, str, dict]] = []
        if embedding and mode != RetrievalMode.TEXT:
            hits = await self._query(self._documents_collection, embedding, top, where)

        if query and mode != RetrievalMode.VECTOR and len(hits) < top:
            query_vector = await self._embed_query(query)
            seen = {hit_id for hit_id, _, _ in hits}
            for hit in await self._query(self._documents_collection, query_vector, top, where):
                if hit[0] not in seen:
                    hits.append(hit)
                    seen.add(hit[0])

        documents = [_to_document(hit_id, text, meta) for hit_id, text, meta in hits[:top]]
        logger.info("[RETRIEVAL] %d document(s) for mode=%s", len(documents), mode.value)
        return documents

    async def query_images(
        self,
        query: str | None,
        embedding: list[float],
        overrides: RequestOverrides,
    ) -> list[SupportingImageRecord]:
        hits = await self._query(
            self._images_collection, embedding, overrides.top, _category_filter(overrides),
        )
        images = [
            SupportingImageRecord(title=(meta or {}).get("title", ""), url=meta["url"])
            for _, _, meta in hits
            if meta and meta.get("url")
        ]
        logger.info("[RETRIEVAL] %d image(s)", len(images))
        return images

    async def _embed_query(self, query: str) -> list[float]:
        vector = await self._embeddings.generate_embedding(query)
        if not vector:
            raise EmbeddingError("Failed to get embedding for the search query")
        return vector

    async def _query(
        self,
        collection_name: str,
        embedding: list[float],
        top: int,
        where: dict | None,
    ) -> list[tuple[str, str, dict]]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self._search, collection_name, embedding, top, where,
        )

    # ── Sync helpers (executor threads) ─────────────────────────────

    def _search(
        self,
        collection_name: str,
        embedding: list[float],
        top: int,
        where: dict | None,
    ) -> list[tuple[str, str, dict]]:
        collection = self.client.get_collection(name=collection_name)
        results = collection.query(
            query_embeddings=[embedding], n_results=top, where=where, include=_INCLUDE,
        )
        return _flatten(results)


def _category_filter(overrides: RequestOverrides) -> dict | None:
    if not overrides.exclude_category:
        return None
    return {"category": {"$ne": overrides.exclude_category}}


def _flatten(results: dict[str, Any]) -> list[tuple[str, str, dict]]:
    """Unpack the first query row of a ChromaDB result into (id, text, metadata)."""
    ids = (results.get("ids") or [[]])[0]
    texts = (results.get("documents") or [[]])[0] or []
    metas = (results.get("metadatas") or [[]])[0] or []
    return [
        (
            str(hit_id),
            texts[idx] if idx < len(texts) and texts[idx] is not None else "",
            metas[idx] if idx < len(metas) and metas[idx] is not None else {},
        )
        for idx, hit_id in enumerate(ids)
    ]


def _to_document(hit_id: str, text: str, meta: dict) -> DocumentRecord:
    page = meta.get("source_page")
    return DocumentRecord(
        id=hit_id,
        title=str(meta.get("title") or meta.get("source_file") or hit_id),
        content=text,
        category=meta.get("category"),
        source_page=str(page) if page is not None else None,
        source_file=meta.get("source_file"),
    )

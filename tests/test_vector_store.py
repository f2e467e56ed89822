"""
Tests for the ChromaDB retriever.

Most cases run against an in-memory fake client; TestEphemeralCollection
uses a real ChromaDB collection with fixed-dimension embeddings so every
retrieval mode queries the same vector space.
"""
import asyncio
import uuid

import chromadb
import pytest

from rrchat.core.errors import EmbeddingError
from rrchat.schemas.chat import RequestOverrides, RetrievalMode
from rrchat.services.vector_store import ChromaRetriever


class KeyedEmbeddings:
    """Embeds known texts to fixed vectors and records every call."""

    def __init__(self, vectors):
        self.vectors = vectors
        self.calls = []

    async def generate_embedding(self, text):
        self.calls.append(text)
        return self.vectors.get(text, [])


def result(*hits):
    """Build a ChromaDB query result from (id, text, metadata) hits."""
    return {
        "ids": [[h[0] for h in hits]],
        "documents": [[h[1] for h in hits]],
        "metadatas": [[h[2] for h in hits]],
        "distances": [[0.1] * len(hits)],
    }


class FakeCollection:
    """Answers each query embedding with a preset result."""

    def __init__(self, results=None):
        self.results = {tuple(k): v for k, v in (results or {}).items()}
        self.queries = []

    def query(self, query_embeddings=None, query_texts=None, n_results=10, where=None, include=None):
        self.queries.append({
            "embeddings": query_embeddings, "texts": query_texts, "n": n_results, "where": where,
        })
        return self.results.get(tuple(query_embeddings[0]), result())


class FakeClient:
    def __init__(self, **collections):
        self.collections = collections

    def get_collection(self, name):
        return self.collections[name]


DOC_A = ("a", "dental covered", {"title": "planA", "category": "benefits", "source_page": 3})
DOC_B = ("b", "vision excluded", {"title": "planB"})
DOC_C = ("c", "copay is $20", {"source_file": "copay.pdf"})

QUESTION_VECTOR = (0.1, 0.2)
QUERY_VECTOR = (0.3, 0.4)


def make_retriever(documents=None, images=None, embeddings=None):
    client = FakeClient(documents=documents or FakeCollection(), images=images or FakeCollection())
    return ChromaRetriever(
        embeddings or KeyedEmbeddings({"dental": list(QUERY_VECTOR)}),
        client=client,
        documents_collection="documents",
        images_collection="images",
    )


class TestQueryDocuments:

    def test_hybrid_fills_from_query_embedding_after_question_hits(self):
        collection = FakeCollection({
            QUESTION_VECTOR: result(DOC_A),
            QUERY_VECTOR: result(DOC_A, DOC_B, DOC_C),
        })
        retriever = make_retriever(documents=collection)

        documents = asyncio.run(
            retriever.query_documents("dental", list(QUESTION_VECTOR), RequestOverrides(top=3)),
        )

        assert [d.id for d in documents] == ["a", "b", "c"]
        assert documents[0].title == "planA"
        assert documents[0].source_page == "3"
        assert documents[2].title == "copay.pdf"
        assert all(q["texts"] is None for q in collection.queries)

    def test_hybrid_skips_query_leg_when_question_hits_fill_top(self):
        embeddings = KeyedEmbeddings({"dental": list(QUERY_VECTOR)})
        collection = FakeCollection({QUESTION_VECTOR: result(DOC_A, DOC_B)})
        retriever = make_retriever(documents=collection, embeddings=embeddings)

        documents = asyncio.run(
            retriever.query_documents("dental", list(QUESTION_VECTOR), RequestOverrides(top=2)),
        )

        assert len(documents) == 2
        assert embeddings.calls == []

    def test_text_mode_embeds_search_query(self):
        embeddings = KeyedEmbeddings({"dental": list(QUERY_VECTOR)})
        collection = FakeCollection({QUERY_VECTOR: result(DOC_B)})
        retriever = make_retriever(documents=collection, embeddings=embeddings)
        overrides = RequestOverrides(retrieval_mode=RetrievalMode.TEXT)

        documents = asyncio.run(retriever.query_documents("dental", list(QUESTION_VECTOR), overrides))

        assert [d.title for d in documents] == ["planB"]
        assert embeddings.calls == ["dental"]
        assert [q["embeddings"] for q in collection.queries] == [[list(QUERY_VECTOR)]]

    def test_vector_mode_ignores_query(self):
        embeddings = KeyedEmbeddings({"dental": list(QUERY_VECTOR)})
        collection = FakeCollection({QUESTION_VECTOR: result(DOC_A)})
        retriever = make_retriever(documents=collection, embeddings=embeddings)
        overrides = RequestOverrides(retrieval_mode=RetrievalMode.VECTOR, top=5)

        documents = asyncio.run(retriever.query_documents(None, list(QUESTION_VECTOR), overrides))

        assert [d.id for d in documents] == ["a"]
        assert len(collection.queries) == 1
        assert embeddings.calls == []

    def test_exclude_category_filter_and_top(self):
        collection = FakeCollection({QUESTION_VECTOR: result(DOC_A, DOC_B, DOC_C)})
        retriever = make_retriever(documents=collection)
        overrides = RequestOverrides(exclude_category="hr", top=2)

        documents = asyncio.run(retriever.query_documents("q", list(QUESTION_VECTOR), overrides))

        assert len(documents) == 2
        assert collection.queries[0]["where"] == {"category": {"$ne": "hr"}}
        assert collection.queries[0]["n"] == 2

    def test_unembeddable_query_is_fatal(self):
        retriever = make_retriever(embeddings=KeyedEmbeddings({}))
        overrides = RequestOverrides(retrieval_mode=RetrievalMode.TEXT)

        with pytest.raises(EmbeddingError):
            asyncio.run(retriever.query_documents("unknown", None, overrides))


class TestQueryImages:

    def test_images_need_url(self):
        images = FakeCollection({(0.9,): result(
            ("i1", "", {"title": "chart", "url": "https://blob/chart.png"}),
            ("i2", "", {"title": "no url"}),
        )})
        retriever = make_retriever(images=images)

        found = asyncio.run(retriever.query_images("dental", [0.9], RequestOverrides()))

        assert [(i.title, i.url) for i in found] == [("chart", "https://blob/chart.png")]
        assert all(q["texts"] is None for q in images.queries)


class TestEphemeralCollection:
    """Text, vector and hybrid retrieval against one real collection."""

    VECTORS = {
        "dental": [1.0, 0.0, 0.0, 0.0],
        "vision": [0.0, 1.0, 0.0, 0.0],
        "copay": [0.0, 0.0, 1.0, 0.0],
        "payroll": [0.0, 0.0, 0.0, 1.0],
    }

    @pytest.fixture
    def embeddings(self):
        return KeyedEmbeddings(self.VECTORS)

    @pytest.fixture
    def retriever(self, embeddings):
        client = chromadb.EphemeralClient(settings=chromadb.Settings(anonymized_telemetry=False))
        name = f"documents-{uuid.uuid4().hex}"
        collection = client.create_collection(name=name)
        collection.add(
            ids=["a", "b", "c", "d"],
            documents=["dental covered", "vision excluded", "copay is $20", "payroll dates"],
            embeddings=[
                self.VECTORS["dental"],
                self.VECTORS["vision"],
                self.VECTORS["copay"],
                self.VECTORS["payroll"],
            ],
            metadatas=[
                {"title": "planA", "category": "benefits"},
                {"title": "planB", "category": "benefits"},
                {"title": "copay", "category": "benefits"},
                {"title": "payroll", "category": "hr"},
            ],
        )
        return ChromaRetriever(
            embeddings, client=client, documents_collection=name,
        )

    def test_text_mode(self, retriever):
        overrides = RequestOverrides(retrieval_mode=RetrievalMode.TEXT, top=1)

        documents = asyncio.run(retriever.query_documents("vision", None, overrides))

        assert [d.title for d in documents] == ["planB"]

    def test_vector_mode(self, retriever):
        overrides = RequestOverrides(retrieval_mode=RetrievalMode.VECTOR, top=1)

        documents = asyncio.run(
            retriever.query_documents(None, self.VECTORS["copay"], overrides),
        )

        assert [d.title for d in documents] == ["copay"]

    def test_hybrid_with_excluded_category_runs_both_legs(self, retriever, embeddings):
        overrides = RequestOverrides(exclude_category="hr", top=4)

        documents = asyncio.run(
            retriever.query_documents("vision", self.VECTORS["dental"], overrides),
        )

        assert documents[0].title == "planA"
        assert {d.title for d in documents} == {"planA", "planB", "copay"}
        assert embeddings.calls == ["vision"]

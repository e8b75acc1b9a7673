"""Unit tests for AstraVectorStore against a mocked collection handle."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from astra_store.audit.logger import JsonlAuditLogger
from astra_store.bulk import BulkExecutor
from astra_store.vector_store import AstraVectorStore
from contracts.audit import AuditEvent
from contracts.errors import BackendWriteError, BulkTimeout, UnsupportedFilterShape
from contracts.filter import and_, eq, group, gte
from contracts.vector_db import SearchRequest, StoredDocument


# ── Helpers ─────────────────────────────────────────────────────────


def _mock_collection(
    records: list[dict] | None = None, *, vectorized: bool = False
) -> MagicMock:
    col = MagicMock()
    col.name = "vector_store"
    col.is_vectorized.return_value = vectorized
    col.find.return_value = records or []
    col.insert_many.return_value = []
    col.delete_one.return_value = 1
    return col


def _mock_model(vector: list[float] | None = None) -> MagicMock:
    model = MagicMock()
    model.embed.return_value = vector or [0.1, 0.2, 0.3]
    return model


def _record(doc_id: str, similarity: float | None, **extra) -> dict:
    record = {"_id": doc_id, "embed": f"content of {doc_id}", "$vector": [0.1, 0.2], **extra}
    if similarity is not None:
        record["$similarity"] = similarity
    return record


# ── add ─────────────────────────────────────────────────────────────


class TestAdd:
    def test_empty_is_noop(self) -> None:
        col = _mock_collection()
        AstraVectorStore(col).add([])
        col.insert_many.assert_not_called()
        col.is_vectorized.assert_not_called()

    def test_inserts_in_chunks_unordered(self) -> None:
        col = _mock_collection()
        store = AstraVectorStore(col, insert_chunk_size=20)
        docs = [StoredDocument(id=f"d{i}", content="x", embedding=[0.1]) for i in range(45)]

        store.add(docs)

        assert col.insert_many.call_count == 3
        sizes = sorted(len(c.args[0]) for c in col.insert_many.call_args_list)
        assert sizes == [5, 20, 20]
        assert all(c.kwargs == {"ordered": False} for c in col.insert_many.call_args_list)
        inserted_ids = {r["_id"] for c in col.insert_many.call_args_list for r in c.args[0]}
        assert inserted_ids == {f"d{i}" for i in range(45)}

    def test_embedding_model_computes_vectors(self) -> None:
        col = _mock_collection()
        model = _mock_model([0.4, 0.5])
        AstraVectorStore(col, embedding_model=model).add([StoredDocument(id="d1", content="hello")])

        model.embed.assert_called_once_with("hello")
        (records,), _ = col.insert_many.call_args
        assert records[0]["$vector"] == [0.4, 0.5]

    def test_vectorized_collection_uses_vectorize(self) -> None:
        col = _mock_collection(vectorized=True)
        AstraVectorStore(col).add([StoredDocument(id="d1", content="hello")])

        (records,), _ = col.insert_many.call_args
        assert records[0]["$vectorize"] == "hello"
        assert records[0]["embed"] == "hello"

    def test_backend_failure_propagates(self) -> None:
        col = _mock_collection()
        col.insert_many.side_effect = BackendWriteError("schema mismatch")
        store = AstraVectorStore(col)
        with pytest.raises(BackendWriteError, match="schema mismatch"):
            store.add([StoredDocument(content="x", embedding=[0.1])])


# ── delete / clear ──────────────────────────────────────────────────


class TestDelete:
    def test_empty_is_noop(self) -> None:
        col = _mock_collection()
        result = AstraVectorStore(col).delete([])
        assert result.requested == 0
        col.delete_one.assert_not_called()

    def test_one_delete_per_id(self) -> None:
        col = _mock_collection()
        result = AstraVectorStore(col).delete(["a", "b", "c"])

        assert result.requested == 3
        assert result.deleted == 3
        filters = sorted(c.args[0]["_id"] for c in col.delete_one.call_args_list)
        assert filters == ["a", "b", "c"]

    def test_missing_ids_not_counted(self) -> None:
        col = _mock_collection()
        col.delete_one.side_effect = lambda f: 0 if f["_id"] == "gone" else 1
        result = AstraVectorStore(col).delete(["a", "gone"])
        assert result.deleted == 1

    def test_timeout(self) -> None:
        release = threading.Event()
        col = _mock_collection()
        col.delete_one.side_effect = lambda _: release.wait(5)
        store = AstraVectorStore(col, bulk=BulkExecutor(concurrency=2, timeout_seconds=0.1))
        try:
            with pytest.raises(BulkTimeout) as excinfo:
                store.delete(["a", "b", "c", "d"])
        finally:
            release.set()
        assert excinfo.value.requested == 4

    def test_clear(self) -> None:
        col = _mock_collection()
        AstraVectorStore(col).clear()
        col.delete_all.assert_called_once_with()
        col.delete_one.assert_not_called()


# ── similarity search ───────────────────────────────────────────────


class TestSimilaritySearch:
    def test_threshold_selectivity(self) -> None:
        col = _mock_collection([
            _record("a", 0.95),
            _record("b", 0.81),
            _record("c", 0.40),
        ])
        store = AstraVectorStore(col, embedding_model=_mock_model())

        docs = store.similarity_search(
            SearchRequest(query="spring", top_k=3, similarity_threshold=0.8)
        )

        assert [d.id for d in docs] == ["a", "b"]
        assert [d.score for d in docs] == [0.95, 0.81]
        assert docs[0].content == "content of a"

    def test_results_without_score_are_dropped(self) -> None:
        col = _mock_collection([_record("a", None), _record("b", 0.5)])
        store = AstraVectorStore(col, embedding_model=_mock_model())
        docs = store.similarity_search(SearchRequest(query="q"))
        assert [d.id for d in docs] == ["b"]

    def test_sorts_by_client_vector(self) -> None:
        col = _mock_collection(vectorized=True)
        model = _mock_model([0.7, 0.7])
        store = AstraVectorStore(col, embedding_model=model)

        store.similarity_search(SearchRequest(query="spring", top_k=5))

        model.embed.assert_called_once_with("spring")
        args, kwargs = col.find.call_args
        assert args == (None,)
        assert kwargs["sort"] == {"$vector": [0.7, 0.7]}
        assert kwargs["limit"] == 5
        assert kwargs["include_similarity"] is True

    def test_sorts_by_vectorize_text(self) -> None:
        col = _mock_collection(vectorized=True)
        AstraVectorStore(col).similarity_search(SearchRequest(query="spring"))
        _, kwargs = col.find.call_args
        assert kwargs["sort"] == {"$vectorize": "spring"}

    def test_no_sort_without_vector_source(self) -> None:
        col = _mock_collection(vectorized=False)
        AstraVectorStore(col).similarity_search(SearchRequest(query="spring"))
        _, kwargs = col.find.call_args
        assert kwargs["sort"] is None

    def test_empty_query_skips_embedding(self) -> None:
        col = _mock_collection()
        model = _mock_model()
        AstraVectorStore(col, embedding_model=model).similarity_search(SearchRequest(query=""))
        model.embed.assert_not_called()
        _, kwargs = col.find.call_args
        assert kwargs["sort"] is None

    def test_filter_is_translated(self) -> None:
        col = _mock_collection()
        request = SearchRequest(
            query="q",
            filter_expression=and_(eq("genre", "drama"), gte("year", 2020)),
        )
        AstraVectorStore(col, embedding_model=_mock_model()).similarity_search(request)
        args, _ = col.find.call_args
        assert args[0] == {"$and": [{"genre": "drama"}, {"year": {"$gte": 2020}}]}

    def test_bad_filter_never_reaches_backend(self) -> None:
        col = _mock_collection()
        model = _mock_model()
        request = SearchRequest(query="q", filter_expression=and_(group(eq("a", 1)), eq("b", 2)))
        with pytest.raises(UnsupportedFilterShape):
            AstraVectorStore(col, embedding_model=model).similarity_search(request)
        col.find.assert_not_called()
        model.embed.assert_not_called()

    def test_by_text_shortcut(self) -> None:
        col = _mock_collection([_record("a", 0.2)])
        docs = AstraVectorStore(col, embedding_model=_mock_model()).similarity_search_by_text("q", top_k=2)
        assert [d.id for d in docs] == ["a"]
        _, kwargs = col.find.call_args
        assert kwargs["limit"] == 2


class TestSearchRequest:
    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_threshold_range(self, threshold: float) -> None:
        with pytest.raises(ValueError):
            SearchRequest(query="q", similarity_threshold=threshold)

    def test_top_k_positive(self) -> None:
        with pytest.raises(ValueError):
            SearchRequest(query="q", top_k=0)


# ── audit trail ─────────────────────────────────────────────────────


class TestAudit:
    def test_operations_are_audited(self, tmp_path: Path) -> None:
        audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
        col = _mock_collection([_record("a", 0.9)])
        store = AstraVectorStore(col, embedding_model=_mock_model(), audit_logger=audit)

        store.add([StoredDocument(id="a", content="x")])
        store.similarity_search(SearchRequest(query="q"))
        store.delete(["a"])
        store.clear()

        events = [e.event for e in audit.tail(10)]
        assert events == [
            AuditEvent.STORE_ADD,
            AuditEvent.STORE_SEARCH,
            AuditEvent.STORE_DELETE,
            AuditEvent.STORE_CLEAR,
        ]
        search = audit.query_by_event(AuditEvent.STORE_SEARCH)[0]
        assert search.collection == "vector_store"
        assert search.detail["kept"] == 1

    def test_failures_are_audited(self, tmp_path: Path) -> None:
        audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
        store = AstraVectorStore(_mock_collection(), audit_logger=audit)
        with pytest.raises(UnsupportedFilterShape):
            store.similarity_search(
                SearchRequest(query="q", filter_expression=and_(group(eq("a", 1)), eq("b", 2)))
            )

        (entry,) = audit.query_by_event(AuditEvent.STORE_ERROR)
        assert entry.detail["operation"] == "store.search"
        assert entry.detail["code"] == "UNSUPPORTED_FILTER_SHAPE"

"""
Tests for the in-memory semantic index.
"""
import asyncio

import numpy as np

from llm.index import TripIndex, record_to_text


def _build(records, embedder):
    return asyncio.run(TripIndex.build(records, embedder))


def test_record_to_text_skips_none_and_keeps_order():
    record = {"Trip_ID": "T1", "checkedInUserID": None, "Age": 30, "TripHour": 0}
    assert record_to_text(record) == "Trip_ID: T1; Age: 30; TripHour: 0"


def test_record_to_text_empty_record():
    assert record_to_text({"Age": None}) == ""


def test_query_returns_nearest_first(fake_embedder):
    records = [
        {"Trip_ID": "T1", "Pickup": "airport terminal"},
        {"Trip_ID": "T2", "Pickup": "downtown bar"},
        {"Trip_ID": "T3", "Pickup": "campus library"},
    ]
    index = _build(records, fake_embedder)
    docs = asyncio.run(index.query("downtown bar", 1))
    assert [d.metadata["Trip_ID"] for d in docs] == ["T2"]


def test_documents_keep_text_and_metadata(fake_embedder):
    records = [{"Trip_ID": "T1", "Age": None}]
    index = _build(records, fake_embedder)
    doc = index.documents[0]
    assert doc.text == "Trip_ID: T1"
    assert doc.metadata == {"Trip_ID": "T1", "Age": None}
    assert doc.row_index == 0


def test_ties_keep_insertion_order(fake_embedder):
    records = [{"Trip_ID": "same"}, {"Trip_ID": "same"}, {"Trip_ID": "same"}]
    index = _build(records, fake_embedder)
    docs = asyncio.run(index.query("same", 3))
    assert [d.row_index for d in docs] == [0, 1, 2]


def test_k_larger_than_index(fake_embedder):
    index = _build([{"a": "x"}, {"a": "y"}], fake_embedder)
    assert len(asyncio.run(index.query("x", 20))) == 2


def test_empty_index(fake_embedder):
    index = _build([], fake_embedder)
    assert len(index) == 0
    assert asyncio.run(index.query("anything", 5)) == []
    assert fake_embedder.query_calls == 0


def test_rebuild_leaves_old_index_untouched(fake_embedder):
    first = _build([{"Trip_ID": "OLD"}], fake_embedder)
    second = _build([{"Trip_ID": "NEW"}, {"Trip_ID": "NEWER"}], fake_embedder)
    assert [d.metadata["Trip_ID"] for d in first.documents] == ["OLD"]
    assert len(second) == 2


def test_search_with_zero_query_vector(fake_embedder):
    index = _build([{"a": "x"}, {"a": "y"}], fake_embedder)
    docs = index.search(np.zeros(fake_embedder.DIM, dtype="float32"), 2)
    assert [d.row_index for d in docs] == [0, 1]

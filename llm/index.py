from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from app import config


@dataclass
class TripDocument:
    """
    A single enriched trip with its embedding.
    """

    row_index: int
    text: str
    metadata: Dict[str, Any]
    embedding: np.ndarray


def record_to_text(record: Dict[str, Any]) -> str:
    """
    Flatten a record to "key: value; key: value" for embedding.
    None values are skipped; key order is preserved.
    """
    return "; ".join(f"{key}: {value}" for key, value in record.items() if value is not None)


class SentenceEmbedder:
    """
    Async facade over a local sentence-transformers model.

    The model is loaded on first use; encoding runs in a worker thread so the
    event loop is not blocked while a workbook is being indexed.
    """

    def __init__(self, model_name: str | None = None) -> None:
        self.model_name = model_name or config.EMBEDDING_MODEL
        self._model: SentenceTransformer | None = None

    def _get_model(self) -> SentenceTransformer:
        if self._model is None:
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def _encode(self, texts: List[str]) -> np.ndarray:
        vecs = self._get_model().encode(texts, convert_to_numpy=True)
        return np.asarray(vecs, dtype="float32")

    async def embed_documents(self, texts: Sequence[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, 0), dtype="float32")
        return await asyncio.to_thread(self._encode, list(texts))

    async def embed_query(self, text: str) -> np.ndarray:
        vecs = await asyncio.to_thread(self._encode, [text])
        return vecs[0]


def _unit_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms


class TripIndex:
    """
    In-memory nearest-neighbour index over enriched trip records.

    Built in one go from a record list; there is no incremental insert or
    delete. Rebuilding means creating a new TripIndex.
    """

    def __init__(self, documents: List[TripDocument], embedder: Any) -> None:
        self._documents = documents
        self._embedder = embedder
        if documents:
            self._matrix = _unit_rows(np.vstack([d.embedding for d in documents]).astype("float32"))
        else:
            self._matrix = np.zeros((0, 0), dtype="float32")

    @classmethod
    async def build(cls, records: List[Dict[str, Any]], embedder: Any) -> "TripIndex":
        texts = [record_to_text(r) for r in records]
        vectors = await embedder.embed_documents(texts)
        documents = [
            TripDocument(
                row_index=idx,
                text=text,
                metadata=dict(record),
                embedding=np.asarray(vectors[idx], dtype="float32"),
            )
            for idx, (record, text) in enumerate(zip(records, texts))
        ]
        return cls(documents, embedder)

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> List[TripDocument]:
        return list(self._documents)

    def search(self, query_vector: np.ndarray, k: int) -> List[TripDocument]:
        """Top-k documents by cosine similarity; equal scores keep insertion order."""
        if not self._documents or k <= 0:
            return []
        q = np.asarray(query_vector, dtype="float32")
        q_norm = np.linalg.norm(q) or 1.0
        scores = self._matrix @ (q / q_norm)
        scores = np.nan_to_num(scores, nan=-np.inf)
        order = np.argsort(-scores, kind="stable")
        return [self._documents[i] for i in order[:k]]

    async def query(self, text: str, k: int = 4) -> List[TripDocument]:
        """Embed ``text`` and return the k nearest documents."""
        if not self._documents:
            return []
        q_vec = await self._embedder.embed_query(text)
        return self.search(q_vec, k)

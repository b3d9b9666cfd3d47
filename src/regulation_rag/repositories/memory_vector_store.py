"""In-process vector store backed by a numpy matrix.

Scores every stored chunk by cosine similarity against the query, which
is fine for a few thousand chunks. Selected with VECTOR_BACKEND=memory for
local development without Supabase, seeded from VECTOR_SEED_FILE.

Seed file format, a JSON list of pre-embedded chunks:

    [{"text": "一 管理費 ... をいう。", "embedding": [0.01, ...], "metadata": {}}]
"""

import json
from pathlib import Path
from typing import Any

import numpy as np
import structlog

from regulation_rag.entities import RetrievedChunk

logger = structlog.get_logger(__name__)


class InMemoryVectorStore:
    """numpy implementation of the VectorStore protocol.

    Example:
        ```python
        store = InMemoryVectorStore()
        store.add_chunks(["一 管理費 ... をいう。"], [[0.1, 0.2, ...]])
        hits = await store.search(query_vector, threshold=0.3, max_results=5)
        ```
    """

    def __init__(self) -> None:
        self._texts: list[str] = []
        self._metadata: list[dict[str, Any]] = []
        self._matrix: np.ndarray | None = None

    def add_chunks(
        self,
        texts: list[str],
        vectors: list[list[float]],
        metadata: list[dict[str, Any]] | None = None,
    ) -> int:
        """Add pre-embedded chunks to the store.

        Args:
            texts: Chunk texts
            vectors: One embedding per text, all of the same dimension
            metadata: Optional per-chunk metadata

        Returns:
            Total number of chunks in the store
        """
        if len(texts) != len(vectors):
            raise ValueError("texts and vectors must have the same length")
        if metadata is not None and len(metadata) != len(texts):
            raise ValueError("metadata must have one entry per text")
        if not texts:
            return len(self._texts)

        rows = np.asarray(vectors, dtype=np.float32)
        norms = np.linalg.norm(rows, axis=1, keepdims=True)
        rows = rows / np.where(norms == 0, 1.0, norms)

        if self._matrix is None:
            self._matrix = rows
        else:
            if rows.shape[1] != self._matrix.shape[1]:
                raise ValueError(
                    f"dimension mismatch: store has {self._matrix.shape[1]}, got {rows.shape[1]}"
                )
            self._matrix = np.vstack([self._matrix, rows])

        self._texts.extend(texts)
        self._metadata.extend(metadata or [{} for _ in texts])
        return len(self._texts)

    def load_file(self, path: str | Path) -> int:
        """Add the chunks of a JSON seed file.

        Rows may name their text ``text``, ``chunk`` or ``content``.

        Returns:
            Total number of chunks in the store
        """
        rows = json.loads(Path(path).read_text(encoding="utf-8"))
        texts = [row.get("text") or row.get("chunk") or row.get("content") or "" for row in rows]
        total = self.add_chunks(
            texts,
            [row["embedding"] for row in rows],
            metadata=[row.get("metadata") or {} for row in rows],
        )
        logger.info("vector seed loaded", path=str(path), added=len(rows), total=total)
        return total

    async def search(
        self,
        vector: list[float],
        threshold: float,
        max_results: int,
    ) -> list[RetrievedChunk]:
        if self._matrix is None:
            return []

        query = np.asarray(vector, dtype=np.float32)
        norm = np.linalg.norm(query)
        if norm == 0:
            return []

        scores = self._matrix @ (query / norm)
        order = np.argsort(-scores, kind="stable")

        results = []
        for idx in order[:max_results]:
            score = float(scores[idx])
            if score < threshold:
                break
            results.append(
                RetrievedChunk(
                    text=self._texts[idx],
                    similarity=max(0.0, min(1.0, score)),
                    metadata=dict(self._metadata[idx]),
                )
            )
        return results

    async def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._texts)

#!/usr/bin/env python3
"""
Demo script for regulation RAG.

Runs entirely offline: the response cache, fuzzy key matching, chunk
ranking and threshold tuning are shown with sample regulation text.
Set OPENAI_API_KEY and pass --live to also ask one question end to end.
"""

import argparse
import asyncio
import time

from regulation_rag.api.dependencies import build_container
from regulation_rag.entities import RetrievedChunk
from regulation_rag.evaluator import FuzzyMatchEvaluator, QueryPair
from regulation_rag.services import CacheService, ResultRanker

SAMPLE_CHUNKS = [
    RetrievedChunk(
        text="管理費の支払いが遅れた場合には、理事長が督促を行うことができる。",
        similarity=0.46,
    ),
    RetrievedChunk(
        text="一 管理費 区分所有者が管理組合に納入する費用のうち、共用部分の通常の管理に要する経費に充てるものをいう。",
        similarity=0.40,
    ),
    RetrievedChunk(
        text="第25条 区分所有者は、敷地及び共用部分等の管理に要する経費に充てるため、管理費及び修繕積立金を管理組合に納入しなければならない。",
        similarity=0.43,
    ),
    RetrievedChunk(
        text="別表第4 住戸番号 101号室 102号室 103号室 201号室 管理費 月額12,000円",
        similarity=0.52,
    ),
]


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def demo_response_cache() -> None:
    """Demonstrate exact and fuzzy response cache lookups."""
    print_section("Response Cache")

    caches = CacheService.create()
    caches.store_response("修繕積立金とは", True, "修繕積立金は、一定年数の経過ごとに計画的に行う修繕などに充てる積立金です。")
    caches.store_response("総会の定足数は？", True, "総会の会議は、議決権総数の半数以上を有する組合員が出席しなければなりません。")

    queries = [
        ("修繕積立金とは？", True),  # exact after normalization
        ("修繕積立金について教えて", True),  # paraphrase
        ("修繕積立金とは", False),  # other mode
        ("駐車場の使用料", True),  # unrelated
    ]

    for question, rag in queries:
        start = time.perf_counter()
        answer = caches.lookup_response(question, rag)
        duration = (time.perf_counter() - start) * 1000
        mode = "RAG" if rag else "plain"
        status = "✓ HIT " if answer else "✗ MISS"
        print(f"\n  [{mode}] {question}")
        print(f"  {status} ({duration:.3f}ms)")

    stats = caches.stats()["response"]
    print(f"\n📊 Hits: {stats.total_hits}, Misses: {stats.total_misses}, Hit rate: {stats.hit_rate:.0%}")


def demo_ranking() -> None:
    """Demonstrate heuristic re-ranking of search hits."""
    print_section("Chunk Ranking")

    ranker = ResultRanker()
    question = "管理費とは"
    print(f"\n🔍 Question: {question}")
    print(f"{'Similarity':<12} {'Lexical':<10} {'Score':<10} Labels")
    print("-" * 60)

    for ranked in ranker.rank(SAMPLE_CHUNKS, question, k=4):
        preview = ranker.preview(ranked, question)
        print(
            f"{ranked.similarity:<12.2f} "
            f"{ranked.lexical_score:<10.2f} "
            f"{ranked.combined_score:<10.2f} "
            f"{'・'.join(preview.labels) or '-'}"
        )
        print(f"  {preview.preview[:60]}...")


def demo_threshold_tuning() -> None:
    """Demonstrate fuzzy-match threshold tuning."""
    print_section("Threshold Tuning")

    test_queries = [
        # Should match (same question)
        QueryPair("修繕積立金について教えて", "修繕積立金とは", should_match=True),
        QueryPair("管理費 滞納 督促", "管理費 滞納", should_match=True),
        QueryPair("理事会 招集 手続き", "理事会 招集", should_match=True),
        # Should not match (different question)
        QueryPair("駐車場の使用料", "修繕積立金とは", should_match=False),
        QueryPair("管理費 駐車場", "管理費 理事会", should_match=False),
    ]

    print(f"\n📋 Test query pairs: {len(test_queries)}")

    evaluator = FuzzyMatchEvaluator()
    evaluator.sweep_thresholds(test_queries, min_threshold=0.3, max_threshold=1.0, steps=8)
    print()
    print(evaluator.summary())

    threshold, result = evaluator.find_optimal_threshold("f1_score")
    print(f"\nBest f1_score: {threshold:.3f} ({result.f1_score:.2%})")


async def demo_live(question: str) -> None:
    """Ask one question through the full pipeline."""
    print_section("Live Question")

    container = build_container()
    try:
        for attempt in (1, 2):
            start = time.perf_counter()
            result = await container.orchestrator.answer([{"role": "user", "content": question}])
            duration = (time.perf_counter() - start) * 1000
            print(f"\n  Attempt {attempt}: cached={result.cached} ({duration:.0f}ms)")
            print(f"  States: {' → '.join(result.diagnostics['states'])}")
        print(f"\n{result.content}")
    finally:
        await container.close()


def main() -> None:
    """Run all demos."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--live", action="store_true", help="call OpenAI/Supabase for one question")
    parser.add_argument("--question", default="管理費とは", help="question for --live")
    args = parser.parse_args()

    print("\n🚀 Regulation RAG Demo")
    print("=" * 70)

    demo_response_cache()
    demo_ranking()
    demo_threshold_tuning()

    if args.live:
        asyncio.run(demo_live(args.question))

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()

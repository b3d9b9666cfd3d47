"""
Tests for chunk classification and heuristic ranking.
"""

import pytest
from conftest import ARTICLE_CHUNK, DEFINITION_CHUNK, UNMARKED_CHUNK

from regulation_rag.entities import RetrievedChunk
from regulation_rag.services import ResultRanker, classify, extract_keywords
from regulation_rag.services.ranker import is_what_is_question, keyword_weight


def test_classify_definition():
    tags = classify(DEFINITION_CHUNK.text)
    assert tags.is_definition
    assert not tags.has_article


def test_classify_article():
    tags = classify(ARTICLE_CHUNK.text)
    assert tags.has_article
    assert not tags.is_definition


def test_classify_housing_list():
    tags = classify("別表第4 住戸番号 101号室 102号室 201号室")
    assert tags.is_housing_list
    assert not tags.has_article


def test_classify_plain_text():
    tags = classify(UNMARKED_CHUNK.text)
    assert not (tags.is_definition or tags.has_article or tags.is_housing_list)


def test_extract_keywords():
    assert extract_keywords("管理費とは？") == ["管理費"]
    assert extract_keywords("管理費 修繕積立金 について教えて") == ["管理費", "修繕積立金"]
    assert len(extract_keywords("a1 b2 c3 d4 e5 f6 g7")) == 5


@pytest.mark.parametrize(("keyword", "weight"), [("管理費等", 1.5), ("管理費", 1.2), ("総会", 1.0)])
def test_keyword_weight(keyword, weight):
    assert keyword_weight(keyword) == weight


def test_what_is_detection():
    assert is_what_is_question("管理費とは")
    assert is_what_is_question("What is a quorum?")
    assert not is_what_is_question("管理費の支払い方法")


def test_definition_outranks_unmarked_at_equal_similarity(ranker):
    ranked = ranker.rank([UNMARKED_CHUNK, DEFINITION_CHUNK], "管理費とは", k=3)

    assert [r.chunk for r in ranked] == [DEFINITION_CHUNK, UNMARKED_CHUNK]
    assert ranked[0].is_definition
    assert ranked[0].combined_score > ranked[1].combined_score


def test_combined_score_formula(ranker):
    (ranked,) = ranker.rank([DEFINITION_CHUNK], "管理費とは", k=1)
    # keyword 1.2 + definition 8.0, no what-is scaling for definitions
    assert ranked.lexical_score == pytest.approx(9.2)
    assert ranked.combined_score == pytest.approx(0.4 * 0.3 + 9.2 * 0.7)


def test_what_is_scales_non_definitions(ranker):
    (plain,) = ranker.rank([UNMARKED_CHUNK], "管理費", k=1)
    (what_is,) = ranker.rank([UNMARKED_CHUNK], "管理費とは", k=1)
    assert plain.lexical_score == pytest.approx(1.2)
    assert what_is.lexical_score == pytest.approx(1.2 * 0.7)


def test_prefilter_drops_short_and_irrelevant_chunks(ranker):
    chunks = [
        RetrievedChunk(text="管理費", similarity=0.9),  # too short
        RetrievedChunk(text="管理費は毎月末日までに納入する。", similarity=0.05),  # too dissimilar
        RetrievedChunk(text="理事会は理事長が招集する。議長は理事長とする。", similarity=0.4),  # no keyword
        RetrievedChunk(text="総会の議決権は住戸一戸につき一個とする。", similarity=0.6),  # kept by similarity
    ]
    ranked = ranker.rank(chunks, "管理費とは", k=5)
    assert [r.text for r in ranked] == [chunks[3].text]


def test_housing_list_penalty_floors_lexical_score(ranker):
    housing = RetrievedChunk(text="別表第4 住戸番号 101号室 102号室 103号室", similarity=0.2)
    assert ranker.rank([housing], "住戸番号", k=3)[0].lexical_score == pytest.approx(1.5 - 2.0)
    assert ranker.rank([housing], "住戸番号", k=3)[0].combined_score == pytest.approx(0.2 * 0.3)


def test_top_k_limit(ranker):
    chunks = [RetrievedChunk(text=f"管理費に関する規定その{i}です。", similarity=0.5) for i in range(6)]
    assert len(ranker.rank(chunks, "管理費", k=3)) == 3


def test_preview_uses_relevant_parts(ranker):
    (ranked,) = ranker.rank([ARTICLE_CHUNK], "管理費", k=1)
    preview = ranker.preview(ranked, "管理費")

    assert preview.labels == ["条文"]
    assert preview.relevant_parts
    assert preview.preview.startswith("第25条")


def test_preview_truncates_without_relevant_parts():
    long_text = "理事会の運営に関する規定。" * 40
    chunk = RetrievedChunk(text=long_text, similarity=0.9)
    (ranked,) = ResultRanker().rank([chunk], "議事録", k=1)
    preview = ResultRanker().preview(ranked, "議事録")

    assert preview.relevant_parts == []
    assert preview.preview == long_text[:350] + "..."


def test_format_context(ranker):
    ranked = ranker.rank([DEFINITION_CHUNK, ARTICLE_CHUNK], "管理費", k=2)
    context = ResultRanker.format_context(ranked)

    blocks = context.split("\n\n---\n\n")
    assert len(blocks) == 2
    assert blocks[0].startswith("【文書1】（類似度: 40.0%・定義文）")
    assert blocks[1].startswith("【文書2】（類似度: 45.0%・条文）")

"""Unit tests for TextChunker and TableChunker."""

from __future__ import annotations

import pytest

from src.services.ingestion.chunker import (
    COLUMN_SEPARATOR,
    PARAGRAPH_SEPARATOR,
    TableChunker,
    TextChunker,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _paragraphs(*lengths: int) -> list[str]:
    """Distinct paragraphs of exactly the given lengths."""
    return [chr(ord("a") + i) * n for i, n in enumerate(lengths)]


def _rows(count: int) -> list[dict[str, str]]:
    return [{"nome": f"pessoa {i}", "idade": str(20 + i)} for i in range(count)]


# ---------------------------------------------------------------------------
# TextChunker
# ---------------------------------------------------------------------------


class TestTextChunkerBoundaries:
    """Chunk boundaries follow blank-line paragraph breaks."""

    def test_three_400_char_paragraphs_give_two_chunks(self) -> None:
        paras = _paragraphs(400, 400, 400)
        chunks = TextChunker(target_size=1000).chunk(PARAGRAPH_SEPARATOR.join(paras))

        # 400 + 2 + 400 = 802 fits; adding 2 + 400 would make 1204.
        assert len(chunks) == 2
        assert len(chunks[0]) == 802
        assert chunks[1] == paras[2]

    def test_separator_counts_towards_budget(self) -> None:
        paras = _paragraphs(499, 499)
        # 499 + 2 + 499 = 1000 -> still one chunk.
        assert len(TextChunker(target_size=1000).chunk("\n\n".join(paras))) == 1
        paras = _paragraphs(500, 499)
        # 500 + 2 + 499 = 1001 -> split.
        assert len(TextChunker(target_size=1000).chunk("\n\n".join(paras))) == 2

    def test_oversized_paragraph_is_never_split(self) -> None:
        paras = _paragraphs(50, 2500, 50)
        chunks = TextChunker(target_size=1000).chunk("\n\n".join(paras))

        assert chunks == paras
        assert len(chunks[1]) == 2500

    def test_blank_lines_with_whitespace_split_paragraphs(self) -> None:
        chunks = TextChunker(target_size=5).chunk("primeiro\n   \t\nsegundo")
        assert chunks == ["primeiro", "segundo"]

    def test_empty_paragraphs_are_dropped(self, sample_text_paragraphs: str) -> None:
        chunks = TextChunker(target_size=10).chunk(sample_text_paragraphs)
        assert len(chunks) == 3
        assert all(chunk.strip() for chunk in chunks)


class TestTextChunkerReconstruction:
    """Joining the chunks reproduces the paragraph sequence."""

    @pytest.mark.parametrize("target", [1, 80, 300, 5000])
    def test_reconstruction(self, target: int, sample_text_paragraphs: str) -> None:
        chunks = TextChunker(target_size=target).chunk(sample_text_paragraphs)

        expected = [p.strip() for p in sample_text_paragraphs.split("\n\n") if p.strip()]
        rebuilt = PARAGRAPH_SEPARATOR.join(chunks).split(PARAGRAPH_SEPARATOR)
        assert rebuilt == expected


class TestTextChunkerEdgeCases:
    def test_empty_text(self) -> None:
        assert TextChunker().chunk("") == []

    def test_whitespace_only_text(self) -> None:
        assert TextChunker().chunk(" \n\n \t ") == []

    def test_single_paragraph(self) -> None:
        assert TextChunker().chunk("  único parágrafo  ") == ["único parágrafo"]

    def test_non_positive_target_rejected(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(target_size=0)

    def test_default_target_size(self) -> None:
        assert TextChunker().target_size == 1000


# ---------------------------------------------------------------------------
# TableChunker
# ---------------------------------------------------------------------------


class TestTableChunkerGrouping:
    def test_25_rows_give_20_and_5(self) -> None:
        chunks = TableChunker(group_size=20).chunk(_rows(25))

        assert len(chunks) == 2
        assert len(chunks[0].splitlines()) == 21  # header + 20
        assert len(chunks[1].splitlines()) == 6  # header + 5

    def test_row_count_is_conserved(self) -> None:
        rows = _rows(47)
        chunks = TableChunker(group_size=10).chunk(rows)

        data_lines = sum(len(chunk.splitlines()) - 1 for chunk in chunks)
        assert data_lines == 47

    def test_every_chunk_starts_with_first_row_header(self) -> None:
        chunks = TableChunker(group_size=3).chunk(_rows(7))
        for chunk in chunks:
            assert chunk.splitlines()[0] == f"nome{COLUMN_SEPARATOR}idade"

    def test_empty_rows_give_no_chunks(self) -> None:
        assert TableChunker().chunk([]) == []

    def test_non_positive_group_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            TableChunker(group_size=-1)


class TestTableChunkerRendering:
    def test_values_follow_header_order(self) -> None:
        rows = [{"a": "1", "b": "2"}, {"b": "4", "a": "3"}]
        chunk = TableChunker().chunk(rows)[0]
        assert chunk.splitlines() == ["a ; b", "1 ; 2", "3 ; 4"]

    def test_missing_and_none_values_render_empty(self) -> None:
        rows = [{"a": "1", "b": "2"}, {"a": None}]
        chunk = TableChunker().chunk(rows)[0]
        assert chunk.splitlines()[2] == " ; "

    def test_line_breaks_inside_cells_are_collapsed(self) -> None:
        rows = [{"obs": "linha um\r\n\nlinha dois\n"}]
        chunk = TableChunker().chunk(rows)[0]
        assert chunk.splitlines() == ["obs", "linha um linha dois"]

    def test_decimal_commas_stay_unambiguous(self) -> None:
        rows = [{"taxa": "1,50", "ano": "2023"}]
        assert TableChunker().chunk(rows)[0].splitlines()[1] == "1,50 ; 2023"

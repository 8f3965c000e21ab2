"""Unit tests for Gonçalinho domain models — validation, aliases, immutability."""

from __future__ import annotations

from datetime import timezone

import pytest
from pydantic import ValidationError

from src.models.document import (
    Category,
    ChatMessage,
    Chunk,
    Document,
    DocumentMetadata,
    ExtractedContent,
    ScoredChunk,
)


class TestCategory:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Saúde", Category.HEALTH),
            ("saúde", Category.HEALTH),
            ("HEALTH", Category.HEALTH),
            ("health", Category.HEALTH),
            ("  Educação ", Category.EDUCATION),
            ("Esporte cultura e lazer", Category.SPORTS_CULTURE_LEISURE),
            ("", Category.GENERAL),
            ("   ", Category.GENERAL),
            (None, Category.GENERAL),
            (Category.OFFICE, Category.OFFICE),
        ],
    )
    def test_parse(self, value: str | None, expected: Category) -> None:
        assert Category.parse(value) is expected

    def test_parse_unknown_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown category"):
            Category.parse("Turismo")

    def test_values_are_portuguese_labels(self) -> None:
        assert Category.GENERAL.value == "Geral"
        assert len(Category) == 9


class TestDocument:
    def test_defaults(self) -> None:
        doc = Document(id="abc", name="dados.csv", type="csv")
        assert doc.category is Category.GENERAL
        assert doc.case_name == ""
        assert doc.created_at.tzinfo == timezone.utc

    def test_frozen(self) -> None:
        doc = Document(id="abc", name="dados.csv", type="csv")
        with pytest.raises(ValidationError):
            doc.name = "outro.csv"

    def test_camel_case_aliases(self) -> None:
        doc = Document.model_validate(
            {"id": "abc", "name": "a.pdf", "type": "pdf", "caseName": "IDEB", "category": "Educação"}
        )
        assert doc.case_name == "IDEB"
        dumped = doc.model_dump(by_alias=True, mode="json")
        assert dumped["caseName"] == "IDEB"
        assert "createdAt" in dumped

    def test_metadata_property(self) -> None:
        doc = Document(id="a", name="a.txt", type="txt", period="2023", category=Category.FINANCE)
        assert doc.metadata == DocumentMetadata(period="2023", category=Category.FINANCE)

    def test_invalid_category_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Document(id="a", name="a.txt", type="txt", category="Turismo")


class TestChunk:
    def test_negative_index_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Chunk(id="d_0", document_id="d", index=-1, content="x")

    def test_accepts_alias_and_field_names(self) -> None:
        by_alias = Chunk.model_validate(
            {"id": "d_0", "documentId": "d", "content": "x", "fileName": "f.csv"}
        )
        by_name = Chunk(id="d_0", document_id="d", content="x", file_name="f.csv")
        assert by_alias == by_name

    def test_scored_chunk_score_non_negative(self) -> None:
        chunk = Chunk(id="d_0", document_id="d", content="x")
        with pytest.raises(ValidationError):
            ScoredChunk(chunk=chunk, score=-1)


class TestExtractedContent:
    def test_from_text_blank_is_empty(self) -> None:
        assert ExtractedContent.from_text("txt", "  \n").kind == "empty"
        assert ExtractedContent.from_text("txt", "conteúdo").kind == "text"

    def test_from_rows(self) -> None:
        assert ExtractedContent.from_rows("csv", []).kind == "empty"
        content = ExtractedContent.from_rows("csv", [{"a": "1"}])
        assert content.kind == "table"
        assert content.rows == [{"a": "1"}]


class TestChatMessage:
    def test_role_restricted(self) -> None:
        assert ChatMessage(role="model", text="oi").role == "model"
        with pytest.raises(ValidationError):
            ChatMessage(role="assistant", text="oi")

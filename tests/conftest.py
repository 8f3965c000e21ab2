"""Shared pytest fixtures for the Gonçalinho test suite."""

from __future__ import annotations

import io
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.models.document import Category, ChatMessage, Chunk, DocumentMetadata
from src.providers.store.json_document_store import JSONDocumentStore
from src.utils.errors import LLMError

# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class FakeLLM(ILLMProvider):
    """Streams canned fragments and records every call it receives."""

    def __init__(
        self,
        fragments: list[str] | None = None,
        fail_after: int | None = None,
    ) -> None:
        self.fragments = fragments if fragments is not None else ["Resposta ", "gerada."]
        self.fail_after = fail_after
        self.calls: list[dict] = []

    async def stream_chat(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> AsyncIterator[str]:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": list(messages),
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        for position, fragment in enumerate(self.fragments):
            if self.fail_after is not None and position >= self.fail_after:
                raise LLMError(message="stream interrupted", provider_name="fake")
            yield fragment

    def get_provider_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# In-memory document builders
# ---------------------------------------------------------------------------


def make_csv_bytes(
    header: list[str],
    rows: list[list[str]],
    delimiter: str = ";",
    encoding: str = "utf-8",
) -> bytes:
    lines = [delimiter.join(header)]
    lines.extend(delimiter.join(row) for row in rows)
    return ("\n".join(lines) + "\n").encode(encoding)


def make_docx_bytes(paragraphs: list[str], table: list[list[str]] | None = None) -> bytes:
    """Build a .docx with *paragraphs*, followed by an optional table."""
    import docx

    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def make_pdf_bytes(pages: list[str]) -> bytes:
    """Build a PDF with one text line per page (empty string = blank page)."""
    import fitz

    document = fitz.open()
    for text in pages:
        page = document.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data


def make_xlsx_bytes(sheets: dict[str, list[dict]]) -> bytes:
    """Build an .xlsx workbook, one sheet per ``{name: records}`` entry."""
    import pandas as pd

    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, records in sheets.items():
            pd.DataFrame(records).to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()


def make_chunk(
    content: str,
    index: int = 0,
    document_id: str = "doc1",
    **fields: object,
) -> Chunk:
    return Chunk(
        id=f"{document_id}_{index}",
        document_id=document_id,
        index=index,
        content=content,
        **fields,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    (path / "uploads").mkdir(parents=True)
    return path


@pytest.fixture
def store(data_dir: Path) -> JSONDocumentStore:
    return JSONDocumentStore(data_dir)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def health_metadata() -> DocumentMetadata:
    return DocumentMetadata(
        description="Casos notificados por bairro",
        source="Secretaria Municipal de Saúde",
        period="2023",
        case_name="Dengue",
        category=Category.HEALTH,
    )


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary storage root, no LLM keys."""
    return Settings(
        data_dir=str(tmp_path / "primary"),
        fallback_data_dir=str(tmp_path / "fallback"),
        access_password="",
        openai_api_key="",
        anthropic_api_key="",
        max_upload_mb=1,
        app_env="test",
        _env_file=None,
    )


@pytest.fixture
def sample_text_paragraphs() -> str:
    return (
        "O município registrou queda nas matrículas da educação infantil.\n\n"
        "A rede estadual manteve o número de turmas do ensino médio.\n\n"
        "\n\n   \n\n"
        "Os investimentos em infraestrutura escolar foram concentrados no segundo semestre."
    )

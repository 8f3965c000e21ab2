"""Retrieval-augmented answer generation for the chat endpoint.

Accepts a user question with recent chat history, retrieves the most
relevant chunks from the document store, and streams an LLM answer that
is grounded in those chunks.

Data flow:
  1. RETRIEVE -- :class:`LexicalRetriever` scores every stored chunk
                 against the question (optionally restricted to one
                 category) and keeps the top results.
  2. CONTEXT  -- Each hit is rendered as a labelled block carrying its
                 provenance (file, source, indicator, period, description)
                 so the model can cite where a number came from.
  3. GENERATE -- The system prompt, the last few history turns and the
                 context + question are streamed through the injected
                 :class:`ILLMProvider`.

A retrieval or provider failure does not raise: the client already holds a
``200`` streaming response at that point, so the service logs the error
and emits a short notice as the final fragment instead.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.document import Category, ChatMessage, ScoredChunk
from src.services.retriever import LexicalRetriever
from src.utils.errors import GoncalinhoError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

SERVER_ERROR_NOTICE = (
    "**Erro no servidor:** Não foi possível processar a resposta. Verifique os logs."
)

SYSTEM_PROMPT = """Você é o Gonçalinho, analista de dados especializado em indicadores públicos municipais.

Responda usando SOMENTE as informações dos blocos de dados do CONTEXTO.
- Nunca invente números. Se o contexto não trouxer o dado pedido, diga isso claramente.
- Ao citar uma fonte, use os campos "FONTE (ORIGEM)" e "ARQUIVO"; o campo "INDICADOR" é o tema, não a fonte.
- Tabelas vêm com colunas separadas por " ; " e a primeira linha é o cabeçalho.
- Quando houver números comparáveis (séries anuais, bairros, categorias), organize-os em uma tabela markdown.
"""


class QAService:
    """Answers questions from the stored documents.

    Parameters
    ----------
    retriever:
        Lexical retriever over the document store.
    llm:
        Streaming chat provider.
    temperature:
        Sampling temperature; kept low for factual answers.
    history_window:
        Number of most recent history messages forwarded to the LLM.
    """

    def __init__(
        self,
        retriever: LexicalRetriever,
        llm: ILLMProvider,
        temperature: float = 0.3,
        history_window: int = 4,
    ) -> None:
        self._retriever = retriever
        self._llm = llm
        self._temperature = temperature
        self._history_window = history_window

    @property
    def provider_name(self) -> str:
        return self._llm.get_provider_name()

    async def llm_reachable(self) -> bool:
        """Ask the provider whether it can currently serve answers."""
        return await self._llm.validate_connection()

    async def stream_answer(
        self,
        question: str,
        history: list[ChatMessage] | None = None,
        category: Category | None = None,
    ) -> AsyncIterator[str]:
        """Yield the answer to *question* fragment by fragment.

        Retrieval and generation failures end the stream with
        :data:`SERVER_ERROR_NOTICE` instead of raising.
        """
        try:
            results = await self._retriever.search(question, category=category)
            context = self.format_context(results)
            messages = self._recent_history(history)
            messages.append(
                ChatMessage(
                    role="user",
                    text=f"CONTEXTO:\n{context}\n\nPergunta do usuário: {question}",
                )
            )

            logger.info(
                "qa_answer_started",
                provider=self._llm.get_provider_name(),
                chunks=len(results),
                history=len(messages) - 1,
            )
            async for fragment in self._llm.stream_chat(
                SYSTEM_PROMPT,
                messages,
                temperature=self._temperature,
            ):
                yield fragment
        except GoncalinhoError as exc:
            logger.error(
                "qa_answer_failed",
                error_type=type(exc).__name__,
                provider=exc.provider_name,
                error=exc.message,
            )
            yield SERVER_ERROR_NOTICE

    @staticmethod
    def format_context(results: list[ScoredChunk]) -> str:
        """Render retrieved chunks as provenance-labelled blocks."""
        blocks = []
        for result in results:
            chunk = result.chunk
            blocks.append(
                "--- INÍCIO DO BLOCO DE DADOS ---\n"
                f"ARQUIVO: {chunk.file_name}\n"
                f"FONTE (ORIGEM): {chunk.source or 'Não especificada'}\n"
                f"INDICADOR (TEMA): {chunk.case_name or 'Geral'}\n"
                f"PERÍODO: {chunk.period or 'Não especificado'}\n"
                f"DESCRIÇÃO: {chunk.description}\n"
                "\n"
                "CONTEÚDO:\n"
                f"{chunk.content}\n"
                "--- FIM DO BLOCO ---"
            )
        return "\n\n".join(blocks)

    def _recent_history(self, history: list[ChatMessage] | None) -> list[ChatMessage]:
        if not history or self._history_window <= 0:
            return []
        return list(history[-self._history_window :])

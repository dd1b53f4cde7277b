"""
Summary generation for bill text.

Two generators share one contract: summarize(document) returns a Summary
tagged with the document's version, or raises SummarizationUnavailable.
Neither returns placeholder text on failure.

- ExtractiveSummarizer: rule-based, picks the highest-scoring sentences
- OpenAISummarizer: delegates to a chat-completions endpoint

Responsibility: Derive condensed, display-ready descriptions of bill text
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from html import escape
from typing import List, Optional
import logging
import math
import os
import re

import httpx

from ..config import SummaryBackend, SummaryConfig
from ..errors import SummarizationUnavailable
from ..models.documents import BillDocument, Summary
from .chunking import chunk_words
from .sanitize import sanitize_html

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are an expert legislative analyst and attorney who specializes in "
    "explaining complex legislation to the public. Your task is to provide a "
    "concise, informative, and factual summary of the bill text provided."
)

SUMMARY_INSTRUCTIONS = """Please provide a summary of this bill. Structure your response with HTML paragraphs with these sections:
1. Executive Summary (1-2 paragraphs)
2. Key Provisions (3-5 bullet points)
3. Potential Impact (1 paragraph)

Include only factual information derived from the bill text. Do not include political commentary or opinions. Format your response using HTML tags (<p>, <ul>, <li>, <h3>, etc.) for clean display."""

PARTIAL_INSTRUCTIONS = (
    "The following is one part of a longer bill. List the provisions it "
    "contains as short factual plain-text notes. Do not add commentary."
)

STOP_WORDS = frozenset("""
a about above after again all also an and any are as at be because been before
being below between both but by can could did do does doing down during each
few for from further had has have having he her here hers him his how i if in
into is it its itself just may me might more most must my no nor not now of off
on once only or other our out over own same she should so some such than that
the their them then there these they this those through to too under until up
upon very was we were what when where which while who whom why will with would
you your shall such said hereby herein thereof therein section sections
subsection subsections paragraph chapter article code act
""".split())

_SENTENCE_RE = re.compile(r"(?<=[.!?;:])\s+(?=[A-Z0-9\"'(\[])")
_WORD_RE = re.compile(r"[a-z][a-z'\-]+")
MIN_SENTENCE_WORDS = 4


class BaseSummarizer(ABC):
    """Common interface for summary generators"""

    method: str = "base"

    @abstractmethod
    async def summarize(self, document: BillDocument) -> Summary:
        """
        Summarize one bill version.

        Returns:
            Summary with source_version == document.version_id

        Raises:
            SummarizationUnavailable: no summary could be produced
        """
        pass

    def _summary(self, document: BillDocument, html: str) -> Summary:
        return Summary(
            bill_id=document.bill_id,
            source_version=document.version_id,
            text=html,
            method=self.method,
        )

    async def close(self) -> None:
        """Release resources held by the generator"""
        return None


def split_sentences(text: str) -> List[str]:
    """Sentences of text in order; lines are treated as hard boundaries"""
    sentences: List[str] = []
    for line in text.splitlines():
        line = " ".join(line.split())
        if not line:
            continue
        sentences.extend(part for part in _SENTENCE_RE.split(line) if part)
    return sentences


class ExtractiveSummarizer(BaseSummarizer):
    """
    Rule-based summarizer.

    Scores each sentence by the document frequency of its content words
    (stop words and legislative boilerplate excluded), damped by sentence
    length, and keeps the best ``max_sentences`` in their original order.
    Deterministic: ties are broken by position.
    """

    method = "extractive"

    def __init__(self, max_sentences: int = 5):
        self.max_sentences = max_sentences

    async def summarize(self, document: BillDocument) -> Summary:
        sentences = self.select(document.text)
        if not sentences:
            raise SummarizationUnavailable(
                f"Bill {document.bill_id} version {document.version_id} has no summarizable text"
            )

        html = "".join(f"<p>{escape(sentence)}</p>" for sentence in sentences)
        return self._summary(document, html)

    def select(self, text: str) -> List[str]:
        """Chosen sentences in document order"""
        candidates = []
        for position, sentence in enumerate(split_sentences(text)):
            words = [w for w in _WORD_RE.findall(sentence.lower()) if w not in STOP_WORDS]
            if len(sentence.split()) >= MIN_SENTENCE_WORDS and words:
                candidates.append((position, sentence, words))

        if not candidates:
            return []

        frequencies = Counter(word for _, _, words in candidates for word in words)
        top = max(frequencies.values())

        scored = []
        for position, sentence, words in candidates:
            weight = sum(frequencies[w] / top for w in words)
            # sqrt damping keeps long sentences from winning on length alone
            scored.append((-weight / math.sqrt(len(words)), position, sentence))

        chosen = sorted(scored)[:self.max_sentences]
        return [sentence for _, _, sentence in sorted(chosen, key=lambda item: item[1])]


class OpenAISummarizer(BaseSummarizer):
    """
    Summarizer delegating to an OpenAI-compatible chat-completions endpoint.

    Texts longer than ``chunk_words`` words are summarized part by part and
    the partial notes are combined in a final request.
    """

    method = "openai"

    def __init__(
        self,
        config: Optional[SummaryConfig] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        config = config or SummaryConfig()
        self.api_key = config.openai_api_key or os.getenv("OPENAI_API_KEY")
        self.model = config.openai_model
        self.endpoint = config.openai_endpoint
        self.max_tokens = config.max_tokens
        self.temperature = config.temperature
        self.timeout = config.timeout_seconds
        self.chunk_words = config.chunk_words
        self._owns_client = client is None
        self._client = client

    @property
    def enabled(self) -> bool:
        """Return ``True`` when a key is configured."""
        return bool(self.api_key)

    def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Cleanup underlying HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def summarize(self, document: BillDocument) -> Summary:
        if not self.enabled:
            raise SummarizationUnavailable("Summarization service is not configured")

        chunks = chunk_words(document.text, self.chunk_words)
        if not chunks:
            raise SummarizationUnavailable(
                f"Bill {document.bill_id} version {document.version_id} has no text to summarize"
            )

        if len(chunks) == 1:
            source = chunks[0]
        else:
            logger.info(
                f"Summarizing bill {document.bill_id} v{document.version_id} in {len(chunks)} parts"
            )
            notes = []
            for part in chunks:
                notes.append(await self._complete(f"{PARTIAL_INSTRUCTIONS}\n\n{part}"))
            source = "\n\n".join(notes)

        content = await self._complete(f"{SUMMARY_INSTRUCTIONS}\n\nBill text:\n{source}")

        html = sanitize_html(content)
        if not html:
            raise SummarizationUnavailable("Summarization service returned no usable content")

        return self._summary(document, html)

    async def _complete(self, prompt: str) -> str:
        client = self._client_instance()
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        try:
            response = await client.post(
                self.endpoint, headers=headers, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Summarization API error (%s)", exc.response.status_code)
            raise SummarizationUnavailable(
                f"Summarization service returned HTTP {exc.response.status_code}"
            )
        except httpx.HTTPError as exc:
            logger.error("Summarization API request failed: %s", type(exc).__name__)
            raise SummarizationUnavailable("Summarization service is unreachable")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise SummarizationUnavailable("Summarization service returned an unexpected response")

        if not isinstance(content, str) or not content.strip():
            raise SummarizationUnavailable("Summarization service returned an empty summary")

        return content.strip()


def build_summarizer(config: Optional[SummaryConfig] = None) -> BaseSummarizer:
    """Create the generator selected by configuration"""
    config = config or SummaryConfig()
    if config.backend == SummaryBackend.OPENAI:
        return OpenAISummarizer(config)
    return ExtractiveSummarizer(max_sentences=config.max_sentences)

from __future__ import annotations

import logging
import math
from typing import Any

import tiktoken
from sqlalchemy.orm import Session

from placementcracker.db.repositories import Repository
from placementcracker.types import Feature, ModelResponse, RequestContext, TokenCount

logger = logging.getLogger(__name__)


def estimate_tokens_by_chars(text: str) -> int:
    return math.ceil(len(text) / 4)


def estimate_tokens_by_words(text: str) -> int:
    return math.ceil(len(text.split()) * 1.33)


class TokenCounter:
    """Counts prompt/completion tokens.

    ``tiktoken`` is exact; ``chars`` and ``words`` are the cheap estimates.
    If the tiktoken encoding cannot be loaded (e.g. no network access to fetch
    its BPE ranks) counting degrades to ``chars`` and says so in the result.
    """

    def __init__(self, method: str = "tiktoken", encoding_name: str = "o200k_base"):
        self.method = method
        self.encoding: Any = None
        if method == "tiktoken":
            try:
                self.encoding = tiktoken.get_encoding(encoding_name)
            except Exception as exc:
                logger.warning("Tokenizer %s unavailable, using char estimate (%s)", encoding_name, exc)

    def count(self, text: str) -> TokenCount:
        if self.method == "tiktoken" and self.encoding is not None:
            return TokenCount(tokens=len(self.encoding.encode(text, disallowed_special=())), method="tiktoken")
        if self.method == "words":
            return TokenCount(tokens=estimate_tokens_by_words(text), method="words")
        return TokenCount(tokens=estimate_tokens_by_chars(text), method="chars")


class UsageRecorder:
    def __init__(self, session: Session, counter: TokenCounter):
        self.session = session
        self.repo = Repository(session)
        self.counter = counter

    def record(
        self,
        ctx: RequestContext,
        *,
        feature: Feature,
        request_id: int | None,
        model: str,
        prompt: str,
        response: ModelResponse,
        elapsed_ms: int,
    ) -> None:
        """Persist a usage row. Failures are logged and never raised."""
        try:
            if response.input_tokens is not None and response.output_tokens is not None:
                input_tokens, output_tokens, method = response.input_tokens, response.output_tokens, "provider"
            else:
                prompt_count = self.counter.count(prompt)
                output_count = self.counter.count(response.content)
                input_tokens, output_tokens = prompt_count.tokens, output_count.tokens
                method = prompt_count.method

            self.repo.create_usage_log(
                user_id=ctx.user_id,
                request_id=request_id,
                feature=feature,
                model=model,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                token_method=method,
                elapsed_ms=elapsed_ms,
            )
        except Exception:
            self.session.rollback()
            logger.exception(
                "Failed to record usage trace=%s user=%s request=%s",
                ctx.trace_id,
                ctx.user_id,
                request_id,
            )

import logging
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence
from openai import AsyncOpenAI

from app.config import Settings
from app.exceptions import UpstreamFailure, UpstreamFailureKind
from app.models import HistoryTurn, Role
from app.prompts import FALLBACK_RESPONSE, SYSTEM_PROMPT

logger = logging.getLogger(__name__)

OPENAI_MODEL = "gpt-4o"

GENERATION_PARAMS = {
    "max_tokens": 500,
    "temperature": 0.7,
    "presence_penalty": 0.1,
    "frequency_penalty": 0.1,
}

REGION_DENIED_CODES = {"unsupported_country_region_territory", "permission_denied"}


def classify_upstream_error(error: Exception) -> UpstreamFailureKind:
    """
    Map a provider exception to a failure kind. Only used for logging,
    the caller gets the same fallback whatever the kind.
    """
    code = getattr(error, "code", None)
    status = getattr(error, "status_code", None)

    if code in REGION_DENIED_CODES or status == 403:
        return UpstreamFailureKind.REGION_DENIED
    if code == "insufficient_quota":
        return UpstreamFailureKind.QUOTA_EXCEEDED
    if code == "invalid_api_key":
        return UpstreamFailureKind.INVALID_CREDENTIAL
    return UpstreamFailureKind.UNSPECIFIED


@dataclass(frozen=True)
class RelayResult:
    text: str
    source: Literal["openai", "fallback"]


class PortfolioChatRelay:
    def __init__(self, settings: Settings, client=None):
        self.settings = settings

        # A client only exists when a key is configured; without one every
        # request goes straight to the fallback.
        if not settings.openai_enabled:
            client = None
        elif client is None:
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.request_timeout,
                max_retries=0,
            )
        self.client = client

    @property
    def is_ready(self) -> bool:
        return self.client is not None

    async def close(self):
        if self.client is not None and hasattr(self.client, "close"):
            await self.client.close()

    # --- INTERNAL HELPERS ---
    def build_messages(self, message: str, history: Sequence[HistoryTurn]) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for turn in history:
            messages.append({"role": turn.role.value, "content": turn.text})
        messages.append({"role": Role.USER.value, "content": message.strip()})
        return messages

    async def _call_openai(self, messages: List[Dict[str, str]]) -> str:
        """
        Single attempt against the chat completions API.
        Raises UpstreamFailure for provider errors and for empty content.
        """
        try:
            completion = await self.client.chat.completions.create(
                model=OPENAI_MODEL,
                messages=messages,
                **GENERATION_PARAMS,
            )
        except Exception as e:
            raise UpstreamFailure(classify_upstream_error(e), str(e)) from e

        content = None
        if completion.choices:
            content = completion.choices[0].message.content
        if not content or not content.strip():
            raise UpstreamFailure(UpstreamFailureKind.EMPTY_RESPONSE, "Completion returned no content")
        return content.strip()

    def _log_failure(self, failure: UpstreamFailure):
        cause = failure.__cause__
        logger.warning(
            f"OpenAI API error ({failure.kind.value}): {failure.detail} "
            f"[code={getattr(cause, 'code', None)}, status={getattr(cause, 'status_code', None)}, "
            f"type={getattr(cause, 'type', None)}]"
        )
        if failure.kind is UpstreamFailureKind.REGION_DENIED:
            logger.info("OpenAI not available in this region, using fallback")
        elif failure.kind is UpstreamFailureKind.QUOTA_EXCEEDED:
            logger.info("OpenAI quota exceeded, using fallback")
        elif failure.kind is UpstreamFailureKind.INVALID_CREDENTIAL:
            logger.info("Invalid OpenAI API key, using fallback")

    # --- CORE FUNCTIONS ---
    async def process_message(self, message: str, history: Optional[Sequence[HistoryTurn]] = None) -> RelayResult:
        if self.is_ready:
            messages = self.build_messages(message, history or [])
            logger.info(f"Calling OpenAI ({OPENAI_MODEL}) with {len(messages)} messages")
            try:
                answer = await self._call_openai(messages)
                logger.info("OpenAI response received")
                return RelayResult(text=answer, source="openai")
            except UpstreamFailure as failure:
                self._log_failure(failure)
        else:
            logger.info("No OpenAI API key configured")

        logger.info("Using fallback response")
        return RelayResult(text=FALLBACK_RESPONSE, source="fallback")

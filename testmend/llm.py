import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from anthropic import Anthropic

from .prompts import (
    DEPENDENCY_SECTION,
    FIX_TEST_PROMPT,
    MOCK_TYPES_GUIDANCE,
    PARSE_FAILURE_MARKERS,
    SYSTEM_PROMPT,
)
from .utils import debug_log

LLM_MODEL = "claude-sonnet-4-20250514"
FENCE = "```"


class FixerError(Exception):
    """Raised when the fixer provider returns nothing usable."""

    pass


@dataclass(frozen=True)
class FixRequest:
    source_code: str
    file_name: str
    current_test_code: str
    error_context: str
    attempt: int
    dependency_context: Optional[str] = None


class FixerProvider(Protocol):
    def fix_test(self, request: FixRequest) -> str:
        ...


def extract_test_code(raw: str) -> str:
    """
    Pull the test file out of a fixer response.

    Prefers the interior of the first fenced block (minus its language
    tag line); falls back to the whole response. Both are trimmed. Fences
    only count at the start of a line, so inline ``` in prose is ignored.
    """
    start = raw.find(FENCE)
    while start > 0 and raw[start - 1] != "\n":
        start = raw.find(FENCE, start + len(FENCE))

    if start != -1:
        body_start = raw.find("\n", start + len(FENCE))
        if body_start != -1:
            end = raw.find("\n" + FENCE, body_start)
            if end != -1:
                return raw[body_start + 1:end].strip()

    return raw.strip()


def build_fix_prompt(request: FixRequest) -> str:
    guidance = ""
    if any(marker in request.error_context for marker in PARSE_FAILURE_MARKERS):
        guidance = MOCK_TYPES_GUIDANCE

    dependency_section = ""
    if request.dependency_context:
        dependency_section = DEPENDENCY_SECTION.format(
            dependency_context=request.dependency_context
        )

    return FIX_TEST_PROMPT.format(
        attempt=request.attempt,
        file_name=request.file_name,
        source_code=request.source_code,
        test_code=request.current_test_code,
        error_context=request.error_context,
        dependency_section=dependency_section,
        guidance=guidance,
    )


class AnthropicFixer:
    """Proposes whole-file test fixes with Claude."""

    def __init__(self, api_key=None, model=LLM_MODEL, max_tokens=8192, client=None):
        self.client = client or Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    def fix_test(self, request: FixRequest) -> str:
        prompt_content = build_fix_prompt(request)
        debug_log("PROMPT CONTENT", prompt_content)

        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[
                {"role": "user", "content": prompt_content}
            ],
        )

        texts = [block.text for block in response.content if getattr(block, "type", "") == "text"]
        if not texts or not texts[0].strip():
            raise FixerError(f"{self.model} returned no text content")

        debug_log("Fix test response", texts[0])
        return texts[0]


class ExternalFixerClient:
    """
    Boundary around the fixer provider.

    Any provider failure is logged and reported as "no fix produced";
    nothing is retried here.
    """

    def __init__(self, provider: Optional[FixerProvider] = None, logger: Optional[logging.Logger] = None):
        self.provider = provider
        self.logger = logger or logging.getLogger(__name__)

    @property
    def available(self) -> bool:
        return self.provider is not None

    def fix(
        self,
        source_code: str,
        file_name: str,
        current_test_code: str,
        error_context: str,
        attempt: int,
        dependency_context: Optional[str] = None,
    ) -> Optional[str]:
        if self.provider is None:
            self.logger.debug("No external fixer configured, skipping %s", file_name)
            return None

        request = FixRequest(
            source_code=source_code,
            file_name=file_name,
            current_test_code=current_test_code,
            error_context=error_context,
            attempt=attempt,
            dependency_context=dependency_context,
        )

        try:
            raw = self.provider.fix_test(request)
        except Exception:
            self.logger.exception("External fixer failed for %s (attempt %d)", file_name, attempt)
            return None

        if not raw:
            return None

        code = extract_test_code(raw)
        return code or None


def build_fixer(settings, logger: Optional[logging.Logger] = None) -> ExternalFixerClient:
    """ExternalFixerClient for settings; without an API key it never proposes fixes."""
    if not settings.api_key:
        return ExternalFixerClient(None, logger)

    provider = AnthropicFixer(
        api_key=settings.api_key,
        model=settings.model,
        max_tokens=settings.max_tokens,
    )
    return ExternalFixerClient(provider, logger)

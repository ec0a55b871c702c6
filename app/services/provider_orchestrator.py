# /aria-backend/app/services/provider_orchestrator.py

"""
Two-provider completion state machine.

    TRY_PRIMARY   --ok-------------------------> DONE
    TRY_PRIMARY   --429/5xx/network/malformed--> TRY_SECONDARY
    TRY_PRIMARY   --other 4xx------------------> DONE_WITH_ERROR
    TRY_SECONDARY --ok-------------------------> DONE
    TRY_SECONDARY --anything else--------------> DONE_WITH_ERROR

An unexpected exception from a client is treated like a retryable failure on
the primary and like any other failure on the secondary, so every call ends
in a terminal state.

The machine starts in TRY_SECONDARY when the primary key is missing or a
placeholder. It only computes an outcome; persisting it is the caller's job.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..core.config import ProviderConfig, get_settings
from .llm_providers import (
    CompletionClient,
    CompletionParams,
    GeminiClient,
    OpenRouterClient,
    ProviderError,
)

logger = logging.getLogger(__name__)

ADMIN_CONTACT_MESSAGE = "The AI service is currently unavailable. Please contact the administrator."

_PLACEHOLDER_PREFIXES = ("your_", "your-", "<")
_PLACEHOLDER_VALUES = {"changeme", "change-me", "placeholder", "none", "null", "xxx"}


class OrchestratorState(str, enum.Enum):
    TRY_PRIMARY = "try_primary"
    TRY_SECONDARY = "try_secondary"
    DONE = "done"
    DONE_WITH_ERROR = "done_with_error"


TERMINAL_STATES = (OrchestratorState.DONE, OrchestratorState.DONE_WITH_ERROR)


def is_configured(api_key: Optional[str]) -> bool:
    """A credential counts only if it is non-empty and not a template placeholder."""
    if not api_key or not api_key.strip():
        return False
    lowered = api_key.strip().lower()
    return not lowered.startswith(_PLACEHOLDER_PREFIXES) and lowered not in _PLACEHOLDER_VALUES


@dataclass
class CompletionOutcome:
    state: OrchestratorState
    content: Optional[str] = None
    provider: Optional[str] = None
    # Text stored on the role=error message.
    persisted_error: Optional[str] = None
    # Text returned to the client in the {"error": ...} envelope.
    client_error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == OrchestratorState.DONE


class ProviderOrchestrator:
    def __init__(
        self,
        config: ProviderConfig,
        primary: Optional[CompletionClient] = None,
        secondary: Optional[CompletionClient] = None,
    ):
        self.config = config
        self.primary = primary or OpenRouterClient(config.primary_key, default_model=config.primary_model)
        self.secondary = secondary or GeminiClient(config.secondary_key, model=config.default_model)

    def initial_state(self) -> OrchestratorState:
        if is_configured(self.config.primary_key):
            return OrchestratorState.TRY_PRIMARY
        return OrchestratorState.TRY_SECONDARY

    async def complete(self, messages: List[Dict[str, str]], params: CompletionParams) -> CompletionOutcome:
        state = self.initial_state()
        if state == OrchestratorState.TRY_SECONDARY:
            logger.info("Primary provider not configured, starting with fallback provider")

        outcome: Optional[CompletionOutcome] = None
        while state not in TERMINAL_STATES:
            if state == OrchestratorState.TRY_PRIMARY:
                state, outcome = await self._try_primary(messages, params)
            else:
                state, outcome = await self._try_secondary(messages, params)
        return outcome

    async def _try_primary(self, messages, params):
        try:
            content = await self.primary.complete(messages, params)
        except ProviderError as e:
            if e.retryable:
                logger.warning("Primary provider failed (status=%s), falling back: %s", e.status_code, e.detail)
                return OrchestratorState.TRY_SECONDARY, None
            logger.error("Primary provider rejected the request with status %s", e.status_code)
            return OrchestratorState.DONE_WITH_ERROR, CompletionOutcome(
                state=OrchestratorState.DONE_WITH_ERROR,
                persisted_error=f"Failed to get AI response: {e.detail}",
                client_error=f"AI API returned {e.status_code}: {e.detail}",
            )
        except Exception:
            logger.exception("Primary provider raised unexpectedly, falling back")
            return OrchestratorState.TRY_SECONDARY, None
        logger.info("Completion served by %s", self.primary.name)
        return OrchestratorState.DONE, CompletionOutcome(
            state=OrchestratorState.DONE, content=content, provider=self.primary.name
        )

    async def _try_secondary(self, messages, params):
        failed = CompletionOutcome(
            state=OrchestratorState.DONE_WITH_ERROR,
            persisted_error=ADMIN_CONTACT_MESSAGE,
            client_error=ADMIN_CONTACT_MESSAGE,
        )
        if not is_configured(self.config.secondary_key):
            logger.error("Fallback provider not configured; no provider available")
            return OrchestratorState.DONE_WITH_ERROR, failed
        try:
            content = await self.secondary.complete(messages, params)
        except ProviderError as e:
            logger.error("Fallback provider failed: %s", e.detail)
            return OrchestratorState.DONE_WITH_ERROR, failed
        except Exception:
            logger.exception("Fallback provider raised unexpectedly")
            return OrchestratorState.DONE_WITH_ERROR, failed
        if not content or not content.strip():
            logger.error("Fallback provider returned empty output")
            return OrchestratorState.DONE_WITH_ERROR, failed
        logger.info("Completion served by %s", self.secondary.name)
        return OrchestratorState.DONE, CompletionOutcome(
            state=OrchestratorState.DONE, content=content, provider=self.secondary.name
        )


def get_provider_orchestrator() -> ProviderOrchestrator:
    """FastAPI dependency building the orchestrator from the current settings."""
    return ProviderOrchestrator(ProviderConfig.from_settings(get_settings()))

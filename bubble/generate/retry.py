# AI INSTRUCTION:
# Retry/fallback around opening a native stream.
#  - NOT_FOUND: swap to the fallback model once, no wait
#  - RATE_LIMITED: back off 2^attempt * base + offset seconds, up to max_rate_retries times
#  - anything else: raise

from __future__ import annotations
import logging
from typing import Callable, Iterator, Optional

from .cancel import CancellationToken, GenerationCancelled
from .errors import ErrorKind, ProviderError
from .types import ProviderSession, TextFragment

logger = logging.getLogger(__name__)


def wait_or_cancel(seconds: float, token: CancellationToken) -> None:
    if token.wait(seconds):
        raise GenerationCancelled()


class RetryPolicy:
    def __init__(
        self,
        fallback_model: str = "gemini-2.5-flash",
        max_rate_retries: int = 3,
        base_delay: float = 2.0,
        delay_offset: float = 1.0,
        sleep: Callable[[float, CancellationToken], None] = wait_or_cancel,
    ):
        self.fallback_model = fallback_model
        self.max_rate_retries = max_rate_retries
        self.base_delay = base_delay
        self.delay_offset = delay_offset
        self.sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return (2 ** attempt) * self.base_delay + self.delay_offset

    def call(
        self,
        open_fn: Callable[[str], Iterator[TextFragment]],
        session: ProviderSession,
        token: CancellationToken,
        notify: Optional[Callable[[str], None]] = None,
    ) -> Iterator[TextFragment]:
        """Run open_fn(model) until it succeeds; session.model tracks any fallback."""
        notify = notify or (lambda _msg: None)
        rate_attempt = 0
        fell_back = False
        while True:
            token.raise_if_cancelled()
            try:
                return open_fn(session.model)
            except ProviderError as e:
                if e.kind is ErrorKind.NOT_FOUND:
                    if fell_back or session.model == self.fallback_model:
                        raise
                    logger.warning("Model %s not found or invalid. Falling back to %s.", session.model, self.fallback_model)
                    notify(f"(Model {session.model} unavailable. Falling back to {self.fallback_model}...)")
                    session.model = self.fallback_model
                    fell_back = True
                    continue
                if e.kind is ErrorKind.RATE_LIMITED and rate_attempt < self.max_rate_retries:
                    delay = self.delay_for(rate_attempt)
                    logger.warning("Quota limit hit. Retrying in %.0fms...", delay * 1000)
                    notify(f"(Rate limit hit. Retrying in {round(delay)}s...)")
                    self.sleep(delay, token)
                    rate_attempt += 1
                    continue
                raise

"""Pipe engine: decides what happens to one raw input.

Per input, for one user:
  1. Empty input                     → deliver unchanged.
  2. Escape pattern matches          → deliver with the escape marker stripped;
                                       any pending buffer is left alone.
  3. Continuation pattern misses, or
     leaves nothing after stripping  → no buffer: deliver the stripped text.
                                       buffer:    resubmit buffer + text and
                                                  drop the buffer.
  4. Otherwise                       → run the hooks; if cancelled, deliver
                                       the stripped text and touch nothing,
                                       else append the (possibly rewritten)
                                       fragment to the buffer and suppress.

The pending state lives entirely in the FragmentStore: no entry means idle,
an entry means the user is mid-pipe. Calls for different users may run
concurrently; calls for the same user must be serialized by the host.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable

from chat_pipe.hooks import FragmentError, PipeHook, PipeRequest
from chat_pipe.matcher import strip
from chat_pipe.models import Channel, Decision, PipeConfig
from chat_pipe.store import FragmentStore

logger = logging.getLogger(__name__)


class PipeEngine:
    def __init__(
        self,
        config: PipeConfig,
        store: FragmentStore | None = None,
        hooks: Iterable[PipeHook] = (),
    ) -> None:
        self.config = config
        self.store = store if store is not None else FragmentStore(
            ttl=config.ttl_seconds, max_size=config.max_pending,
        )
        self._hooks: list[PipeHook] = list(hooks)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def add_hook(self, hook: PipeHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: PipeHook) -> None:
        self._hooks.remove(hook)

    def _run_hooks(self, user: Hashable, previous: str | None, fragment: str) -> PipeRequest:
        request = PipeRequest(user, previous, fragment)
        for hook in self._hooks:
            hook(request)
        return request

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def handle(self, user: Hashable, text: str, channel: Channel) -> Decision:
        """Entry point for the host: skips channels the config ignores."""
        if not self.config.listens_to(channel):
            return Decision.deliver(text)
        return self.handle_message(user, text)

    def handle_message(self, user: Hashable, text: str) -> Decision:
        if not text:
            return Decision.deliver(text)

        escaped, is_escaped = strip(self.config.escape_regex, text)
        if is_escaped:
            return Decision.deliver(escaped)

        previous = self.store.get(user)
        stripped, continues = strip(self.config.regex, text)

        if not continues or not stripped:
            if previous is None:
                return Decision.deliver(stripped)
            full = previous + stripped
            self.store.invalidate(user)
            logger.info("pipe flushed user=%s len=%d", user, len(full))
            return Decision.resubmit(full)

        request = self._run_hooks(user, previous, stripped)
        if request.cancelled:
            logger.warning("pipe fragment cancelled by hook user=%s", user)
            return Decision.deliver(stripped)

        fragment = request.fragment
        if not fragment:
            raise FragmentError("final fragment cannot be empty")

        count = self.store.increment_counter(user)
        self.store.put(user, (previous or "") + fragment)
        logger.debug("pipe buffered user=%s fragments=%d", user, count)
        return Decision.suppress()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def on_user_disconnect(self, user: Hashable) -> None:
        self.store.invalidate(user)

    def purge_expired(self) -> int:
        return self.store.purge_expired()

    def reload(self, config: PipeConfig, store: FragmentStore | None = None) -> PipeEngine:
        """Build an engine for `config` that keeps pending buffers and hooks.

        Without `store`, the new engine gets a fresh FragmentStore sized from
        `config`, so a clock or max_size injected into the old store is not
        carried over.
        """
        engine = PipeEngine(config, store=store, hooks=self._hooks)
        engine.store.absorb(self.store)
        logger.info("pipe engine reloaded, carried %d pending entries", len(engine.store))
        return engine

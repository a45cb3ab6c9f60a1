"""Chat pipe: join chat input split across several messages.

A message ending in the marker (default `|`) is held back; the next message
without the marker is appended and the joined text is sent on as one message.
A trailing `\\|` escapes the pipe: the escape is stripped and the message is
sent on at once instead of being held back.

    engine = PipeEngine(PipeConfig())
    engine.handle(user, "/give steve diamond|", "command")  # suppress
    engine.handle(user, " 64", "command")                   # resubmit "/give steve diamond 64"

Pending text lives in a FragmentStore for ten minutes after the last fragment
and is dropped on flush, disconnect or expiry, together with the user's
fragment counter.
"""

# Re-export the public surface so `from chat_pipe import PipeEngine` works.

from .engine import PipeEngine  # noqa: F401
from .hooks import FragmentError, PipeHook, PipeRequest  # noqa: F401
from .matcher import strip  # noqa: F401
from .models import Channel, Decision, PipeConfig  # noqa: F401
from .store import FragmentStore  # noqa: F401

"""
DecodeContext - per-transaction context for log records.
The current transaction signature lives in a contextvar so every log line
emitted while decoding is tagged with it automatically.
"""

import time
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

_current_decode: ContextVar[Optional['DecodeContext']] = ContextVar('current_decode', default=None)


@dataclass
class DecodeContext:
    """Context of one transaction decode"""
    signature: str
    slot: int = 0
    started_mono: float = field(default_factory=time.monotonic)
    finished_mono: Optional[float] = None
    outcome: Optional[str] = None       # 'ok' | 'failed' | 'filtered'
    fail_reason: Optional[str] = None
    _token: Optional[Token] = field(default=None, repr=False, compare=False)

    @classmethod
    def start(cls, signature: str, slot: int = 0) -> 'DecodeContext':
        """Create a context and bind it to the current execution context"""
        ctx = cls(signature=signature, slot=slot)
        ctx._token = _current_decode.set(ctx)
        return ctx

    def mark_finished(self, success: bool = True, fail_reason: str = None, outcome: str = None) -> None:
        self.finished_mono = time.monotonic()
        self.outcome = outcome or ('ok' if success else 'failed')
        self.fail_reason = fail_reason

    def finish(self) -> None:
        """Unbind the context"""
        if self._token is not None:
            _current_decode.reset(self._token)
            self._token = None
        else:
            _current_decode.set(None)

    @property
    def elapsed_ms(self) -> Optional[float]:
        if self.finished_mono is None:
            return None
        return (self.finished_mono - self.started_mono) * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            'signature': self.signature,
            'slot': self.slot,
            'outcome': self.outcome,
            'fail_reason': self.fail_reason,
            'elapsed_ms': self.elapsed_ms,
        }

    def __enter__(self) -> 'DecodeContext':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.finished_mono is None:
            self.mark_finished(success=exc is None, fail_reason=str(exc) if exc else None)
        self.finish()


def get_current_decode() -> Optional[DecodeContext]:
    return _current_decode.get()


def get_current_signature() -> Optional[str]:
    """Signature of the transaction being decoded (for the logger)"""
    ctx = _current_decode.get()
    return ctx.signature if ctx else None

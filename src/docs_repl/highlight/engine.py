"""Background highlight engine: worker side of the request channel.

Runs inside the isolated worker (process or thread). Everything here must
stay picklable: handle_request is submitted by reference to a
ProcessPoolExecutor.

// [LAW:single-enforcer] handle_request is the sole entry point into the engine.
// [LAW:dataflow-not-control-flow] Always returns EngineResponse; .error marks failure.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pygments import highlight as _pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name


@dataclass(frozen=True)
class EngineRequest:
    """Method name + positional arguments, sent across the channel."""

    method: str
    args: tuple = ()


@dataclass(frozen=True)
class EngineResponse:
    """Result or failure, returned across the channel."""

    result: object = None
    error: str | None = None
    error_type: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


def highlight_markup(code: str, lang: str) -> str:
    """Tokenize code with the Pygments lexer for lang and return HTML spans.

    Raises pygments.util.ClassNotFound for languages Pygments does not know.
    """
    lexer = get_lexer_by_name(lang, stripnl=False, ensurenl=False)
    formatter = HtmlFormatter(nowrap=True)
    return _pygments_highlight(code, lexer, formatter)


# [LAW:one-source-of-truth] Method table for every request the engine accepts.
ENGINE_METHODS: dict[str, Callable[..., object]] = {
    "highlight": highlight_markup,
}


def handle_request(request: EngineRequest) -> EngineResponse:
    handler = ENGINE_METHODS.get(request.method)
    if handler is None:
        return EngineResponse(
            error=f"unknown engine method: {request.method}",
            error_type="LookupError",
        )
    try:
        return EngineResponse(result=handler(*request.args))
    except Exception as exc:
        return EngineResponse(error=str(exc) or type(exc).__name__, error_type=type(exc).__name__)

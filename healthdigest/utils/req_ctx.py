import uuid

from contextlib import contextmanager
from contextvars import ContextVar

#-----------------------------------------------------------------------------

# Per-run context (trace id, reference time, ...) read by the JSON log formatter.
RUN_CTX: ContextVar[dict | None] = ContextVar("run_ctx", default=None)

#-----------------------------------------------------------------------------

def get_req_ctx(key: str, default=None):
    ctx = RUN_CTX.get()
    return ctx[key] if ctx and key in ctx else default


def update_req_ctx(**kwargs):
    ctx = RUN_CTX.get()
    if ctx is not None:
        ctx.update(kwargs)


@contextmanager
def set_req_ctx(data: dict):
    token = RUN_CTX.set(dict(data))
    try:
        yield
    finally:
        RUN_CTX.reset(token)

#-----------------------------------------------------------------------------

def new_trace_id() -> str:
    return uuid.uuid4().hex

#-----------------------------------------------------------------------------

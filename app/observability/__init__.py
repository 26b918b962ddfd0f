from .langfuse import (
    LangfuseConfigError,
    get_openai_client_class,
    initialize_langfuse,
    shutdown_langfuse,
    start_langfuse_span,
)

__all__ = [
    "LangfuseConfigError",
    "get_openai_client_class",
    "initialize_langfuse",
    "shutdown_langfuse",
    "start_langfuse_span",
]

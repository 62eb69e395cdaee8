from .threads import create_thread_registry, create_tool_registry, default_options

__all__ = ["create_thread_registry", "create_tool_registry", "default_options"]

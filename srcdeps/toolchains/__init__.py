"""Built-in toolchain plugins. Each exposes ``register(registry, ...)``."""

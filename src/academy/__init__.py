"""Chess Academy: a browser chess board with an LLM coach."""

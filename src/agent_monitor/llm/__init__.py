"""Language model clients: OpenAI-compatible SDK, plain REST (Gemini/Claude) and offline."""

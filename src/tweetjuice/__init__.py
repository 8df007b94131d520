"""
TweetJuice backend package.

Provides:
- FastAPI server with rewrite / punchline / compose endpoints
- OpenAI-compatible chat-completion client with a mock fallback when no key is set
"""

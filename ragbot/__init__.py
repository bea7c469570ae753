"""Telegram chat bot with retrieval-augmented generation over Azure AI Search."""

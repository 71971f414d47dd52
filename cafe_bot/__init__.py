"""
Cafe Bot: conversational order-resolution engine for a café chatbot.

Turns English or Tagalog utterances into catalog-grounded order lines
through fuzzy matching, size disambiguation and multi-turn clarification.
"""

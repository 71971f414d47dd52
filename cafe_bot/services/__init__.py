"""
Services Package for Cafe Bot
=============================

Available Services:
-------------------
- **session**: Per-session conversation state and cancellable message handling
- **submission**: Finalized order payload and order sinks
"""

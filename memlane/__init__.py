"""memlane: long-term memory service for conversational agents.

Stores per-user identity facts and free-text memory chunks, answers
relevance queries through an inverted token index, and holds
machine-extracted proposals in a review queue until a caretaker decides.
"""

__version__ = "0.1.0"

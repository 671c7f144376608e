"""Long-term memory: chunks, the inverted token index, and search.

Chunks are tokenized at write time and indexed token by token; search
resolves candidates through the index and ranks them by token overlap
blended with importance.
"""

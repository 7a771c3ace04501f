"""
Agent Memory - Long-term semantic memory for agents

This package chunks text, embeds each chunk through a pluggable embedding
provider, persists the entries to a JSON mirror, and retrieves the most
similar chunks for a query.
"""

__version__ = "1.0.0"

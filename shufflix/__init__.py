"""Shufflix core: feed/deck engine and fuzzy title search.

Sub-packages:
- catalog: TMDB catalog client, raw record mapping, provider names
- deck: feed rotation, candidate pool, exclusions, deck controller
- search: normalization, fuzzy ranking, rescue matching, search sessions
- library: persistence and sync collaborator protocols
"""

__version__ = "0.1.0"

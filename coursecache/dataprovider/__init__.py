"""
Data Provider Subpackage.

Interface of the backend document store and the fetch operations the cache
manager runs against it.
"""

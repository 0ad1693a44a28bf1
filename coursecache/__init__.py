"""
coursecache Root Package.

Tiered read cache sitting between the course marketplace's data-fetching
code and its document database.
"""

# Version information
__version__ = "0.1.0"

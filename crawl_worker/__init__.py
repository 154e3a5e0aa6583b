"""
Crawl worker runtime.

Claims crawl tasks from a task server, resolves their execution configs,
keeps the worker on a compatible software version and runs the crawl engine.
"""

__version__ = "1.0.0"

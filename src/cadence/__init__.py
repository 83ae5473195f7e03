"""
Cadence is a small toolkit for scheduling asynchronous work in python.
It wraps a callable into a cancellable repeat/poll loop on top of asyncio.

Modules:
- cadence.time: Schedule/poll utilities (schedule, wait_for, timeout guard)
- cadence.logs: Logging utilities (glog/text/json formatters)
"""

from cadence.__version__ import __version__

__all__ = ["__version__"]

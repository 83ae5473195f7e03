# -*- coding: utf-8 -*-

__title__ = "cadence"
__description__ = "Cancellable asynchronous schedule/poll toolkit for asyncio."
__url__ = ""
__version__ = "0.1.0"
__author__ = "Cadence Authors"
__author_email__ = ""
__license__ = "MIT"

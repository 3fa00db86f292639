from .dummy import logger_or_dummy
from .timer import Timer

__all__ = ["Timer", "logger_or_dummy"]

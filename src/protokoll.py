#!/usr/bin/env python3
"""Logging setup shared by the kolbenspur modules"""

import logging


#------------------------------------------------------------- LOGGING SETUP ---#
def addLoggingLevel(levelName, levelNum, methodName=None):
    """from: https://stackoverflow.com/questions/2183233/how-to-add-a-custom-loglevel-to-pythons-logging-facility
    Comprehensively adds a new logging level to the `logging` module and the
    currently configured logging class.

    `levelName` becomes an attribute of the `logging` module with the value
    `levelNum`. `methodName` becomes a convenience method for both `logging`
    itself and the class returned by `logging.getLoggerClass()` (usually just
    `logging.Logger`). If `methodName` is not specified, `levelName.lower()` is
    used.

    To avoid accidental clobberings of existing attributes, this method will
    raise an `AttributeError` if the level name is already an attribute of the
    `logging` module or if the method name is already present

    Example
    -------
    >>> addLoggingLevel('TRACE', logging.DEBUG - 5)
    >>> logging.getLogger(__name__).setLevel("TRACE")
    >>> logging.getLogger(__name__).trace('that worked')
    >>> logging.trace('so did this')
    >>> logging.TRACE
    5

    """
    if not methodName:
        methodName = levelName.lower()

    if hasattr(logging, levelName):
       raise AttributeError('{} already defined in logging module'.format(levelName))
    if hasattr(logging, methodName):
       raise AttributeError('{} already defined in logging module'.format(methodName))
    if hasattr(logging.getLoggerClass(), methodName):
       raise AttributeError('{} already defined in logger class'.format(methodName))

    def logForLevel(self, message, *args, **kwargs):
        if self.isEnabledFor(levelNum):
            self._log(levelNum, message, args, **kwargs)
    def logToRoot(message, *args, **kwargs):
        logging.log(levelNum, message, *args, **kwargs)

    logging.addLevelName(levelNum, levelName)
    setattr(logging, levelName, levelNum)
    setattr(logging.getLoggerClass(), methodName, logForLevel)
    setattr(logging, methodName, logToRoot)


_LOG_FORMATTER = logging.Formatter(fmt=" %(asctime)13s *%(levelname).1s* %(message)s",
                                   datefmt="%y%m%d-%H%M%S", style="%")
_OFFSET = 21
_NL = "\n" + " " * _OFFSET
logLines = lambda lines: "> " + lines[0] + _NL + _NL.join(lines[1:]) + "\n"

# create new level = MESSAGE
if not hasattr(logging, "MESSAGE"):
    addLoggingLevel("MESSAGE", 100)

_ROOT_NAME = "kolbenspur"

# console handler, attached once to the common parent logger
_LOG_CH = logging.StreamHandler()
_LOG_CH.setLevel(logging.WARNING)
_LOG_CH.setFormatter(_LOG_FORMATTER)

_ROOT = logging.getLogger(_ROOT_NAME)
_ROOT.setLevel(logging.DEBUG)
if _LOG_CH not in _ROOT.handlers:
    _ROOT.addHandler(_LOG_CH)

# level = [logging.CRITICAL, logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG]
_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def get_logger(name: str) -> logging.Logger:
    """Child of the kolbenspur logger, so all modules share one console handler."""
    if name in ("__main__", _ROOT_NAME):
        return _ROOT
    return _ROOT.getChild(name)


def set_verbosity(verbose: int = 0):
    _LOG_CH.setLevel(_LEVELS[max(0, min(len(_LEVELS) - 1, verbose))])


def add_file_handler(filename: str, verbose: int = 0) -> logging.FileHandler:
    fh = logging.FileHandler(filename=filename, mode="w", encoding="utf-8")
    fh.setLevel(_LEVELS[max(0, min(len(_LEVELS) - 1, verbose))])
    fh.setFormatter(_LOG_FORMATTER)
    _ROOT.addHandler(fh)
    return fh

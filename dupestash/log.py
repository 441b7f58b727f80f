import functools
import sys


__all__ = (
    "select_level",
    "NullLogger", "StreamLogger", "MemoryLogger",
    "CRITICAL", "ERROR", "WARNING", "INFO", "VERBOSE", "DEBUG", "MINIMUM",
)


CRITICAL = 50
ERROR = 40
WARNING = 30
INFO = 20
VERBOSE = 15
DEBUG = 10
MINIMUM = 0


LEVEL_PREFIXES = {
    CRITICAL: "critical: ",
    ERROR: "error: ",
    WARNING: "warning: ",
}


# CLI verbosity steps, quietest first
VERBOSITY_LEVELS = (ERROR, WARNING, INFO, VERBOSE, DEBUG)


def select_level(choices, zero_level, index):
    """Step `index` places away from `zero_level` in `choices`, clamped to the
    ends of the sequence."""
    zero_index = choices.index(zero_level)
    index = max(0, min(len(choices) - 1, zero_index + index))
    return choices[index]


def log_method(level):
    def method(self, template, *targs, **tkwargs):
        self.log(level, template, *targs, **tkwargs)
    method.__name__ = "log_%d" % level
    return method


class Logger(object):
    def __init__(self, format_func=None, min_level=MINIMUM):
        self._format_func = format_func or str.format
        self.min_level = min_level

    def _format(self, message, args, kwargs):
        if not args and not kwargs:
            return message
        return self._format_func(message, *args, **kwargs)

    def is_enabled_for(self, level):
        return level >= self.min_level

    def level_func(self, level):
        return functools.partial(self.log, level)

    def log(self, level, message, *message_args, **message_kwargs):
        if self.is_enabled_for(level):
            self._emit(level, self._format(message, message_args, message_kwargs))

    def _emit(self, level, text):
        raise NotImplementedError()

    critical = log_method(CRITICAL)
    error = log_method(ERROR)
    warning = log_method(WARNING)
    info = log_method(INFO)
    verbose = log_method(VERBOSE)
    debug = log_method(DEBUG)


class NullLogger(Logger):
    def is_enabled_for(self, level):
        return False

    def log(self, level, template, *targs, **tkwargs):
        pass

    def _emit(self, level, text):
        pass


class StreamLogger(Logger):
    """Writes one line per message to a stream, STDERR by default. Messages at
    WARNING and above are prefixed with their level name."""
    def __init__(self, format_func=None, stream=None, min_level=MINIMUM, prefix=None):
        super().__init__(format_func, min_level)
        self._stream = stream or sys.stderr
        self._prefix = prefix or ""

    def _emit(self, level, text):
        print(
            "%s%s%s" % (self._prefix, LEVEL_PREFIXES.get(level, ""), text),
            file = self._stream
        )


class MemoryLogger(Logger):
    """Keeps (level, text) pairs in `entries`."""
    def __init__(self, format_func=None, min_level=MINIMUM):
        super().__init__(format_func, min_level)
        self.entries = [ ]

    def _emit(self, level, text):
        self.entries.append((level, text))

    def messages(self, level=None):
        return [
            text for entry_level, text in self.entries
            if level is None or entry_level == level
        ]

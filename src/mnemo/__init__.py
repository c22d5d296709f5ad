"""mnemo: mind-map notes with spaced-repetition review scheduling."""

from mnemo.consts import VERSION

__version__ = VERSION

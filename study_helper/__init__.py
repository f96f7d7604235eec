"""
Study Helper

Flashcard study sessions: subjects, questions with reveal/hide answers, and import
from a remote study-set source.
"""

from . import db
from . import browser
from . import subjects
from . import fetcher
from . import importer

__version__ = "0.1.0"
__all__ = ["db", "browser", "subjects", "fetcher", "importer"]

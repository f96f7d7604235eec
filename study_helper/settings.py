"""Process-wide configuration, read once from the environment and passed around explicitly."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .records import SortOrder

DEFAULT_DB_PATH = "study.db"
DEFAULT_IMPORT_URL = "https://wp.zybooks.com/study-helper.php"


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    subject_order: SortOrder = SortOrder.ALPHABETIC
    default_question: str = ""
    import_url: str = DEFAULT_IMPORT_URL
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from STUDY_HELPER_* variables (and DEBUG)."""
        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get("STUDY_HELPER_DB", DEFAULT_DB_PATH),
            subject_order=SortOrder.from_setting(env.get("STUDY_HELPER_SUBJECT_ORDER")),
            default_question=env.get("STUDY_HELPER_DEFAULT_QUESTION", ""),
            import_url=env.get("STUDY_HELPER_IMPORT_URL", DEFAULT_IMPORT_URL),
            debug=env.get("DEBUG", "0") == "1",
        )

# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "claimtrace"

JOBS: Final[str] = f"{ROOT}:jobs"
MATCHES: Final[str] = f"{ROOT}:matches"  # per-job matched claim results
REFERENCES: Final[str] = f"{ROOT}:references"
REFERENCE_INDEX: Final[str] = f"{REFERENCES}:index"  # set of reference ids
FACTS: Final[str] = f"{ROOT}:facts"
FEEDBACK: Final[str] = f"{FACTS}:feedback"

"""
Small helpers shared by the repository and the commands.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

# Template descriptor that marks a directory as an image project
CAPSTANFILE = "Capstanfile"

FRIENDLY_TIME_FORMAT = "%Y-%m-%d %H:%M"


def is_template_file(name: str = CAPSTANFILE, cwd: Optional[Union[str, Path]] = None) -> bool:
    """Check whether a template descriptor exists relative to cwd (default: process cwd)."""
    path = Path(name)
    if cwd is not None and not path.is_absolute():
        path = Path(cwd) / path
    return os.path.exists(path)


def now_friendly() -> str:
    """Current local time as stored in the 'created' metadata field."""
    return datetime.now().strftime(FRIENDLY_TIME_FORMAT)

"""
Mneme Sync Client - Memory Folder Manager

Resolves the project name and the local memory folder layout that the
reconciler reads from and writes to.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import Dict, Optional

from ..models import TRACKED_FILES

# Configure logging
logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9_-]')


def sanitize_name(name: str) -> str:
    """Replace anything outside [A-Za-z0-9_-] so the name is safe as a folder."""
    return _UNSAFE_CHARS.sub('_', name)


def get_project_name(cwd: Path) -> str:
    """
    Get the project name for a working directory.

    Uses the git repository root name when cwd is inside a repository,
    otherwise the directory name.
    """
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(cwd),
            check=False,
            capture_output=True,
            text=True
        )
    except (OSError, ValueError) as e:
        logger.debug(f"git unavailable for project detection: {e}")
        completed = None

    if completed is not None and completed.returncode == 0 and completed.stdout.strip():
        return Path(completed.stdout.strip()).name
    return Path(cwd).resolve().name


class MemoryFolderManager:
    """
    Manages the local memory folder for one project.

    Layout:
        <base>/projects/<safe project name>/
            log.jsonl
            summary.json
            remembered.json
            entities.json
    """

    def __init__(self, base_path: Path, project_name: str):
        """
        Initialize memory folder manager.

        Args:
            base_path: Memory base directory (e.g. ~/.claude-mneme)
            project_name: Project name; sanitized before use as a folder name
        """
        self.base_path = Path(base_path)
        self.project_name = project_name
        self.project_folder = self.base_path / "projects" / sanitize_name(project_name)

    def ensure_folders(self) -> Path:
        """Create the base and project folders if needed and return the project folder."""
        self.project_folder.mkdir(parents=True, exist_ok=True)
        return self.project_folder

    def tracked_paths(self) -> Dict[str, Path]:
        """Map each tracked file name to its local path."""
        return {tracked.name: self.project_folder / tracked.name for tracked in TRACKED_FILES}

    def path_for(self, file_name: str) -> Optional[Path]:
        return self.tracked_paths().get(file_name)

    @staticmethod
    def backup_path_for(local_path: Path) -> Path:
        """Backup written before a pulled file overwrites local content."""
        return local_path.with_name(local_path.name + ".bak")

# px/modules/eclipse.py
"""
eclipse.py - the Eclipse side of px.

- known projects: what the Eclipse workspace has already imported
- the .px settings directory (home of the focus list)
- import automation: open a project directory with the eclipse command,
  then optionally press "Finish" with the finish command
- clipboard copy through whichever clipboard tool is installed
"""

from __future__ import annotations
import platform
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Set

from px.modules import logger as _logger
from px.modules.config import config as _config
from px.modules.utils import Utils

DOT_PROJECTS = ".metadata/.plugins/org.eclipse.core.resources/.projects"
PX_DIR = ".px"
FOCUS_LIST = "focus-list"

CLIPBOARD_COMMANDS = (
    ["pbcopy"],
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["xsel", "--clipboard", "--input"],
    ["clip"],
)


class EclipseError(Exception):
    pass


def is_macos() -> bool:
    return platform.system() == "Darwin"


def default_eclipse_command() -> Optional[List[str]]:
    return ["open", "-a", "Eclipse"] if is_macos() else None


def default_finish_command() -> Optional[List[str]]:
    if not is_macos():
        return None
    return ["osascript", "-e",
            'tell app "System Events" to tell process "Eclipse" to click button "Finish" of window 1']


def eclipse_sort_key(path) -> str:
    """Sort key matching the order of Eclipse's import-existing-projects dialog."""
    return str(path).replace(".", "\0") + "\1"


class EclipseWorkspace:
    def __init__(self,
                 root,
                 eclipse_command: Optional[List[str]] = None,
                 finish_command: Optional[List[str]] = None,
                 logger: Optional[_logger.Logger] = None,
                 cfg=None):
        cfg = cfg or _config
        self.root = Path(root)
        self.eclipse_command = eclipse_command or cfg.getcommand("eclipse", "command") or default_eclipse_command()
        self.finish_command = finish_command or cfg.getcommand("eclipse", "finish_command") or default_finish_command()
        self.log = logger or _logger.Logger("eclipse", cfg=cfg)
        self._known: Optional[Set[str]] = None

    # -------------------------
    # locations
    # -------------------------
    def workspace_dir(self) -> Path:
        return Utils.verify_dir("eclipse workspace", self.root, EclipseError)

    def dot_projects_dir(self) -> Path:
        return Utils.verify_dir(".projects dir", self.workspace_dir() / DOT_PROJECTS, EclipseError)

    def px_dir(self) -> Path:
        return Utils.verify_or_create_dir("eclipse px settings dir", self.workspace_dir() / PX_DIR, EclipseError)

    def focus_list_file(self) -> Path:
        return Utils.verify_or_create_file("focus list file", self.px_dir() / FOCUS_LIST, EclipseError)

    # -------------------------
    # queries
    # -------------------------
    def known_projects(self) -> Set[str]:
        """Names of the projects already imported into the Eclipse workspace."""
        if self._known is None:
            dot_projects = self.dot_projects_dir()
            try:
                self._known = frozenset(Utils.list_subdirs(dot_projects))
            except OSError as e:
                raise EclipseError(
                    f"Could not enumerate Eclipse projects despite finding metadata location: {dot_projects} ({e})"
                )
            self.log.debug(f"{len(self._known)} projects known to eclipse")
        return self._known

    # -------------------------
    # automation
    # -------------------------
    def _run(self, cmd: List[str]):
        self.log.info(f"Running: {' '.join(cmd)}")
        try:
            subprocess.run(cmd, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise EclipseError(f"Error invoking command '{' '.join(cmd)}': {e}")

    def invoke(self, path: str):
        """Opens `path` with the eclipse command, then runs the finish command if there is one."""
        if not self.eclipse_command:
            raise EclipseError("Must specify eclipse command in order to automate eclipse actions.")
        self._run(list(self.eclipse_command) + [str(path)])
        if self.finish_command:
            self._run(list(self.finish_command))

    def copy_to_clipboard(self, text: str):
        for cmd in CLIPBOARD_COMMANDS:
            if shutil.which(cmd[0]):
                try:
                    subprocess.run(cmd, input=text, text=True, check=True)
                except (OSError, subprocess.CalledProcessError) as e:
                    raise EclipseError(f"Could not copy to clipboard with {cmd[0]}: {e}")
                self.log.debug(f"Copied to clipboard with {cmd[0]}: {text}")
                return
        raise EclipseError("No clipboard tool found (tried pbcopy, wl-copy, xclip, xsel, clip)")

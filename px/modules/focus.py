# px/modules/focus.py
"""
focus.py - the list of projects the user intends to edit in eclipse.

The focus list lives in <eclipse workspace>/.px/focus-list, one entry per line:

    com.example.api*          glob pattern, adds matching projects
    !com.example.api.test     exclusion, removes matching projects
    kluge:com.example.core    a single project whose dependencies come first

Patterns are applied in list order. The projects required for the focus are the
focus projects, their direct users, and everything those depend on; kluge
projects and their dependencies are prioritised ahead of the rest.
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from px.modules import logger as _logger
from px.modules.eclipse import EclipseWorkspace
from px.modules.query import ProjectQuery
from px.modules.utils import Utils

KLUGE = "kluge:"


class FocusError(Exception):
    pass


def is_kluge(entry: str) -> bool:
    return entry.startswith(KLUGE)


def encode_kluge(project: str) -> str:
    return KLUGE + project


def decode_kluge(entry: str) -> str:
    return entry[len(KLUGE):]


class Focus:
    def __init__(self, query: ProjectQuery, eclipse: EclipseWorkspace, logger: Optional[_logger.Logger] = None):
        self.query = query
        self.eclipse = eclipse
        self.log = logger or _logger.Logger("focus")

    # -------------------------
    # I/O
    # -------------------------
    def read(self) -> List[str]:
        path = self.eclipse.focus_list_file()
        try:
            lines = Utils.read_lines(path)
        except OSError as e:
            raise FocusError(f"Could not open the focus file for reading: {path} ({e})")
        return [line.strip() for line in lines if line.strip()]

    def write(self, entries: List[str]):
        path = self.eclipse.focus_list_file()
        try:
            Utils.write_lines(path, entries)
        except OSError as e:
            raise FocusError(f"Failed to open focus file for writing: {path} ({e})")
        self.log.debug(f"Focus list written to {path} ({len(entries)} entries)")

    # -------------------------
    # entries
    # -------------------------
    def kluge_projects(self, entries: Optional[List[str]] = None) -> List[str]:
        entries = self.read() if entries is None else entries
        return [decode_kluge(e) for e in entries if is_kluge(e) and self.query.has_project(decode_kluge(e))]

    def focus_patterns(self, entries: Optional[List[str]] = None) -> List[str]:
        entries = self.read() if entries is None else entries
        return [e for e in entries if not is_kluge(e)]

    def focus_projects(self, entries: Optional[List[str]] = None) -> List[str]:
        return self.query.matching_projects(self.focus_patterns(entries))

    def format_projects(self, entries: List[str]) -> List[str]:
        kluges = [k + " (kluge)" for k in self.kluge_projects(entries)]
        return kluges + self.focus_projects(entries)

    # -------------------------
    # edits
    # -------------------------
    def _update(self, new_entries: List[str]) -> Tuple[List[str], List[str]]:
        old_entries = self.read()
        self.write(new_entries)
        return old_entries, new_entries

    def add(self, patterns: List[str]) -> Tuple[List[str], List[str]]:
        return self._update(self.read() + list(patterns))

    def remove(self, patterns: List[str]) -> Tuple[List[str], List[str]]:
        drop = set(patterns)
        return self._update([e for e in self.read() if e not in drop])

    def clear(self) -> Tuple[List[str], List[str]]:
        return self._update([])

    def kluge(self, project: str) -> Tuple[List[str], List[str]]:
        if not self.query.has_project(project):
            raise FocusError(f"Unable to find project: {project}")
        return self._update(self.read() + [encode_kluge(project)])

    def unkluge(self, project: str) -> Tuple[List[str], List[str]]:
        entries = self.read()
        entry = encode_kluge(project)
        if entry not in entries:
            raise FocusError(f"Unable to find kluge in list: {project}")
        entries.remove(entry)
        return self._update(entries)

    def summarise(self, old_entries: List[str], new_entries: List[str]) -> Dict[str, object]:
        before = set(self.format_projects(old_entries))
        after = set(self.format_projects(new_entries))
        added = after - before
        removed = before - after
        rows = []
        for name in sorted(before | after):
            mark = "+" if name in added else "-" if name in removed else " "
            rows.append((mark, name))
        return {
            "rows": rows,
            "added": len(added),
            "removed": len(removed),
            "unchanged": len(before & after),
        }

    # -------------------------
    # dependency views
    # -------------------------
    def all_required_projects(self) -> List[Path]:
        entries = self.read()
        focus_projects = self.focus_projects(entries)
        users = self.query.dependent_projects(focus_projects)
        main_list = self.query.required_projects(sorted(set(focus_projects) | set(users)))
        kluge_list = self.query.required_projects(self.kluge_projects(entries))
        prioritised = set(kluge_list)
        return kluge_list + [p for p in main_list if p not in prioritised]

    def missing_projects(self) -> List[Path]:
        known = self.eclipse.known_projects()
        return [p for p in self.all_required_projects() if p.name not in known]

    def leaf_dependencies(self) -> List[str]:
        """Absolute paths of the next projects to import, kluges first."""
        known = self.eclipse.known_projects()
        leaves = self.query.leaf_projects(self.kluge_projects(), known)
        if not leaves:
            required = [p.name for p in self.all_required_projects()]
            leaves = self.query.leaf_projects(required, known)
            if not leaves:
                raise FocusError("Nothing to import!")
        return [str(p.absolute()) for p in leaves]

    def orphans(self) -> List[str]:
        """Known projects that the current focus does not need."""
        required = {p.name for p in self.all_required_projects()}
        return sorted(set(self.eclipse.known_projects()) - required)

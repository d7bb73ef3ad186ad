# px/modules/query.py
"""
Queries over a built Catalog.

Every query is a pure read: the catalog and its graph are never modified, so
repeating a call with the same arguments gives the same answer.
Project identifiers may be directory names or aliases.
"""

from __future__ import annotations
import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional, Set

from rich.console import Console

from px.modules import logger as _logger
from px.modules.catalog import Catalog, CatalogError, Project
from px.modules.graph import DependencyGraph


class LookupFailure(CatalogError):
    pass


class ProjectNotFoundError(LookupFailure):
    pass


class NoMatchError(LookupFailure):
    pass


class ProjectQuery:
    def __init__(self, catalog: Catalog, logger: Optional[_logger.Logger] = None,
                 err_console: Optional[Console] = None):
        self.catalog = catalog
        self.graph = catalog.graph
        self.log = logger or catalog.log
        self.err_console = err_console or Console(stderr=True, highlight=False)

    # -------------------------
    # lookup
    # -------------------------
    def resolve(self, name: str) -> Project:
        project = self.catalog.lookup(name)
        if project is None:
            raise ProjectNotFoundError(f'No project found with name "{name}"')
        return project

    def resolve_optional(self, name: str) -> Optional[Project]:
        return self.catalog.lookup(name)

    def has_project(self, name: str) -> bool:
        return self.catalog.lookup(name) is not None

    def find_by_pattern(self, pattern: str) -> Set[Project]:
        """Glob-match the pattern against every project name and alias."""
        found = {self.catalog.lookup(key) for key in self.catalog.index_keys
                 if fnmatch.fnmatchcase(key, pattern)}
        if not found:
            raise NoMatchError(f'No project found matching pattern "{pattern}"')
        return found

    def find_projects(self, patterns: Iterable[str]) -> List[Path]:
        roots = set()
        for pattern in patterns:
            roots.update(p.root for p in self.find_by_pattern(pattern))
        return sorted(roots)

    def matching_projects(self, patterns: Iterable[str]) -> List[str]:
        """
        Project names selected by the patterns, applied in order; `!pattern` removes.
        A pattern that matches nothing is reported and skipped.
        """
        selected: Set[str] = set()
        for pattern in patterns:
            exclude = pattern.startswith("!")
            if exclude:
                pattern = pattern[1:]
            try:
                names = {p.name for p in self.find_by_pattern(pattern)}
            except NoMatchError:
                self.err_console.print(f"error: no projects found matching pattern '{pattern}'",
                                       markup=False, highlight=False, soft_wrap=True)
                continue
            if exclude:
                selected -= names
            else:
                selected |= names
        return sorted(selected)

    def all_projects(self) -> List[Path]:
        return sorted({p.root for p in self.catalog.projects})

    # -------------------------
    # closure / ordering
    # -------------------------
    def _seeds(self, names: Iterable[str], ignore_missing: bool) -> List[str]:
        resolve = self.resolve_optional if ignore_missing else self.resolve
        seeds = []
        for name in names:
            project = resolve(name)
            if project is not None and project.name not in seeds:
                seeds.append(project.name)
        return seeds

    def project_and_dependency_subgraph(self, names: Iterable[str], ignore_missing: bool = False) -> DependencyGraph:
        """The named projects plus everything they (transitively) depend on, as an induced subgraph."""
        seeds = self._seeds(names, ignore_missing)
        return self.graph.subgraph(self.graph.reachable(seeds))

    def required_projects(self, names: Iterable[str], ignore_missing: bool = False) -> List[Path]:
        """
        Root paths of the named projects and all their dependencies,
        every project listed after the projects it depends on.
        Raises CycleError if the dependencies loop.
        """
        deps = self.project_and_dependency_subgraph(names, ignore_missing)
        order = deps.topo_order()
        self.log.debug(f"{len(order)} projects required, {len(deps.edges)} dependencies among them")
        return [self.catalog.project(n).root for n in order]

    def dependent_projects(self, names: Iterable[str]) -> List[str]:
        """Names of the projects that depend directly on any of the named projects."""
        users: List[str] = []
        for name in names:
            project = self.resolve(name)
            for user in sorted(self.graph.predecessors(project.name)):
                if user not in users:
                    users.append(user)
        return users

    def root_projects(self, names: Iterable[str], ignore_missing: bool = True) -> List[str]:
        """Projects in the closure of `names` that nothing else in that closure requires."""
        deps = self.project_and_dependency_subgraph(names, ignore_missing)
        return sorted(n for n in deps.nodes if deps.in_degree(n) == 0)

    def leaf_projects(self, names: Iterable[str], satisfied: Iterable[str], ignore_missing: bool = False) -> List[Path]:
        """
        Projects needed by `names` that are not yet satisfied but whose own
        dependencies all are: the next batch that can be imported.
        """
        done = {p.name for p in map(self.resolve_optional, satisfied) if p is not None}
        deps = self.project_and_dependency_subgraph(names, ignore_missing)
        leaves = []
        for node in deps.topo_order():
            if node in done:
                continue
            if all(dep in done for dep in deps.successors(node)):
                leaves.append(self.catalog.project(node).root)
        return leaves

# px/modules/catalog.py
"""
Catalog - the immutable model of a bnd workspace.

- one Project per immediate subdirectory holding the primary descriptor
- a name index (directory names plus distinct aliases)
- the dependency graph, edges resolved through the index

Name collisions and unresolved references follow configurable policies:
  collisions = last-wins | error
  unresolved = lenient | strict
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from px.modules import logger as _logger
from px.modules.config import config as _config
from px.modules.descriptor import DescriptorLoader
from px.modules.graph import DependencyGraph
from px.modules.utils import Utils

COLLISION_POLICIES = ("last-wins", "error")
UNRESOLVED_POLICIES = ("lenient", "strict")


class CatalogError(Exception):
    pass


class WorkspaceNotFoundError(CatalogError):
    pass


class NameCollisionError(CatalogError):
    pass


class UnresolvedReferenceError(CatalogError):
    pass


class Project:
    """A graph node: one project directory of the workspace."""

    __slots__ = ("name", "alias", "root", "refs")

    def __init__(self, name: str, root: Path, alias: Optional[str] = None, refs: Tuple[str, ...] = ()):
        self.name = name
        self.root = root
        self.alias = alias if alias and alias != name else None
        self.refs = tuple(refs)

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.name, self.alias) if self.alias else (self.name,)

    def __repr__(self):
        return f"Project({self.name!r})"

    def __str__(self):
        return self.name


class Catalog:
    def __init__(self,
                 workspace,
                 loader: Optional[DescriptorLoader] = None,
                 collisions: Optional[str] = None,
                 unresolved: Optional[str] = None,
                 logger: Optional[_logger.Logger] = None,
                 cfg=None):
        cfg = cfg or _config
        self.workspace = Path(workspace)
        self.loader = loader or DescriptorLoader(cfg=cfg)
        self.collisions = collisions or cfg.getchoice("catalog", "collisions", COLLISION_POLICIES, "last-wins")
        self.unresolved = unresolved or cfg.getchoice("catalog", "unresolved", UNRESOLVED_POLICIES, "lenient")
        if self.collisions not in COLLISION_POLICIES:
            raise CatalogError(f"Unknown collision policy: {self.collisions}")
        if self.unresolved not in UNRESOLVED_POLICIES:
            raise CatalogError(f"Unknown unresolved-reference policy: {self.unresolved}")
        self.log = logger or _logger.Logger("catalog", cfg=cfg)

        self._projects: Dict[str, Project] = {}
        self._index: Dict[str, Project] = {}
        self._graph = DependencyGraph()
        self._build()

    # -------------------------
    # construction
    # -------------------------
    def _build(self):
        if not self.workspace.is_dir():
            raise WorkspaceNotFoundError(f"Could not locate bnd workspace: {self.workspace}")
        self.log.debug(f"Scanning bnd workspace {self.workspace}")
        for project in self._discover():
            self._projects[project.name] = project
            self._graph.add_node(project.name)
        for project in self._projects.values():
            self._register(project)
        for project in self._projects.values():
            self._link(project)
        self.log.info(
            f"Catalog built: {len(self._projects)} projects, {len(self._graph.edges)} dependencies"
        )

    def _discover(self) -> Iterable[Project]:
        for dirname in Utils.list_subdirs(self.workspace):
            root = self.workspace / dirname
            if not self.loader.is_project_dir(root):
                continue
            desc = self.loader.load(root)
            yield Project(desc.name, root, desc.alias, desc.refs)

    def _register(self, project: Project):
        for key in project.names:
            previous = self._index.get(key)
            if previous is not None and previous is not project:
                msg = f"Name '{key}' claimed by both {previous.name} and {project.name}"
                if self.collisions == "error":
                    raise NameCollisionError(msg)
                self.log.warning(f"{msg}; using {project.name}")
            self._index[key] = project

    def _link(self, project: Project):
        for ref in project.refs:
            target = self._index.get(ref)
            if target is None:
                if self.unresolved == "strict":
                    raise UnresolvedReferenceError(
                        f"Project {project.name} refers to unknown project '{ref}'"
                    )
                self.log.debug(f"{project.name}: ignoring reference to '{ref}'")
                continue
            if target is project:
                continue
            self._graph.add_edge(project.name, target.name)

    # -------------------------
    # read-only views
    # -------------------------
    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def projects(self) -> List[Project]:
        return list(self._projects.values())

    @property
    def index_keys(self) -> List[str]:
        return sorted(self._index)

    def lookup(self, name: str) -> Optional[Project]:
        return self._index.get(name)

    def project(self, node: str) -> Project:
        """The project behind a graph node (its directory name)."""
        return self._projects[node]

    def __len__(self):
        return len(self._projects)

    def __repr__(self):
        return f"Catalog({os.fspath(self.workspace)!r}, projects={len(self._projects)})"

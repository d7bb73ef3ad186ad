# px/modules/export.py
"""
Graph export: DOT, JSON, YAML and a rich tree view of the dependency graph.
"""

from __future__ import annotations
import json
from typing import Any, Dict, List, Optional

import yaml
from rich.markup import escape
from rich.tree import Tree

from px.modules.catalog import Catalog
from px.modules.graph import DependencyGraph

FORMATS = ("dot", "json", "yaml", "tree")


def graph_dict(catalog: Catalog, graph: DependencyGraph) -> Dict[str, Any]:
    projects = []
    for node in sorted(graph.nodes):
        project = catalog.project(node)
        projects.append({
            "name": project.name,
            "alias": project.alias,
            "path": str(project.root),
            "depends": sorted(graph.successors(node)),
        })
    return {
        "workspace": str(catalog.workspace),
        "projects": projects,
        "edges": len(graph.edges),
    }


def to_json(catalog: Catalog, graph: DependencyGraph) -> str:
    return json.dumps(graph_dict(catalog, graph), indent=2, ensure_ascii=False)


def to_yaml(catalog: Catalog, graph: DependencyGraph) -> str:
    return yaml.safe_dump(graph_dict(catalog, graph), sort_keys=False, allow_unicode=True)


def to_dot(graph: DependencyGraph) -> str:
    lines = ["digraph deps {", "  rankdir=LR;"]
    for node in sorted(graph.nodes):
        lines.append(f'  "{node}";')
    for src, dst in sorted(graph.edges):
        lines.append(f'  "{src}" -> "{dst}";')
    lines.append("}")
    return "\n".join(lines) + "\n"


def to_tree(graph: DependencyGraph, roots: Optional[List[str]] = None, title: str = "dependencies") -> Tree:
    """
    Each root with its dependencies nested below; repeats are marked and not expanded again.
    Nodes no root reaches (cycles nothing points into) start their own branches.
    """
    if roots is None:
        roots = sorted(n for n in graph.nodes if graph.in_degree(n) == 0)
    tree = Tree(f"[bold green]{escape(title)}[/bold green]")
    expanded = set()

    def walk(node: str, branch: Tree):
        if node in expanded:
            branch.add(f"{escape(node)} [dim](see above)[/dim]")
            return
        expanded.add(node)
        child = branch.add(escape(node))
        for dep in sorted(graph.successors(node)):
            walk(dep, child)

    for root in roots:
        walk(root, tree)
    for node in sorted(graph.nodes):
        if node not in expanded:
            walk(node, tree)
    return tree

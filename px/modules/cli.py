# px/modules/cli.py
"""
px - Project eXplorer.

Explore relationships between projects in a bnd workspace and their
corresponding projects in an eclipse workspace.
- Uses rich for colored output, tables and trees.
- The catalog is built once per invocation, on first use.

Usage examples:
  px deps com.example.app                 # app and its dependencies, dependencies first
  px -b dev uses com.example.core         # direct users of core
  px ls 'com.example.*' '!*.test'         # glob listing with exclusions
  px focus add 'com.example.api*'
  px focus next --copy                    # next project to import, copied to clipboard
  px graph com.example.app --format dot -o app.dot
"""

from __future__ import annotations
import argparse
import os
import shlex
import sys
import time
import traceback
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from px import __version__
from px.modules import logger as _logger
from px.modules.catalog import Catalog, CatalogError
from px.modules.config import ConfigError, PxConfig, config as default_config
from px.modules.descriptor import DescriptorError
from px.modules.eclipse import EclipseError, EclipseWorkspace, eclipse_sort_key
from px.modules.export import FORMATS, graph_dict, to_dot, to_json, to_tree, to_yaml
from px.modules.focus import Focus, FocusError
from px.modules.graph import CycleError
from px.modules.query import ProjectQuery

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CYCLE = 2
EXIT_UNEXPECTED = 3

TREE_FILE_WIDTH = 200


def make_console(no_color: bool, quiet: bool, stderr: bool = False) -> Console:
    if no_color:
        return Console(color_system=None, no_color=True, quiet=quiet, stderr=stderr, highlight=False)
    return Console(quiet=quiet, stderr=stderr, highlight=False)


class CLI:
    def __init__(self, args: argparse.Namespace, cfg: PxConfig, console: Console, err_console: Console,
                 log: _logger.Logger):
        self.args = args
        self.cfg = cfg
        self.console = console
        self.err_console = err_console
        self.log = log
        self._catalog: Optional[Catalog] = None
        self._query: Optional[ProjectQuery] = None
        self._eclipse: Optional[EclipseWorkspace] = None
        self._focus: Optional[Focus] = None

    # -----------------------
    # lazily built collaborators
    # -----------------------
    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            workspace = self.args.bnd_workspace or self.cfg.get("workspace", "bnd_workspace", fallback=".")
            self._catalog = Catalog(workspace, cfg=self.cfg, logger=self.log)
        return self._catalog

    @property
    def query(self) -> ProjectQuery:
        if self._query is None:
            self._query = ProjectQuery(self.catalog, logger=self.log, err_console=self.err_console)
        return self._query

    @property
    def eclipse(self) -> EclipseWorkspace:
        if self._eclipse is None:
            root = self.args.eclipse_workspace or self.cfg.get("workspace", "eclipse_workspace", fallback="../../eclipse")
            self._eclipse = EclipseWorkspace(
                root,
                eclipse_command=shlex.split(self.args.eclipse_command) if self.args.eclipse_command else None,
                finish_command=shlex.split(self.args.finish_command) if self.args.finish_command else None,
                logger=self.log,
                cfg=self.cfg,
            )
        return self._eclipse

    @property
    def focus(self) -> Focus:
        if self._focus is None:
            self._focus = Focus(self.query, self.eclipse, logger=self.log)
        return self._focus

    def out(self, line) -> None:
        self.console.print(str(line), markup=False, highlight=False, soft_wrap=True)

    # -----------------------
    # top-level commands
    # -----------------------
    def cmd_deps(self, args: argparse.Namespace) -> int:
        paths = self.query.required_projects(args.projects)
        if not args.show_all:
            known = self.eclipse.known_projects()
            paths = [p for p in paths if p.name not in known]
        items = [Path(p.name) if args.print_names else p.absolute() for p in paths]
        if args.eclipse_ordering:
            items = sorted(items, key=eclipse_sort_key)
        for item in items:
            self.out(item)
        return EXIT_OK

    def cmd_gaps(self, args: argparse.Namespace) -> int:
        known = self.eclipse.known_projects()
        for p in self.query.required_projects(sorted(known), ignore_missing=True):
            if p.name not in known:
                self.out(p.absolute())
        return EXIT_OK

    def cmd_known(self, args: argparse.Namespace) -> int:
        for name in sorted(self.eclipse.known_projects()):
            self.out(name)
        return EXIT_OK

    def cmd_list(self, args: argparse.Namespace) -> int:
        if args.patterns:
            names = self.query.matching_projects(args.patterns)
        else:
            names = sorted(p.name for p in self.query.all_projects())
        for name in names:
            self.out(name)
        return EXIT_OK

    def cmd_roots(self, args: argparse.Namespace) -> int:
        for name in self.query.root_projects(sorted(self.eclipse.known_projects()), ignore_missing=True):
            self.out(name)
        return EXIT_OK

    def cmd_uses(self, args: argparse.Namespace) -> int:
        for name in self.query.dependent_projects(args.projects):
            self.out(name)
        return EXIT_OK

    def cmd_graph(self, args: argparse.Namespace) -> int:
        catalog = self.catalog
        if args.projects:
            graph = self.query.project_and_dependency_subgraph(args.projects)
            roots = [self.query.resolve(n).name for n in args.projects]
        else:
            graph = catalog.graph
            roots = None

        tree = text = None
        if args.format == "tree":
            tree = to_tree(graph, roots=roots, title=f"dependencies in {catalog.workspace}")
        elif args.format == "dot":
            text = to_dot(graph)
        elif args.format == "yaml":
            text = to_yaml(catalog, graph)
        else:
            text = to_json(catalog, graph)

        if not args.output:
            if tree is not None:
                self.console.print(tree)
            else:
                self.console.out(text, end="", highlight=False)
            return EXIT_OK

        with open(args.output, "w", encoding="utf-8") as fh:
            if tree is not None:
                Console(file=fh, color_system=None, width=TREE_FILE_WIDTH, highlight=False).print(tree)
            else:
                fh.write(text)
        summary = graph_dict(catalog, graph)
        self.log.success(
            f"Wrote {args.format} graph ({len(summary['projects'])} projects, {summary['edges']} edges) to {args.output}"
        )
        return EXIT_OK

    # -----------------------
    # focus
    # -----------------------
    def _print_focus_list(self, entries: List[str]):
        focus = self.focus
        self.out("")
        self.out("Kluge list:")
        for k in focus.kluge_projects(entries):
            self.out("\t" + k)
        self.out("")
        self.out("Focus list:")
        for p in focus.focus_patterns(entries):
            self.out("\t" + p)
        if any(e.startswith("!") for e in entries):
            self.out("N.B. When using exclusion (a pattern preceded by an exclamation mark), order is important. "
                     "Inclusions and exclusions happen in list order.")

    def _summarise(self, old_entries: List[str], new_entries: List[str]):
        self._print_focus_list(new_entries)
        summary = self.focus.summarise(old_entries, new_entries)
        table = Table(title="Focused projects", show_header=False, box=None)
        table.add_column("change", style="bold")
        table.add_column("project")
        styles = {"+": "green", "-": "red", " ": ""}
        for mark, name in summary["rows"]:
            table.add_row(mark, name, style=styles[mark])
        self.console.print(table)
        self.out(f"{summary['added']} added, {summary['removed']} removed, {summary['unchanged']} unchanged.")

    def _wait(self, args: argparse.Namespace):
        if getattr(args, "delay", None) is not None:
            time.sleep(args.delay / 1000.0)
        elif getattr(args, "pause", False):
            self.console.input("Press return to continue")

    def _act(self, args: argparse.Namespace, path: str):
        self.out(path)
        if args.copy:
            self.eclipse.copy_to_clipboard(path)
        if args.auto:
            self.eclipse.invoke(path)

    def cmd_focus(self, args: argparse.Namespace) -> int:
        focus = self.focus
        sub = args.focus_command
        if sub == "add":
            self._summarise(*focus.add(args.patterns))
        elif sub == "remove":
            self._summarise(*focus.remove(args.patterns))
        elif sub == "clear":
            focus.clear()
            self.out("Focus list cleared")
        elif sub in ("kluge", "kludge"):
            self._summarise(*focus.kluge(args.project))
        elif sub in ("unkluge", "unkludge"):
            self._summarise(*focus.unkluge(args.project))
        elif sub == "list":
            entries = focus.read()
            self._print_focus_list(entries)
            self.out("")
            self.out("Focus projects:")
            for name in focus.format_projects(entries):
                self.out("\t" + name)
        elif sub == "deps":
            paths = focus.missing_projects()
            if args.count:
                self.out(len(paths))
            else:
                for p in paths:
                    self.out(p.absolute())
        elif sub == "next":
            self._act(args, focus.leaf_dependencies()[0])
        elif sub == "batch":
            if (args.delay is not None or args.pause) and not args.auto:
                raise FocusError("--delay and --pause can only be used with --auto")
            leaves = focus.leaf_dependencies()
            self._act(args, leaves[0])
            for leaf in leaves[1:]:
                if args.auto:
                    self._wait(args)
                elif args.copy:
                    self.console.input("Press return to continue")
                self._act(args, leaf)
        elif sub == "orphans":
            orphans = focus.orphans()
            self.out("The following projects are no longer required for the current focus:")
            for name in orphans:
                self.out("\t" + name)
            self.out("These projects can be closed, or deleted from eclipse (but not from the filesystem).")
        return EXIT_OK


# -----------------------
# CLI wiring and argparse setup
# -----------------------
def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="px",
        description="Project eXplorer - explore relationships between projects in a bnd workspace "
                    "and their corresponding projects in an eclipse workspace",
    )
    ap.add_argument("--version", action="version", version=f"Project eXplorer {__version__}")
    ap.add_argument("-b", "--bnd-workspace", help="Location of the bnd workspace (default: .)")
    ap.add_argument("-e", "--eclipse-workspace", help="Location of the eclipse workspace (default: ../../eclipse)")
    ap.add_argument("-c", "--eclipse-command", help="Command to open a directory for import into eclipse")
    ap.add_argument("-f", "--finish-command", help="Command to press finish on eclipse's import dialog")
    ap.add_argument("--conf", help="Path to px.conf")
    ap.add_argument("--no-color", action="store_true", help="Disable color output")
    ap.add_argument("--quiet", action="store_true", help="Quiet mode; no log output")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    sub = ap.add_subparsers(dest="command", required=True)

    p_deps = sub.add_parser(
        "deps", help="Lists specified project(s) and their transitive dependencies in dependency order")
    p_deps.add_argument("-a", "--show-all", action="store_true",
                        help="Includes projects already in the Eclipse workspace")
    p_deps.add_argument("-n", "--print-names", action="store_true",
                        help="Print names of projects rather than paths")
    p_deps.add_argument("-e", "--eclipse-ordering", action="store_true",
                        help="Use the ordering of eclipse's import-existing-projects dialog box")
    p_deps.add_argument("projects", nargs="+", metavar="PROJECT")

    sub.add_parser("gaps", help="Lists projects needed by but missing from Eclipse")
    sub.add_parser("known", help="Show projects already known to Eclipse")

    p_list = sub.add_parser("list", aliases=["ls"], help="Lists projects matching the specified patterns")
    p_list.add_argument("patterns", nargs="*", metavar="PATTERN",
                        help="Glob patterns; prefix with ! to exclude")

    sub.add_parser("roots", help="Show known projects that are not required by any other projects")

    p_uses = sub.add_parser("uses", help="Lists projects that depend directly on specified project(s)")
    p_uses.add_argument("projects", nargs="+", metavar="PROJECT")

    p_graph = sub.add_parser("graph", help="Export the dependency graph (whole workspace or given projects)")
    p_graph.add_argument("projects", nargs="*", metavar="PROJECT")
    p_graph.add_argument("--format", choices=FORMATS, default="tree")
    p_graph.add_argument("-o", "--output", help="Write to a file instead of stdout")

    # focus
    p_focus = sub.add_parser("focus", help="Manage the projects you intend to edit in eclipse")
    f_sub = p_focus.add_subparsers(dest="focus_command", required=True)

    f_add = f_sub.add_parser("add", help="Add the specified pattern(s) to the focus list")
    f_add.add_argument("patterns", nargs="+", metavar="PATTERN")
    f_remove = f_sub.add_parser("remove", help="Remove the specified pattern(s) from the focus list")
    f_remove.add_argument("patterns", nargs="+", metavar="PATTERN")
    f_sub.add_parser("clear", help="Clear the focus list completely")
    f_sub.add_parser("list", help="List focus projects")

    f_deps = f_sub.add_parser("deps", help="Print all missing dependencies for current focus")
    f_deps.add_argument("-c", "--count", action="store_true", help="Show a count of the remaining dependencies")

    f_next = f_sub.add_parser("next", help="Print the next project to add to eclipse")
    next_action = f_next.add_mutually_exclusive_group()
    next_action.add_argument("-c", "--copy", action="store_true", help="Copy it to the clipboard")
    next_action.add_argument("-a", "--auto", action="store_true", help="Import it into eclipse")

    f_batch = f_sub.add_parser("batch", help="Work with next tranche of projects whose dependencies are satisfied")
    batch_action = f_batch.add_mutually_exclusive_group()
    batch_action.add_argument("-c", "--copy", action="store_true", help="Copy each project, waiting for return")
    batch_action.add_argument("-a", "--auto", action="store_true", help="Import each project into eclipse")
    batch_wait = f_batch.add_mutually_exclusive_group()
    batch_wait.add_argument("-d", "--delay", type=int, metavar="MILLISECONDS",
                            help="How long to wait after invoking the eclipse command (with --auto)")
    batch_wait.add_argument("-p", "--pause", action="store_true", help="Wait for return between projects (with --auto)")

    f_kluge = f_sub.add_parser("kluge", aliases=["kludge"],
                               help="Prioritise a project and its dependencies to resolve errors in eclipse")
    f_kluge.add_argument("project", metavar="PROJECT")
    f_unkluge = f_sub.add_parser("unkluge", aliases=["unkludge"], help="Remove a project from the list of kluges")
    f_unkluge.add_argument("project", metavar="PROJECT")
    f_sub.add_parser("orphans", help="Identify projects in eclipse not needed for the current focus")

    return ap


COMMANDS = {
    "deps": CLI.cmd_deps,
    "gaps": CLI.cmd_gaps,
    "known": CLI.cmd_known,
    "list": CLI.cmd_list,
    "ls": CLI.cmd_list,
    "roots": CLI.cmd_roots,
    "uses": CLI.cmd_uses,
    "graph": CLI.cmd_graph,
    "focus": CLI.cmd_focus,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_argparser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    console = make_console(args.no_color, quiet=False)
    err_console = make_console(args.no_color, quiet=False, stderr=True)
    conf = args.conf or os.environ.get("PX_CONFIG")
    try:
        cfg = PxConfig([conf], required=True) if conf else default_config
    except ConfigError as e:
        err_console.print(f"ERROR: {e}", style="bold red", markup=False, soft_wrap=True)
        return EXIT_ERROR

    log = _logger.Logger("px", cfg=cfg)
    if args.verbose:
        log.set_level("debug")
    if args.quiet:
        log.log_to_console = False
    if args.no_color:
        log.color_output = False

    cli = CLI(args, cfg, console, err_console, log)
    try:
        return COMMANDS[args.command](cli, args)
    except CycleError as e:
        err_console.print(f"ERROR: {e}", style="bold red", markup=False, soft_wrap=True)
        return EXIT_CYCLE
    except (CatalogError, DescriptorError, EclipseError, FocusError, ConfigError) as e:
        err_console.print(f"ERROR: {e}", style="bold red", markup=False, soft_wrap=True)
        return EXIT_ERROR
    except Exception as e:
        err_console.print(Panel(escape(f"Unhandled error: {e}"), title="px", style="red"))
        log.error(traceback.format_exc())
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    raise SystemExit(main())

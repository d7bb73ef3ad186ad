"""Pytest configuration. Fixtures build throwaway bnd and eclipse workspaces under tmp_path."""
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from px.modules.catalog import Catalog
from px.modules.config import PxConfig
from px.modules.eclipse import DOT_PROJECTS, EclipseWorkspace
from px.modules.query import ProjectQuery


def write_project(workspace, name, alias=None, build=(), test=(), overrides=None, body=None):
    root = Path(workspace) / name
    root.mkdir(parents=True, exist_ok=True)
    if body is None:
        lines = []
        if alias:
            lines.append(f"Bundle-SymbolicName: {alias}")
        if build:
            lines.append("-buildpath: " + ",".join(build))
        if test:
            lines.append("-testpath: " + ",".join(test))
        body = "\n".join(lines) + "\n"
    (root / "bnd.bnd").write_text(body, encoding="utf-8")
    if overrides is not None:
        (root / "bnd.overrides").write_text(overrides, encoding="utf-8")
    return root


@pytest.fixture
def cfg():
    # defaults only, never the user's own px.conf
    return PxConfig(locations=[])


@pytest.fixture
def bnd_workspace(tmp_path):
    ws = tmp_path / "bnd"
    ws.mkdir()
    return ws


@pytest.fixture
def make_project(bnd_workspace):
    def _make(name, **kwargs):
        return write_project(bnd_workspace, name, **kwargs)
    return _make


@pytest.fixture
def scenario(make_project, bnd_workspace):
    """core <- api <- app, app also test-depends on core."""
    make_project("core")
    make_project("api", build=["core;version=latest"])
    make_project("app", build=["api; version=1.0"], test=["core"])
    return bnd_workspace


@pytest.fixture
def query_for(cfg):
    def _query(workspace, **kwargs):
        return ProjectQuery(Catalog(workspace, cfg=cfg, **kwargs))
    return _query


@pytest.fixture
def eclipse_root(tmp_path):
    root = tmp_path / "eclipse"
    (root / DOT_PROJECTS).mkdir(parents=True)
    return root


@pytest.fixture
def make_known(eclipse_root):
    def _known(*names):
        for name in names:
            (eclipse_root / DOT_PROJECTS / name).mkdir(parents=True, exist_ok=True)
    return _known


@pytest.fixture
def eclipse(eclipse_root, cfg):
    return EclipseWorkspace(eclipse_root, cfg=cfg)

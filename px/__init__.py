"""px - Project eXplorer: dependency queries over a bnd workspace."""

__version__ = "0.8.0"

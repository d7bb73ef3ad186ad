# px/modules/utils.py

import os
from pathlib import Path


class Utils:
    """
    Filesystem helpers shared by the catalog, the eclipse adapter and the focus list.
    """

    @staticmethod
    def list_subdirs(path):
        """
        Names of the immediate subdirectories of a directory, sorted.
        """
        if not os.path.isdir(path):
            return []
        return sorted(d for d in os.listdir(path) if os.path.isdir(os.path.join(path, d)))

    @staticmethod
    def verify_dir(desc, path, error=OSError):
        """
        Returns the path when it is a directory, otherwise raises `error`.
        """
        path = Path(path)
        if path.is_dir():
            return path
        raise error(f"Could not locate {desc}: {path}")

    @staticmethod
    def verify_or_create_dir(desc, path, error=OSError):
        path = Path(path)
        if path.is_dir():
            return path
        if path.exists():
            raise error(f"Could not overwrite {desc} as directory: {path}")
        try:
            path.mkdir()
        except OSError as e:
            raise error(f"Could not create {desc}: {path} ({e})")
        return path

    @staticmethod
    def verify_or_create_file(desc, path, error=OSError):
        path = Path(path)
        if path.is_file() and os.access(path, os.W_OK):
            return path
        if path.exists():
            raise error(f"Could not use {desc}: {path}")
        try:
            path.touch()
        except OSError as e:
            raise error(f"Could not create {desc}: {path} ({e})")
        return path

    @staticmethod
    def read_lines(path):
        """
        Reads a text file and returns its lines without line terminators.
        """
        with open(path, "r", encoding="utf-8") as f:
            return f.read().splitlines()

    @staticmethod
    def write_lines(path, lines):
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")

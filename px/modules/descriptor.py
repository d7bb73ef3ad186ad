# px/modules/descriptor.py
"""
Descriptor loader - reads a project's bnd.bnd (and bnd.overrides, when present).

The descriptor is a properties-style key/value file:

    Bundle-SymbolicName: com.example.api; singleton:=true
    -buildpath: \\
        com.example.core;version=latest,\\
        com.example.util
    -testpath com.example.junit;version=file

A key ends at the first unescaped `=`, `:` or whitespace. The overlay is read
after the primary file, so its keys win. The loader only extracts what the
catalog needs: the alias and the build/test reference lists.
"""

from __future__ import annotations
import os
import string
from typing import Dict, List, Optional, Tuple

from px.modules.config import config as _config

KEY_TERMINATORS = "=: \t\f"
SEPARATOR_SPACE = " \t\f"
ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


class DescriptorError(Exception):
    pass


def strip_attributes(token: str) -> str:
    """Drops a `;`-delimited attribute suffix and surrounding whitespace."""
    return token.split(";", 1)[0].strip()


def join_continuations(text: str) -> List[str]:
    """
    Folds backslash-continued lines into logical lines, left-trimmed.
    Comment lines come out with a leading `#`.
    """
    logical = []
    pending = None
    for raw in text.splitlines():
        line = raw.strip() if pending is not None else raw.lstrip()
        if pending is None and line.startswith(("#", "!")):
            logical.append("#" + line[1:])
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        continued = trailing % 2 == 1
        if continued:
            line = line[:-1]
        pending = line if pending is None else pending + line
        if not continued:
            logical.append(pending)
            pending = None
    if pending is not None:
        logical.append(pending)
    return logical


def unescape(text: str) -> str:
    out = []
    i = 0
    while i < len(text):
        c = text[i]
        if c != "\\" or i + 1 == len(text):
            out.append(c)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            digits = text[i + 2:i + 6]
            if len(digits) != 4 or any(d not in string.hexdigits for d in digits):
                raise DescriptorError(f"Malformed \\uxxxx escape: \\u{digits}")
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def split_property(line: str) -> Tuple[str, str]:
    """Splits one logical line at the first unescaped `=`, `:` or whitespace."""
    end = 0
    while end < len(line) and line[end] not in KEY_TERMINATORS:
        end += 2 if line[end] == "\\" else 1
    key = line[:end]
    rest = line[end:].lstrip(SEPARATOR_SPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(SEPARATOR_SPACE)
    return unescape(key), unescape(rest)


def parse_properties(text: str, props: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Parses properties text into `props` (a new dict by default); later keys win."""
    props = {} if props is None else props
    for line in join_continuations(text):
        if not line or line.startswith("#"):
            continue
        key, value = split_property(line)
        props[key] = value
    return props


class Descriptor:
    """The parts of one project's descriptor the catalog cares about."""

    def __init__(self, name: str, alias: Optional[str], refs: Tuple[str, ...]):
        self.name = name
        self.alias = alias
        self.refs = refs

    def __repr__(self):
        return f"Descriptor(name={self.name!r}, alias={self.alias!r}, refs={self.refs!r})"


class DescriptorLoader:
    def __init__(self,
                 descriptor_file: Optional[str] = None,
                 overlay_file: Optional[str] = None,
                 alias_key: Optional[str] = None,
                 build_key: Optional[str] = None,
                 test_key: Optional[str] = None,
                 cfg=None):
        cfg = cfg or _config
        self.descriptor_file = descriptor_file or cfg.get("catalog", "descriptor", fallback="bnd.bnd")
        self.overlay_file = overlay_file or cfg.get("catalog", "overlay", fallback="bnd.overrides")
        self.alias_key = alias_key or cfg.get("catalog", "alias_key", fallback="Bundle-SymbolicName")
        self.build_key = build_key or cfg.get("catalog", "build_key", fallback="-buildpath")
        self.test_key = test_key or cfg.get("catalog", "test_key", fallback="-testpath")

    def is_project_dir(self, path) -> bool:
        return os.path.isfile(os.path.join(path, self.descriptor_file))

    # -------------------------
    # I/O
    # -------------------------
    def read_properties(self, project_dir) -> Dict[str, str]:
        """Primary descriptor layered with the overlay, as one dict."""
        props: Dict[str, str] = {}
        for fname in (self.descriptor_file, self.overlay_file):
            path = os.path.join(project_dir, fname)
            if fname == self.overlay_file and not os.path.exists(path):
                continue
            try:
                with open(path, "r", encoding="utf-8") as f:
                    text = f.read()
            except (OSError, UnicodeDecodeError) as e:
                raise DescriptorError(f"Could not read {path}: {e}")
            try:
                parse_properties(text, props)
            except DescriptorError as e:
                raise DescriptorError(f"Could not parse {path}: {e}")
        return props

    def load(self, project_dir) -> Descriptor:
        project_dir = os.fspath(project_dir)
        props = self.read_properties(project_dir)
        name = os.path.basename(os.path.normpath(project_dir))
        alias = strip_attributes(props.get(self.alias_key) or "") or None
        refs = self.path_list(props, self.build_key) + self.path_list(props, self.test_key)
        return Descriptor(name, alias, tuple(refs))

    @staticmethod
    def path_list(props, key: str) -> List[str]:
        raw = props.get(key) or ""
        tokens = (strip_attributes(t) for t in raw.split(","))
        return [t for t in tokens if t]

from __future__ import annotations

"""CSS plugins
-------------
Text-level stylesheet transforms run by the build pipeline:

- ImportInliner splices local `@import`ed files into the importing sheet.
- VendorPrefixer adds vendor-prefixed copies of declarations browsers still
  need them for.
"""

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from snapprep.css.config import IMPORT_INLINER, VENDOR_PREFIXER
from snapprep.utils.logger import get_logger


log = get_logger(__name__)


class ImportResolutionError(Exception):
    """An @import could not be resolved, or imports form a cycle."""


class CssPlugin:
    name: str = ""

    def process(self, css: str, source: Path) -> str:
        raise NotImplementedError


# ---------------- @import inlining ----------------

# Comments and quoted strings are consumed whole so an `@import` inside them
# is never treated as a rule.
_IMPORT_RULE = re.compile(
    r"""(?P<comment>/\*[\s\S]*?\*/)
      |(?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
      |@import\s+
        (?:url\(\s*(?P<q1>['"]?)(?P<url>[^'")]+)(?P=q1)\s*\)
          |(?P<q2>['"])(?P<str>[^'"]+)(?P=q2))
        \s*(?P<media>[^;]*);[ \t]*\n?""",
    re.VERBOSE | re.IGNORECASE,
)

_REMOTE = re.compile(r"^(?:[a-z][a-z0-9+.-]*:)?//", re.IGNORECASE)


class ImportInliner(CssPlugin):
    """
    Replace `@import` rules with the content of the referenced local file.

    Paths resolve against the importing file's directory, then each of
    `load_paths`. Remote URLs are left in place. A file is inlined only the
    first time it is reached; later imports of it are dropped. Imports with a
    media query are wrapped in `@media <query> { ... }`.
    """

    name = IMPORT_INLINER

    def __init__(self, load_paths: Sequence[Path] = ()) -> None:
        self.load_paths = [Path(p) for p in load_paths]

    def process(self, css: str, source: Path) -> str:
        source = Path(source).resolve()
        return self._inline(css, source, stack=[source], seen={source})

    def _resolve(self, target: str, importer: Path) -> Path:
        for base in [importer.parent, *self.load_paths]:
            candidate = (base / target).resolve()
            if candidate.is_file():
                return candidate
        raise ImportResolutionError(f"Failed to find '{target}' imported from {importer}")

    def _inline(self, css: str, source: Path, stack: List[Path], seen: Set[Path]) -> str:
        def replace(m: re.Match) -> str:
            if m.group("comment") is not None or m.group("string") is not None:
                return m.group(0)
            target = (m.group("url") or m.group("str")).strip()
            if _REMOTE.match(target):
                return m.group(0)

            path = self._resolve(target, source)
            if path in stack:
                chain = " -> ".join(str(p) for p in [*stack, path])
                raise ImportResolutionError(f"Import cycle: {chain}")
            if path in seen:
                log.debug(f"Skipping duplicate import of {path}")
                return ""
            seen.add(path)

            body = self._inline(path.read_text(encoding="utf-8"), path, [*stack, path], seen)
            body = body.rstrip("\n") + "\n"
            media = m.group("media").strip()
            if media:
                return f"@media {media} {{\n{body}}}\n"
            return body

        return _IMPORT_RULE.sub(replace, css)


# ---------------- vendor prefixing ----------------

# Unprefixed property -> prefixes still required by some supported browser.
PREFIX_SUPPORT: Dict[str, tuple] = {
    "appearance": ("-webkit-", "-moz-"),
    "backdrop-filter": ("-webkit-",),
    "box-decoration-break": ("-webkit-",),
    "clip-path": ("-webkit-",),
    "hyphens": ("-webkit-", "-ms-"),
    "mask": ("-webkit-",),
    "mask-image": ("-webkit-",),
    "mask-position": ("-webkit-",),
    "mask-repeat": ("-webkit-",),
    "mask-size": ("-webkit-",),
    "print-color-adjust": ("-webkit-",),
    "tab-size": ("-moz-",),
    "text-emphasis": ("-webkit-",),
    "text-size-adjust": ("-webkit-", "-moz-", "-ms-"),
    "user-select": ("-webkit-", "-moz-", "-ms-"),
}

_DECLARATION_HEAD = re.compile(r"(?P<lead>[{;]\s*)(?P<prop>[A-Za-z][A-Za-z-]*)(?P<sep>\s*:\s*)")


def _value_end(css: str, i: int) -> int:
    """
    Index of the `;` or `}` closing the value that starts at `i`, skipping
    quoted strings and parenthesised groups such as url(...). Returns -1 when
    the text is not a declaration (a `{` shows up first, or the input ends).
    """
    depth = 0
    quote: Optional[str] = None
    n = len(css)
    while i < n:
        ch = css[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif depth == 0 and ch in ";}":
            return i
        elif depth == 0 and ch == "{":
            return -1
        i += 1
    return -1


class VendorPrefixer(CssPlugin):
    """
    Emit prefixed declarations ahead of each unprefixed one listed in
    PREFIX_SUPPORT. Prefixes already declared in the same block are kept as-is
    and not duplicated.
    """

    name = VENDOR_PREFIXER

    def __init__(self, prefixes: Optional[Iterable[str]] = None) -> None:
        self.prefixes = tuple(prefixes) if prefixes is not None else ("-webkit-", "-moz-", "-ms-", "-o-")

    def process(self, css: str, source: Path) -> str:
        out: List[str] = []
        pos = 0
        # a declaration's terminating `;` is left unconsumed so it can lead the next one
        while True:
            m = _DECLARATION_HEAD.search(css, pos)
            if not m:
                break
            end = _value_end(css, m.end())
            if end == -1:
                # selector like `a:hover {`; resume just past the lead character
                out.append(css[pos:m.start() + 1])
                pos = m.start() + 1
                continue
            raw = css[m.end():end]
            value = raw.rstrip()
            out.append(css[pos:m.start()])
            out.append(self._expand(css, m, value, raw[len(value):], end))
            pos = end
        out.append(css[pos:])
        return "".join(out)

    def _expand(self, css: str, m: re.Match, value: str, trailing: str, end: int) -> str:
        lead, sep = m.group("lead"), m.group("sep")
        original = f"{lead}{m.group('prop')}{sep}{value}{trailing}"
        prop = m.group("prop").lower()
        wanted = [p for p in PREFIX_SUPPORT.get(prop, ()) if p in self.prefixes]
        if not wanted:
            return original

        block_start = css.rfind("{", 0, m.start() + 1)
        block_end = css.find("}", end)
        block = css[block_start:block_end if block_end != -1 else len(css)]
        missing = [
            p for p in wanted
            if not re.search(rf"(?<![\w-]){re.escape(p + prop)}\s*:", block, re.IGNORECASE)
        ]
        if not missing:
            return original

        indent = lead[1:]
        prefixed = "".join(f"{p}{prop}{sep}{value};{indent}" for p in missing)
        return f"{lead}{prefixed}{m.group('prop')}{sep}{value}{trailing}"

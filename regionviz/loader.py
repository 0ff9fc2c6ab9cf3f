"""
regionviz.loader
================

Read functions and their region trees from disk.

Two equivalent input forms are accepted.

JSON (one object, a list of objects, or ``{"functions": [...]}``)::

    {"function": "loop",
     "blocks": [{"name": "entry", "instructions": ["br label %H"]},
                "H", "A", "B", "exit"],
     "edges": [["entry", "H"], ["H", "A"], ["A", "B"], ["B", "H"],
               ["H", "exit"]],
     "regions": {"entry": "entry", "blocks": ["entry", "exit"],
                 "children": [{"entry": "H", "exit": "exit",
                               "blocks": ["H", "A", "B"]}]}}

S-expressions, one ``function`` form per function::

    (function loop
      (block entry "br label %H")
      (block H) (block A) (block B) (block exit)
      (edge entry H) (edge H A) (edge A B) (edge B H) (edge H exit)
      (region :entry entry
        (blocks entry exit)
        (region :entry H :exit exit (blocks H A B))))

A region may carry ``simple`` (``:simple true``) to record the region
analysis' own classification.  Without a region tree the whole function
is a single top-level region.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Sequence,
    Union,
)

import sexpdata
from sexpdata import Symbol

from .ctrlflow_graph import BasicBlock, Function
from .errors import LoadError
from .region_info import Region, RegionInfo

_log = logging.getLogger(__name__)

Sexp = Any  # Union[list, Symbol, str, int, float, bool]

JSON_SUFFIXES = frozenset({".json"})
SEXP_SUFFIXES = frozenset({".sexp", ".rgn", ".lisp"})


# ═══════════════════════════════════════════════════════════════════════
#  Shared construction helpers
# ═══════════════════════════════════════════════════════════════════════

def _lookup(fn: Function, name: str, what: str) -> BasicBlock:
    if not fn.has_block(name):
        raise LoadError(f"{what} refers to unknown block '{name}' in function '{fn.name}'")
    return fn.block(name)


def _whole_function_region(fn: Function) -> Region:
    return Region(fn.blocks[0], None, fn.blocks)


def _finish(fn: Function, root: Optional[Region]) -> RegionInfo:
    if not fn.blocks:
        raise LoadError(f"function '{fn.name}' has no blocks")
    if root is None:
        root = _whole_function_region(fn)
    info = RegionInfo(fn, root)
    _log.debug("loaded %r", info)
    return info


# ═══════════════════════════════════════════════════════════════════════
#  JSON
# ═══════════════════════════════════════════════════════════════════════

def _json_list(d: Dict[str, Any], key: str, fn: Function) -> list:
    value = d.get(key, [])
    if not isinstance(value, list):
        raise LoadError(
            f"'{key}' in function '{fn.name}' must be a list, got {value!r}"
        )
    return value



def _json_region(fn: Function, d: Any) -> Region:
    if not isinstance(d, dict) or "entry" not in d:
        raise LoadError(f"region in function '{fn.name}' needs an 'entry': {d!r}")
    entry = _lookup(fn, str(d["entry"]), "region entry")
    exit_name = d.get("exit")
    exit_bb = _lookup(fn, str(exit_name), "region exit") if exit_name is not None else None
    simple = d.get("simple")
    if simple is not None and not isinstance(simple, bool):
        raise LoadError(f"region 'simple' must be a boolean, got {simple!r}")
    owned = [_lookup(fn, str(n), "region block") for n in _json_list(d, "blocks", fn)]
    region = Region(entry, exit_bb, owned, simple)
    for child in _json_list(d, "children", fn):
        region.add_subregion(_json_region(fn, child))
    return region


def function_from_dict(d: Dict[str, Any]) -> RegionInfo:
    """Build a function and its region tree from a decoded JSON object."""
    if not isinstance(d, dict):
        raise LoadError(f"expected a function object, got {type(d).__name__}")
    fn = Function(str(d.get("function", d.get("name", "unnamed"))))
    for b in _json_list(d, "blocks", fn):
        if isinstance(b, str):
            name, insns = b, []
        elif isinstance(b, dict) and "name" in b:
            name, insns = str(b["name"]), [str(i) for i in _json_list(b, "instructions", fn)]
        else:
            raise LoadError(f"bad block description in function '{fn.name}': {b!r}")
        try:
            fn.add_block(name, insns)
        except ValueError as exc:
            raise LoadError(str(exc)) from exc
    for e in _json_list(d, "edges", fn):
        if not isinstance(e, (list, tuple)) or len(e) != 2:
            raise LoadError(f"edge must be a [src, dst] pair, got {e!r}")
        fn.add_edge(
            _lookup(fn, str(e[0]), "edge source"),
            _lookup(fn, str(e[1]), "edge destination"),
        )
    root = _json_region(fn, d["regions"]) if d.get("regions") is not None else None
    return _finish(fn, root)


def load_json(text: str, path: Optional[Union[str, Path]] = None) -> List[RegionInfo]:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LoadError(f"JSON syntax error: {exc}", path=path, cause=exc) from exc
    if isinstance(doc, dict) and "functions" in doc:
        doc = doc["functions"]
    items = doc if isinstance(doc, list) else [doc]
    try:
        return [function_from_dict(item) for item in items]
    except LoadError as exc:
        if exc.path is None:
            exc.path = str(path) if path is not None else None
        raise


# ═══════════════════════════════════════════════════════════════════════
#  S-expressions
# ═══════════════════════════════════════════════════════════════════════

def _sym_name(s: Sexp) -> str:
    """Extract the string name from a ``sexpdata.Symbol``, or raise."""
    if isinstance(s, Symbol):
        return s.value()
    raise LoadError(f"Expected symbol, got {type(s).__name__}: {s!r}")


def _as_str(s: Sexp) -> str:
    """Coerce *s* to a Python ``str`` – accepts Symbol, string or integer."""
    if isinstance(s, Symbol):
        return s.value()
    if isinstance(s, str):
        return s
    if isinstance(s, int) and not isinstance(s, bool):
        return str(s)
    raise LoadError(f"Expected name, got {type(s).__name__}: {s!r}")


def _as_bool(s: Sexp) -> bool:
    if isinstance(s, bool):
        return s
    if isinstance(s, Symbol):
        v = s.value().lower()
        if v in ("true", "#t", "t"):
            return True
        if v in ("false", "#f", "nil"):
            return False
    raise LoadError(f"Expected boolean, got {type(s).__name__}: {s!r}")


def _head(s: Sexp) -> Optional[str]:
    if isinstance(s, list) and s and isinstance(s[0], Symbol):
        return s[0].value()
    return None


def _sexp_region(fn: Function, form: list) -> Region:
    opts: Dict[str, Sexp] = {}
    owned: List[BasicBlock] = []
    sub_forms: List[list] = []
    items = form[1:]
    i = 0
    while i < len(items):
        item = items[i]
        if isinstance(item, Symbol) and item.value().startswith(":"):
            if i + 1 >= len(items):
                raise LoadError(f"missing value for {item.value()} in region")
            opts[item.value()[1:]] = items[i + 1]
            i += 2
            continue
        tag = _head(item)
        if tag == "blocks":
            owned.extend(_lookup(fn, _as_str(n), "region block") for n in item[1:])
        elif tag == "region":
            sub_forms.append(item)
        else:
            raise LoadError(f"unexpected form in region: {item!r}")
        i += 1

    if "entry" not in opts:
        raise LoadError(f"region in function '{fn.name}' needs an :entry")
    entry = _lookup(fn, _as_str(opts["entry"]), "region entry")
    exit_bb = None
    exit_form = opts.get("exit")
    if exit_form is not None and not (
        isinstance(exit_form, Symbol) and exit_form.value() == "nil"
    ):
        exit_bb = _lookup(fn, _as_str(exit_form), "region exit")
    simple = _as_bool(opts["simple"]) if "simple" in opts else None

    region = Region(entry, exit_bb, owned, simple)
    for sub in sub_forms:
        region.add_subregion(_sexp_region(fn, sub))
    return region


def function_from_sexp(form: Sexp) -> RegionInfo:
    """Build a function and its region tree from a ``(function ...)`` form."""
    if _head(form) != "function" or len(form) < 2:
        raise LoadError(f"expected (function NAME ...), got {form!r}")
    fn = Function(_as_str(form[1]))
    edges: List[list] = []
    root_form: Optional[list] = None
    for item in form[2:]:
        tag = _head(item)
        if tag == "block":
            if len(item) < 2:
                raise LoadError(f"block needs a name in function '{fn.name}'")
            try:
                fn.add_block(_as_str(item[1]), [_as_str(i) for i in item[2:]])
            except ValueError as exc:
                raise LoadError(str(exc)) from exc
        elif tag == "edge":
            if len(item) != 3:
                raise LoadError(f"edge must be (edge SRC DST), got {item!r}")
            edges.append(item)
        elif tag == "region":
            if root_form is not None:
                raise LoadError(f"function '{fn.name}' has more than one top-level region")
            root_form = item
        else:
            raise LoadError(f"unexpected form in function '{fn.name}': {item!r}")

    for e in edges:
        fn.add_edge(
            _lookup(fn, _as_str(e[1]), "edge source"),
            _lookup(fn, _as_str(e[2]), "edge destination"),
        )
    root = _sexp_region(fn, root_form) if root_form is not None else None
    return _finish(fn, root)


def load_sexp(text: str, path: Optional[Union[str, Path]] = None) -> List[RegionInfo]:
    # Disable nil/true/false auto-mapping; booleans are read by _as_bool.
    try:
        forms = sexpdata.loads(f"(\n{text}\n)", nil=None, true=None, false=None)
    except Exception as exc:
        raise LoadError(f"S-expression syntax error: {exc}", path=path, cause=exc) from exc
    try:
        return [function_from_sexp(form) for form in forms]
    except LoadError as exc:
        if exc.path is None:
            exc.path = str(path) if path is not None else None
        raise


# ═══════════════════════════════════════════════════════════════════════
#  Files
# ═══════════════════════════════════════════════════════════════════════

def detect_format(path: Union[str, Path]) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in JSON_SUFFIXES:
        return "json"
    if suffix in SEXP_SUFFIXES:
        return "sexp"
    raise LoadError(f"cannot tell the input format from '{suffix}'; use --format", path=path)


def load_file(path: Union[str, Path], fmt: Optional[str] = None) -> List[RegionInfo]:
    """Read every function described in *path*."""
    p = Path(path)
    fmt = fmt or detect_format(p)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise LoadError(f"cannot read input: {exc.strerror}", path=p, cause=exc) from exc
    _log.info("loading %s (%s)", p, fmt)
    if fmt == "json":
        return load_json(text, path=p)
    if fmt == "sexp":
        return load_sexp(text, path=p)
    raise LoadError(f"unknown input format '{fmt}'", path=p)


def select_functions(
    infos: Sequence[RegionInfo],
    names: Optional[Sequence[str]] = None,
) -> List[RegionInfo]:
    """Keep the functions named in *names* (all of them when empty)."""
    if not names:
        return list(infos)
    known = {info.function.name: info for info in infos}
    missing = [n for n in names if n not in known]
    if missing:
        raise LoadError(f"no such function: {', '.join(missing)}")
    return [known[n] for n in names]

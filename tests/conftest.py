# tests/conftest.py
"""
Shared builders for the regionviz tests.

The builders return ``RegionInfo`` objects for small hand-made CFGs so
each test can state its region tree explicitly.
"""

import re
from typing import Dict, List, Sequence, Tuple

import pytest

from regionviz.ctrlflow_graph import Function
from regionviz.region_info import Region, RegionInfo


# ═══════════════════════════════════════════════════════════════════
#  Builders
# ═══════════════════════════════════════════════════════════════════

def make_function(
    name: str,
    blocks: Sequence,
    edges: Sequence[Tuple[str, str]],
) -> Function:
    """Blocks are names or ``(name, [instructions])`` pairs."""
    fn = Function(name)
    for b in blocks:
        if isinstance(b, tuple):
            fn.add_block(b[0], b[1])
        else:
            fn.add_block(b)
    for src, dst in edges:
        fn.add_edge(fn.block(src), fn.block(dst))
    return fn


def make_loop() -> RegionInfo:
    """entry -> H -> A -> B -> H, H -> exit; loop region {H, A, B}."""
    fn = make_function(
        "loop",
        [
            ("entry", ["br label %H"]),
            ("H", ["%i = phi i32 [0, %entry], [%n, %B]",
                   "br i1 %c, label %A, label %exit"]),
            ("A", ["%n = add i32 %i, 1"]),
            ("B", ["br label %H"]),
            ("exit", ["ret void"]),
        ],
        [("entry", "H"), ("H", "A"), ("A", "B"), ("B", "H"), ("H", "exit")],
    )
    b = fn.block
    root = Region(b("entry"), None, [b("entry"), b("exit")])
    root.add_subregion(Region(b("H"), b("exit"), [b("H"), b("A"), b("B")]))
    return RegionInfo(fn, root)


def make_shared_header_loops() -> RegionInfo:
    """Two nested loops entered through the same header H.

    inner = {H, A} (back edge A -> H), outer = inner + {B} (back edge B -> H).
    """
    fn = make_function(
        "nested",
        ["entry", "H", "A", "B", "exit"],
        [("entry", "H"), ("H", "A"), ("A", "H"), ("A", "B"),
         ("B", "H"), ("H", "exit")],
    )
    b = fn.block
    root = Region(b("entry"), None, [b("entry"), b("exit")])
    outer = root.add_subregion(Region(b("H"), b("exit"), [b("B")]))
    outer.add_subregion(Region(b("H"), b("B"), [b("H"), b("A")]))
    return RegionInfo(fn, root)


def make_diamond() -> RegionInfo:
    """entry -> (T | F) -> join -> exit with an if-region {entry, T, F}."""
    fn = make_function(
        "diamond",
        ["entry", "T", "F", "join", "exit"],
        [("entry", "T"), ("entry", "F"), ("T", "join"), ("F", "join"),
         ("join", "exit")],
    )
    b = fn.block
    root = Region(b("entry"), None, [b("join"), b("exit")])
    cond = root.add_subregion(Region(b("entry"), b("join"), [b("entry")]))
    cond.add_subregion(Region(b("T"), b("join"), [b("T")]))
    cond.add_subregion(Region(b("F"), b("join"), [b("F")]))
    return RegionInfo(fn, root)


def make_deep_chain(depth: int) -> RegionInfo:
    """A straight line of blocks, each region nested in the previous one."""
    names = [f"b{i}" for i in range(depth + 1)]
    fn = make_function("chain", names, list(zip(names, names[1:])))
    root = Region(fn.block("b0"), None, [fn.block("b0")])
    current = root
    for i in range(1, depth + 1):
        exit_bb = fn.block(names[i + 1]) if i + 1 <= depth else None
        current = current.add_subregion(
            Region(fn.block(names[i]), exit_bb, [fn.block(names[i])])
        )
    return RegionInfo(fn, root)


# ═══════════════════════════════════════════════════════════════════
#  Document inspection
# ═══════════════════════════════════════════════════════════════════

_NODE_REF = re.compile(r"^Node(\d+);$")
_CLUSTER_OPEN = re.compile(r"^subgraph cluster_(\d+) \{$")


def cluster_membership(dot: str) -> Dict[int, List[int]]:
    """Map cluster id -> block ids referenced directly inside it."""
    members: Dict[int, List[int]] = {}
    stack: List[int] = []
    for raw in dot.splitlines():
        line = raw.strip()
        m = _CLUSTER_OPEN.match(line)
        if m:
            stack.append(int(m.group(1)))
            members[int(m.group(1))] = []
            continue
        if line == "}" and stack:
            stack.pop()
            continue
        m = _NODE_REF.match(line)
        if m and stack:
            members[stack[-1]].append(int(m.group(1)))
    return members


def cluster_nesting_ok(dot: str) -> bool:
    """Clusters are bracketed and list their blocks after their sub-clusters."""
    stack: List[bool] = []          # per open cluster: "already listed a block"
    for raw in dot.splitlines():
        line = raw.strip()
        if _CLUSTER_OPEN.match(line):
            if stack and stack[-1]:
                return False
            stack.append(False)
        elif line == "}" and stack:
            stack.pop()
        elif _NODE_REF.match(line):
            if not stack:
                return False
            stack[-1] = True
    return not stack


# ═══════════════════════════════════════════════════════════════════
#  Fixtures
# ═══════════════════════════════════════════════════════════════════

@pytest.fixture
def loop_info() -> RegionInfo:
    return make_loop()


@pytest.fixture
def nested_info() -> RegionInfo:
    return make_shared_header_loops()


@pytest.fixture
def diamond_info() -> RegionInfo:
    return make_diamond()


LOOP_JSON = """
{"function": "loop",
 "blocks": [{"name": "entry", "instructions": ["br label %H"]},
            "H", "A", "B", "exit"],
 "edges": [["entry", "H"], ["H", "A"], ["A", "B"], ["B", "H"], ["H", "exit"]],
 "regions": {"entry": "entry", "blocks": ["entry", "exit"],
             "children": [{"entry": "H", "exit": "exit",
                           "blocks": ["H", "A", "B"]}]}}
"""

LOOP_SEXP = """
; single natural loop
(function loop
  (block entry "br label %H")
  (block H) (block A) (block B) (block exit)
  (edge entry H) (edge H A) (edge A B) (edge B H) (edge H exit)
  (region :entry entry
    (blocks entry exit)
    (region :entry H :exit exit (blocks H A B))))
"""

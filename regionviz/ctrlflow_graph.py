"""
regionviz.ctrlflow_graph
========================

Minimal control flow graph model consumed by the region printer.

A :class:`Function` owns an ordered list of :class:`BasicBlock` objects
(the first one is the entry block) and the directed :class:`CFGEdge`
objects between them.  Blocks carry their textual instructions only so
that they can be printed; nothing here interprets them.

Public API
----------
    BasicBlock       - a single basic block
    CFGEdge          - a directed edge between two BasicBlocks
    Function         - the control flow graph for one function

Typical usage::

    from regionviz.ctrlflow_graph import Function

    fn = Function("loop")
    entry = fn.add_block("entry", ["br label %H"])
    header = fn.add_block("H", ["br i1 %c, label %A, label %exit"])
    fn.add_edge(entry, header)

Implementation notes
--------------------
* Block ids are assigned per function in insertion order, so two renders
  of the same input produce identical documents.
* Blocks hash by identity of ``(function, id)``; the same block object is
  shared by the CFG and the region tree built on top of it.
"""

from __future__ import annotations

from typing import (
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
)


# ---------------------------------------------------------------------------
# BasicBlock
# ---------------------------------------------------------------------------

class BasicBlock:
    """A basic block in the CFG.

    Attributes
    ----------
    id : int
        Identifier, unique within the owning function.
    name : str or None
        Source-level block name (``None`` for unnamed blocks).
    instructions : list[str]
        Printed instructions, in order.
    parent : Function
        The function this block belongs to.
    successors : list[CFGEdge]
        Outgoing edges.
    predecessors : list[CFGEdge]
        Incoming edges.
    """

    __slots__ = (
        "id",
        "name",
        "instructions",
        "parent",
        "successors",
        "predecessors",
    )

    def __init__(
        self,
        parent: "Function",
        block_id: int,
        name: Optional[str] = None,
        instructions: Optional[Sequence[str]] = None,
    ) -> None:
        self.parent = parent
        self.id: int = block_id
        self.name: Optional[str] = name
        self.instructions: List[str] = list(instructions or [])
        self.successors: List[CFGEdge] = []
        self.predecessors: List[CFGEdge] = []

    # ----- helpers ----------------------------------------------------------

    def display_name(self) -> str:
        """Return the block name, or ``%<id>`` for an unnamed block."""
        if self.name:
            return self.name
        return f"%{self.id}"

    def successor_blocks(self) -> List["BasicBlock"]:
        return [e.dst for e in self.successors]

    def predecessor_blocks(self) -> List["BasicBlock"]:
        return [e.src for e in self.predecessors]

    def __repr__(self) -> str:
        return (
            f"BasicBlock(id={self.id}, name={self.name!r}, "
            f"ninstructions={len(self.instructions)})"
        )


# ---------------------------------------------------------------------------
# CFGEdge
# ---------------------------------------------------------------------------

class CFGEdge:
    """A directed edge in the CFG.

    Attributes
    ----------
    src : BasicBlock
    dst : BasicBlock
    """

    __slots__ = ("src", "dst")

    def __init__(self, src: BasicBlock, dst: BasicBlock) -> None:
        self.src = src
        self.dst = dst

    def __repr__(self) -> str:
        return f"CFGEdge({self.src.display_name()} -> {self.dst.display_name()})"


# ---------------------------------------------------------------------------
# Function
# ---------------------------------------------------------------------------

class Function:
    """Control flow graph for a single function.

    Attributes
    ----------
    name : str
        Function name, used to name output files.
    blocks : list[BasicBlock]
        All basic blocks; ``blocks[0]`` is the entry block.
    edges : list[CFGEdge]
        All edges, in insertion order.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.blocks: List[BasicBlock] = []
        self.edges: List[CFGEdge] = []
        self._by_name: Dict[str, BasicBlock] = {}

    # ----- graph mutation ---------------------------------------------------

    def add_block(
        self,
        name: Optional[str] = None,
        instructions: Optional[Sequence[str]] = None,
    ) -> BasicBlock:
        """Create a block, register it, and return it."""
        if name is not None and name in self._by_name:
            raise ValueError(f"duplicate block name {name!r} in {self.name!r}")
        bb = BasicBlock(self, len(self.blocks), name, instructions)
        self.blocks.append(bb)
        if name is not None:
            self._by_name[name] = bb
        return bb

    def add_edge(self, src: BasicBlock, dst: BasicBlock) -> CFGEdge:
        """Create an edge, register it, and wire up predecessor/successor lists."""
        e = CFGEdge(src, dst)
        self.edges.append(e)
        src.successors.append(e)
        dst.predecessors.append(e)
        return e

    # ----- queries ----------------------------------------------------------

    @property
    def entry(self) -> Optional[BasicBlock]:
        return self.blocks[0] if self.blocks else None

    def block(self, name: str) -> BasicBlock:
        """Return the block called *name*; ``KeyError`` if there is none."""
        return self._by_name[name]

    def has_block(self, name: str) -> bool:
        return name in self._by_name

    def successors_of(self, block: BasicBlock) -> List[BasicBlock]:
        return block.successor_blocks()

    def predecessors_of(self, block: BasicBlock) -> List[BasicBlock]:
        return block.predecessor_blocks()

    def __iter__(self) -> Iterator[BasicBlock]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    def __repr__(self) -> str:
        return (
            f"Function(name={self.name!r}, blocks={len(self.blocks)}, "
            f"edges={len(self.edges)})"
        )

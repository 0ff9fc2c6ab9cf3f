"""
regionviz - Region tree printer for control flow graphs
=======================================================

Renders the single-entry-single-exit region decomposition of a function
as a Graphviz document: one record node per basic block, one edge per CFG
edge, and one nested, coloured cluster per region.

Core modules
------------
ctrlflow_graph
    Basic blocks, edges and functions.
region_info
    Region tree model, block-to-region lookup and graph nodes.
graph_writer
    Generic callback-driven DOT writer.
region_printer
    Node labels, back-edge classification and the cluster tree.
render
    DOT text, ``.dot`` files, the viewer and the four named passes.
loader
    JSON / S-expression input.

Quick start
-----------
>>> from regionviz import load_file, render_regions
>>> for info in load_file("loop.json"):
...     print(render_regions(info))

Package layout
--------------
::

    regionviz/
    ├── __init__.py            ← this file
    ├── __main__.py
    ├── ctrlflow_graph.py
    ├── errors.py
    ├── graph_writer.py
    ├── loader.py
    ├── main.py
    ├── region_info.py
    ├── region_printer.py
    └── render.py
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "RegionVizError",
        "LoadError",
        "RegionTreeError",
        "RenderError",
    ],
    "ctrlflow_graph": [
        "BasicBlock",
        "CFGEdge",
        "Function",
    ],
    "region_info": [
        "Region",
        "RegionInfo",
        "BlockNode",
        "SubRegionNode",
    ],
    "graph_writer": [
        "GraphWriter",
        "DefaultGraphTraits",
        "escape_string",
    ],
    "region_printer": [
        "node_label",
        "edge_attributes",
        "cluster_style",
        "print_region_cluster",
        "RegionGraphTraits",
    ],
    "render": [
        "RenderConfig",
        "RegionPass",
        "PASSES",
        "get_pass",
        "render_regions",
        "write_regions",
        "view_regions",
    ],
    "loader": [
        "load_file",
        "load_json",
        "load_sexp",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"regionviz: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        obj = getattr(mod, name, None)
        if obj is None:
            raise AttributeError(
                f"regionviz.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, obj)
        __all__.append(name)

    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

__all__ += ["__version__"]

# ---------------------------------------------------------------------------
# TYPE_CHECKING block: full visibility for IDEs and type checkers
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .errors import (
        RegionVizError as RegionVizError,
        LoadError as LoadError,
        RegionTreeError as RegionTreeError,
        RenderError as RenderError,
    )
    from .ctrlflow_graph import (
        BasicBlock as BasicBlock,
        CFGEdge as CFGEdge,
        Function as Function,
    )
    from .region_info import (
        Region as Region,
        RegionInfo as RegionInfo,
        BlockNode as BlockNode,
        SubRegionNode as SubRegionNode,
    )
    from .graph_writer import (
        GraphWriter as GraphWriter,
        DefaultGraphTraits as DefaultGraphTraits,
        escape_string as escape_string,
    )
    from .region_printer import (
        node_label as node_label,
        edge_attributes as edge_attributes,
        cluster_style as cluster_style,
        print_region_cluster as print_region_cluster,
        RegionGraphTraits as RegionGraphTraits,
    )
    from .render import (
        RenderConfig as RenderConfig,
        RegionPass as RegionPass,
        PASSES as PASSES,
        get_pass as get_pass,
        render_regions as render_regions,
        write_regions as write_regions,
        view_regions as view_regions,
    )
    from .loader import (
        load_file as load_file,
        load_json as load_json,
        load_sexp as load_sexp,
    )

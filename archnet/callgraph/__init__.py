from archnet.callgraph.netlogo import (
    Procedure,
    build_call_graph,
    entry_points,
    extract_calls,
    load_nlogo,
    parse_procedures,
)

__all__ = [
    "Procedure",
    "build_call_graph",
    "entry_points",
    "extract_calls",
    "load_nlogo",
    "parse_procedures",
]

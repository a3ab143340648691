"""NetLogo procedure call graphs"""
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import networkx as nx
import pandas as pd

CODE_SEPARATOR = '@#$#@#$#@'

_TOKEN_RE = re.compile(r'\[|\]|\(|\)|[^\s\[\]\(\)]+')


@dataclass
class Procedure:
    """A NetLogo `to` / `to-report` block"""
    name: str
    kind: str  # 'command' or 'reporter'
    args: List[str] = field(default_factory=list)
    body: List[str] = field(default_factory=list)
    line: int = 0


def _strip_line(line: str) -> str:
    """Remove string literals and the trailing ; comment from one line"""
    out = []
    in_string = False
    i = 0
    while i < len(line):
        ch = line[i]
        if in_string:
            if ch == '\\':
                i += 2
                continue
            if ch == '"':
                in_string = False
                out.append(' ')
        elif ch == '"':
            in_string = True
        elif ch == ';':
            break
        else:
            out.append(ch)
        i += 1
    return ''.join(out)


def tokenize(source: str) -> List[Tuple[str, int]]:
    """Lower-cased tokens with their 1-based line numbers (NetLogo is case-insensitive)"""
    tokens = []
    for lineno, line in enumerate(source.splitlines(), start=1):
        for match in _TOKEN_RE.finditer(_strip_line(line)):
            tokens.append((match.group(0).lower(), lineno))
    return tokens


def parse_procedures(source: str) -> Dict[str, Procedure]:
    """
    Find every procedure definition in NetLogo source.

    Raises ValueError for a procedure with no name or no closing `end`.
    """
    tokens = tokenize(source)
    procedures: Dict[str, Procedure] = {}
    i = 0
    while i < len(tokens):
        tok, lineno = tokens[i]
        if tok not in ('to', 'to-report'):
            i += 1
            continue

        if i + 1 >= len(tokens):
            raise ValueError(f"Procedure definition without a name at line {lineno}")
        name = tokens[i + 1][0]
        proc = Procedure(name=name, kind='reporter' if tok == 'to-report' else 'command', line=lineno)
        i += 2

        if i < len(tokens) and tokens[i][0] == '[':
            i += 1
            while i < len(tokens) and tokens[i][0] != ']':
                proc.args.append(tokens[i][0])
                i += 1
            i += 1

        while i < len(tokens) and tokens[i][0] != 'end':
            proc.body.append(tokens[i][0])
            i += 1
        if i >= len(tokens):
            raise ValueError(f"Procedure '{name}' (line {lineno}) has no closing 'end'")
        i += 1

        procedures[name] = proc
    return procedures


def extract_calls(procedures: Dict[str, Procedure]) -> pd.DataFrame:
    """(caller, callee, calls) for every body token naming a defined procedure"""
    rows = []
    for caller, proc in procedures.items():
        counts = Counter(tok for tok in proc.body if tok in procedures and tok not in proc.args)
        for callee, n in sorted(counts.items()):
            rows.append({'caller': caller, 'callee': callee, 'calls': n})
    return pd.DataFrame(rows, columns=['caller', 'callee', 'calls'])


def build_call_graph(source: str) -> nx.DiGraph:
    """Directed call graph; nodes carry `kind`, edges carry `calls`"""
    procedures = parse_procedures(source)
    G = nx.DiGraph()
    for name, proc in procedures.items():
        G.add_node(name, kind=proc.kind, line=proc.line, n_args=len(proc.args))
    for row in extract_calls(procedures).itertuples(index=False):
        G.add_edge(row.caller, row.callee, calls=int(row.calls))
    return G


def load_nlogo(path, separator: str = CODE_SEPARATOR) -> str:
    """Code section of a .nlogo model, or the whole text of a .nls include file"""
    path = Path(path)
    text = path.read_text(encoding='utf-8')
    if path.suffix == '.nlogo':
        return text.split(separator, 1)[0]
    if path.suffix == '.nls':
        return text
    raise ValueError(f"Unsupported NetLogo file type: {path.suffix}")


def entry_points(G: nx.DiGraph) -> List[str]:
    """Procedures nobody else calls (typically setup / go)"""
    return sorted(
        n for n in G.nodes
        if not any(pred != n for pred in G.predecessors(n))
    )


def call_depths(G: nx.DiGraph) -> Dict[str, int]:
    """Shortest call depth from any entry point; unreachable nodes go one layer past the deepest"""
    depths: Dict[str, int] = {}
    for root in entry_points(G):
        for node, depth in nx.single_source_shortest_path_length(G, root).items():
            if node not in depths or depth < depths[node]:
                depths[node] = depth
    fallback = max(depths.values(), default=-1) + 1
    for node in G.nodes:
        depths.setdefault(node, fallback)
    return depths


def call_graph_edges(G: nx.DiGraph) -> pd.DataFrame:
    rows = [{'caller': u, 'callee': v, 'calls': d.get('calls', 1)} for u, v, d in G.edges(data=True)]
    return pd.DataFrame(rows, columns=['caller', 'callee', 'calls'])


def plot_call_graph(G: nx.DiGraph, out_png, title: Optional[str] = None) -> None:
    """Layered drawing: one column per call depth, reporters drawn in a second colour"""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    H = G.copy()
    for node, depth in call_depths(G).items():
        H.nodes[node]['layer'] = depth

    plt.figure(figsize=(12, 8))
    pos = nx.multipartite_layout(H, subset_key='layer') if H.number_of_nodes() else {}
    colors = ['tab:orange' if H.nodes[n].get('kind') == 'reporter' else 'tab:blue' for n in H.nodes]
    nx.draw_networkx_nodes(H, pos, node_color=colors, node_size=300, alpha=0.9)
    nx.draw_networkx_edges(H, pos, arrows=True, alpha=0.5, connectionstyle='arc3,rad=0.1')
    nx.draw_networkx_labels(H, pos, font_size=8)
    plt.title(title or "NetLogo call graph")
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(out_png, dpi=200)
    plt.close()

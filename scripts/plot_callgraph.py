"""Draw the procedure call graph of a NetLogo model"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from archnet.config.params_loader import ParamsLoader
from archnet.callgraph.netlogo import (
    load_nlogo,
    build_call_graph,
    entry_points,
    call_graph_edges,
    plot_call_graph,
)


def main():
    params = ParamsLoader()
    parser = argparse.ArgumentParser(description='Plot a NetLogo call graph')
    parser.add_argument('--model', type=str, required=True, help='.nlogo or .nls file')
    parser.add_argument('--output', type=str, required=True, help='Output PNG')
    parser.add_argument('--edges-csv', type=str, default=None, help='Also write caller/callee/calls CSV')

    args = parser.parse_args()

    source = load_nlogo(args.model, separator=params.get('callgraph', 'separator'))
    G = build_call_graph(source)
    print(f"{G.number_of_nodes()} procedures, {G.number_of_edges()} call edges")
    print(f"Entry points: {', '.join(entry_points(G)) or '(none)'}")

    plot_call_graph(G, args.output, title=Path(args.model).name)
    print(f"Call graph saved to {args.output}")

    if args.edges_csv:
        call_graph_edges(G).to_csv(args.edges_csv, index=False)
        print(f"Call edges saved to {args.edges_csv}")


if __name__ == '__main__':
    main()

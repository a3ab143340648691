"""Figures for similarity networks and loss experiments"""
from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import networkx as nx
import pandas as pd


def plot_network(G: nx.Graph, out_png: Path, title: str = "Similarity network", seed: int = 42) -> None:
    """Spring-layout network with edge width scaled by weight"""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    plt.figure(figsize=(10, 8))
    pos = nx.spring_layout(G, seed=seed, k=0.6)
    weights = [G[u][v].get("weight", 1.0) for u, v in G.edges()]
    widths = [max(0.5, min(6.0, 4.0 * w)) for w in weights]
    nx.draw_networkx_edges(G, pos, alpha=0.4, width=widths)
    nx.draw_networkx_nodes(G, pos, node_size=160, alpha=0.9)
    nx.draw_networkx_labels(G, pos, font_size=8)
    plt.title(title)
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(out_png, dpi=200)
    plt.close()


def plot_similarity_heatmap(sim: pd.DataFrame, out_png: Path, title: Optional[str] = None) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 7))
    im = ax.imshow(sim.to_numpy(dtype=float), vmin=0.0, vmax=1.0, cmap="viridis")
    ax.set_xticks(range(len(sim.columns)))
    ax.set_xticklabels(sim.columns, rotation=90, fontsize=7)
    ax.set_yticks(range(len(sim.index)))
    ax.set_yticklabels(sim.index, fontsize=7)
    fig.colorbar(im, ax=ax, label="weighted Jaccard")
    ax.set_title(title or "Assemblage similarity")
    fig.tight_layout()
    fig.savefig(out_png, dpi=200)
    plt.close(fig)


def plot_loss_curves(summary: pd.DataFrame, statistic: str, out_png: Path) -> None:
    """Mean statistic with a q05-q95 band per loss scheme, against the loss fraction"""
    subset = summary[summary["statistic"] == statistic]
    if subset.empty:
        raise ValueError(f"No summary rows for statistic '{statistic}'")

    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 5))
    for scheme, group in subset.groupby("scheme"):
        group = group.sort_values("fraction")
        ax.plot(group["fraction"], group["mean"], marker="o", label=scheme)
        ax.fill_between(
            group["fraction"].to_numpy(dtype=float),
            group["q05"].to_numpy(dtype=float),
            group["q95"].to_numpy(dtype=float),
            alpha=0.2
        )
    ax.set_xlabel("fraction of data lost")
    ax.set_ylabel(statistic)
    ax.legend()
    ax.set_title(f"{statistic} under data loss")
    fig.tight_layout()
    fig.savefig(out_png, dpi=200)
    plt.close(fig)

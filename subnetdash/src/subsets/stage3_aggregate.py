"""
Stage 3: Aggregation and Views

Projects the per-subset winners into the matrix columns, the
points-by-subset-size stacks and the ledger, plus CSV export and
plain-text renderings. Every view reads the same SubsetWinner list.
"""

import math
from typing import Dict, List, Optional, Tuple

from subnetdash.src.subsets.models import (
    DisplayColumn,
    LedgerRow,
    OtherBucket,
    PointsBySize,
    SubsetColumn,
    SubsetWinner,
    WinnerTotal,
)
from subnetdash.src.subsets.config import SubsetConfig
from subnetdash.src.subsets.utils import csv_field, format_number

from subnetdash.core.setup import logger

LEDGER_HEADER = ['Subset', '|S|', 'K_s', 'Winner', 'UID', 'Rev', 'WinMode', 'MeanAcc(S)', 'DomEdges', 'TieBreak']


def metric_value(record: SubsetWinner, metric: str) -> float:
    """Bar value of a subset for the chosen metric; missing or non-finite -> 0."""
    winner = record.winner
    if winner is None:
        return 0.0
    if metric == 'pts':
        value = winner.pts
    elif metric == 'weight':
        value = winner.weight
    elif metric == 'sum':
        value = record.subset_sum
    else:
        raise ValueError(f"Unknown bar metric: {metric}")
    if value is None or not math.isfinite(value):
        return 0.0
    return float(value)


def build_columns(winners: List[SubsetWinner], metric: str) -> List[SubsetColumn]:
    """One column per subset with a winner."""
    return [
        SubsetColumn(
            mask=w.mask,
            size=w.size,
            value=metric_value(w, metric),
            winner_id=w.winner.id,
            winner_label=w.winner.model,
            winner_weight=w.winner.weight,
            winner_pts=w.winner.pts,
            env_list=list(w.env_list),
        )
        for w in winners
        if w.winner is not None
    ]


def sort_columns(columns: List[SubsetColumn]) -> List[SubsetColumn]:
    """Size ascending, value descending, winner label ascending, then mask."""
    return sorted(
        columns,
        key=lambda c: (c.size, -c.value, c.winner_label.lower(), c.mask),
    )


def truncate_columns(sorted_columns: List[SubsetColumn], top_m: int) -> List[DisplayColumn]:
    """Keep the first top_m columns and fold the rest into per-size 'other' buckets.

    A bucket is emitted, in ascending size order, only when its summed value
    is positive.
    """
    if len(sorted_columns) <= top_m:
        return list(sorted_columns)

    top = list(sorted_columns[:top_m])
    rest = sorted_columns[top_m:]

    by_size: Dict[int, OtherBucket] = {}
    for column in rest:
        bucket = by_size.setdefault(column.size, OtherBucket(size=column.size, value=0.0, count=0))
        bucket.value += column.value
        bucket.count += 1

    others = [
        bucket for size, bucket in sorted(by_size.items())
        if bucket.count > 0 and bucket.value > 0
    ]
    logger.debug(f"Folded {len(rest)} subsets into {len(others)} 'other' bucket(s)")
    return top + others


def assign_colors(
    sorted_columns: List[SubsetColumn],
    palette: Optional[List[str]] = None,
) -> Dict[str, str]:
    """Winner colors in first-seen order over the full (untruncated) sorted list."""
    palette = palette or SubsetConfig.PALETTE
    colors: Dict[str, str] = {}
    for column in sorted_columns:
        if column.winner_id not in colors:
            colors[column.winner_id] = palette[len(colors) % len(palette)]
    return colors


def points_by_subset_size(
    winners: List[SubsetWinner],
    n_envs: int,
    palette: Optional[List[str]] = None,
) -> PointsBySize:
    """Total winner points per subset size, stacked by winner.

    Subsets whose winner has no positive points contribute nothing.
    Winners are ordered by their total across all sizes (desc), and that
    order drives color assignment.
    """
    palette = palette or SubsetConfig.PALETTE
    sizes = list(range(1, n_envs + 1))
    result = PointsBySize(sizes=sizes)

    stacks: Dict[int, Dict[str, WinnerTotal]] = {}
    for record in winners:
        winner = record.winner
        if winner is None:
            continue
        pts = winner.pts
        if pts is None or not math.isfinite(pts) or pts <= 0:
            continue
        by_miner = stacks.setdefault(record.size, {})
        total = by_miner.setdefault(winner.id, WinnerTotal(id=winner.id, label=winner.model))
        total.value += pts

    global_totals: Dict[str, WinnerTotal] = {}
    for size in sizes:
        by_miner = stacks.get(size, {})
        result.by_size[size] = list(by_miner.values())
        result.totals[size] = sum(t.value for t in by_miner.values())
        for t in by_miner.values():
            agg = global_totals.setdefault(t.id, WinnerTotal(id=t.id, label=t.label))
            agg.value += t.value

    # sorted() is stable: equal totals keep first-appearance order
    result.winner_order = sorted(global_totals.values(), key=lambda t: -t.value)
    result.colors = {
        t.id: palette[i % len(palette)]
        for i, t in enumerate(result.winner_order)
    }
    return result


def build_ledger(winners: List[SubsetWinner]) -> List[LedgerRow]:
    """Ledger rows sorted by size ascending, K_s descending, winner ascending."""
    rows: List[LedgerRow] = []
    for record in winners:
        winner = record.winner
        if winner is None:
            continue
        ks = winner.pts if winner.pts is not None and math.isfinite(winner.pts) else 0.0
        rows.append(LedgerRow(
            mask=record.mask,
            size=record.size,
            subset=record.label,
            ks=ks,
            winner_label=winner.model,
            winner_uid=winner.uid,
            winner_rev=winner.rev or "",
            win_mode=record.win_mode,
            mean_acc=record.mean_acc,
            dom_edges=record.dom_edges,
            tie_break=record.tie_break,
        ))

    rows.sort(key=lambda r: (r.size, -r.ks, r.winner_label.lower(), r.mask))
    return rows


def _format_plain(value: float) -> str:
    """Render a number without a trailing .0 for integral values (81 not 81.0)."""
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def ledger_to_csv(rows: List[LedgerRow], digits: int = SubsetConfig.MEAN_ACC_DIGITS) -> str:
    """Flatten ledger rows into CSV text (header first, '\\n' line endings)."""
    lines = [",".join(LEDGER_HEADER)]
    for r in rows:
        mean_acc = "" if r.mean_acc is None or not math.isfinite(r.mean_acc) else format_number(r.mean_acc, digits)
        fields = [
            r.subset,
            str(r.size),
            _format_plain(r.ks),
            r.winner_label,
            "" if r.winner_uid is None else str(r.winner_uid),
            r.winner_rev,
            r.win_mode,
            mean_acc,
            str(r.dom_edges),
            r.tie_break,
        ]
        lines.append(",".join(csv_field(f) for f in fields))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Plain-text renderings
# ---------------------------------------------------------------------------

def render_matrix(
    envs: List[str],
    columns: List[DisplayColumn],
    colors: Dict[str, str],
    metric: str,
    width: int = 120,
) -> str:
    """UpSet-style matrix: one line per displayed column with membership dots."""
    lines = ["=" * width, f"SUBSET WINNERS MATRIX - bar metric: {metric}", "=" * width]
    header = ["|S|", f"{'Value':>10}", *[f"{env[:5]:>5}" for env in envs], "Winner"]
    lines.append(" | ".join(header))
    lines.append("-" * width)

    max_value = max((c.value for c in columns), default=0.0) or 1.0
    for column in columns:
        if isinstance(column, OtherBucket):
            dots = [f"{'':>5}" for _ in envs]
            winner = f"other ({column.count} subsets)"
        else:
            dots = [f"{'●' if env in column.env_list else '○':>5}" for env in envs]
            winner = f"{column.winner_label} [{colors.get(column.winner_id, '-')}]"
        bar = "█" * max(0, int(round(column.value / max_value * 20)))
        lines.append(" | ".join([f"{column.size:3d}", f"{column.value:>10.4f}", *dots, f"{winner} {bar}"]))

    lines.append("=" * width)
    return "\n".join(lines)


def render_ledger(rows: List[LedgerRow], width: int = 140) -> str:
    """Ledger as a fixed-width table."""
    lines = ["=" * width, "SUBSET WINNERS LEDGER", "=" * width]
    lines.append(" | ".join([
        f"{'Subset':<28}", "|S|", f"{'K_s':>10}", f"{'Winner':<32}", f"{'UID':>4}",
        f"{'Rev':<10}", "Mode", f"{'MeanAcc':>7}", "Dom", "TieBreak",
    ]))
    lines.append("-" * width)
    for r in rows:
        lines.append(" | ".join([
            f"{r.subset[:28]:<28}",
            f"{r.size:3d}",
            f"{r.ks:>10.2f}",
            f"{r.winner_label[:32]:<32}",
            f"{'' if r.winner_uid is None else r.winner_uid:>4}",
            f"{r.winner_rev[:10]:<10}",
            f"{r.win_mode:<4}",
            f"{format_number(r.mean_acc, 3):>7}",
            f"{r.dom_edges:3d}",
            r.tie_break,
        ]))
    lines.append("=" * width)
    return "\n".join(lines)


def render_points_by_size(points: PointsBySize, width: int = 100) -> str:
    """Stacked points per subset size, one block per size."""
    labels = {t.id: t.label for t in points.winner_order}
    lines = ["=" * width, "POINTS BY SUBSET SIZE (stacked by winner)", "=" * width]
    for size in points.sizes:
        total = points.totals.get(size, 0.0)
        lines.append(f"|S|={size}  total={format_number(total, 2)}")
        segments: List[Tuple[str, float]] = sorted(
            ((t.id, t.value) for t in points.by_size.get(size, [])),
            key=lambda item: -item[1],
        )
        for winner_id, value in segments:
            share = value / total if total > 0 else 0.0
            lines.append(
                f"    {labels.get(winner_id, winner_id)[:40]:<40} {format_number(value, 2):>12} "
                f"{share:>7.1%} {points.colors.get(winner_id, '')}"
            )
    lines.append("=" * width)
    return "\n".join(lines)

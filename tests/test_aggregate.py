import pytest

from subnetdash.src.subsets.config import SubsetConfig
from subnetdash.src.subsets.models import LedgerRow, Miner, OtherBucket, SubsetColumn, SubsetWinner
from subnetdash.src.subsets.stage3_aggregate import (
    LEDGER_HEADER,
    assign_colors,
    build_columns,
    build_ledger,
    ledger_to_csv,
    metric_value,
    points_by_subset_size,
    render_matrix,
    sort_columns,
    truncate_columns,
)


def make_column(mask, size, value, winner="w", label=None):
    return SubsetColumn(
        mask=mask,
        size=size,
        value=value,
        winner_id=winner,
        winner_label=label or winner,
        winner_weight=None,
        winner_pts=None,
        env_list=[],
    )


def make_record(mask, size, envs, miner, subset_sum=0.0):
    return SubsetWinner(mask=mask, size=size, env_list=envs, winner=miner, subset_sum=subset_sum)


def test_truncation_folds_rest_into_size_bucket():
    columns = sort_columns([make_column(mask=m, size=3, value=float(m)) for m in range(1, 11)])

    displayed = truncate_columns(columns, 3)

    assert len(displayed) == 4
    assert [c.value for c in displayed[:3]] == [10.0, 9.0, 8.0]
    other = displayed[3]
    assert isinstance(other, OtherBucket)
    assert other.size == 3
    assert other.count == 7
    assert other.value == pytest.approx(sum(range(1, 8)))


def test_truncation_drops_zero_value_buckets():
    columns = [make_column(1, 1, 5.0), make_column(2, 1, 0.0), make_column(3, 2, 0.0)]

    displayed = truncate_columns(sort_columns(columns), 1)

    assert displayed == [columns[0]]


def test_truncation_buckets_in_size_order():
    columns = sort_columns([
        make_column(1, 1, 9.0),
        make_column(2, 1, 1.0),
        make_column(3, 2, 2.0),
        make_column(7, 3, 3.0),
    ])

    displayed = truncate_columns(columns, 1)

    assert [(c.kind, c.size) for c in displayed] == [("subset", 1), ("other", 1), ("other", 2), ("other", 3)]


def test_no_truncation_when_under_cap():
    columns = [make_column(1, 1, 1.0), make_column(2, 1, 2.0)]
    assert truncate_columns(columns, 5) == columns


def test_sort_columns_by_size_value_then_label():
    columns = [
        make_column(4, 2, 1.0, label="z"),
        make_column(1, 1, 1.0, label="beta"),
        make_column(2, 1, 1.0, label="Alpha"),
        make_column(8, 1, 3.0, label="zeta"),
    ]

    ordered = sort_columns(columns)

    assert [c.mask for c in ordered] == [8, 2, 1, 4]


def test_colors_follow_first_appearance_in_full_list():
    columns = [
        make_column(1, 1, 9.0, winner="a"),
        make_column(2, 1, 8.0, winner="b"),
        make_column(4, 1, 7.0, winner="a"),
        make_column(3, 2, 1.0, winner="c"),
    ]

    colors = assign_colors(columns)

    palette = SubsetConfig.PALETTE
    assert colors == {"a": palette[0], "b": palette[1], "c": palette[2]}


def test_colors_wrap_around_palette():
    columns = [make_column(i, 1, 1.0, winner=f"w{i}") for i in range(len(SubsetConfig.PALETTE) + 1)]
    colors = assign_colors(columns)
    assert colors[f"w{len(SubsetConfig.PALETTE)}"] == SubsetConfig.PALETTE[0]


def test_metric_value_missing_is_zero():
    miner = Miner(id="1|m", uid=1, model="m", weight=None, pts=4.0)
    record = make_record(1, 1, ["SAT"], miner, subset_sum=float("-inf"))

    assert metric_value(record, "pts") == 4.0
    assert metric_value(record, "weight") == 0.0
    assert metric_value(record, "sum") == 0.0
    with pytest.raises(ValueError):
        metric_value(record, "median")


def test_build_columns_uses_winner_fields():
    miner = Miner(id="1|m", uid=1, model="m", weight=0.25, pts=4.0)
    columns = build_columns([make_record(3, 2, ["SAT", "ABD"], miner, subset_sum=12.0)], "sum")

    assert columns[0].to_dict() == {
        "mask": 3,
        "size": 2,
        "winnerId": "1|m",
        "winnerLabel": "m",
        "winnerWeight": 0.25,
        "winnerPts": 4.0,
        "envList": ["SAT", "ABD"],
        "value": 12.0,
    }


def test_points_by_subset_size_stacks_and_orders_winners():
    m1 = Miner(id="1|M1", uid=1, model="M1", pts=10.0)
    m2 = Miner(id="2|M2", uid=2, model="M2", pts=20.0)
    zero = Miner(id="3|Z", uid=3, model="Z", pts=0.0)
    winners = [
        make_record(1, 1, ["SAT"], m1),
        make_record(2, 1, ["ABD"], m2),
        make_record(4, 1, ["DED"], zero),
        make_record(3, 2, ["SAT", "ABD"], m2),
    ]

    points = points_by_subset_size(winners, 3)

    assert points.sizes == [1, 2, 3]
    assert points.totals == {1: 30.0, 2: 20.0, 3: 0.0}
    assert {t.id: t.value for t in points.by_size[1]} == {"1|M1": 10.0, "2|M2": 20.0}
    assert points.by_size[3] == []
    assert [t.id for t in points.winner_order] == ["2|M2", "1|M1"]
    assert points.colors["2|M2"] == SubsetConfig.PALETTE[0]
    assert "3|Z" not in points.colors


def test_ledger_sort_and_csv_quoting():
    a = Miner(id="1|org/alpha", uid=1, model="org/alpha", rev="r1", pts=5.0)
    b = Miner(id="2|org/model,v2", uid=2, model="org/model,v2", rev="", pts=None)
    winners = [
        SubsetWinner(mask=3, size=2, env_list=["SAT", "ABD"], winner=b, win_mode="mean", mean_acc=0.5),
        SubsetWinner(mask=1, size=1, env_list=["SAT"], winner=b, win_mode="dom", dom_edges=1, mean_acc=0.8),
        SubsetWinner(mask=2, size=1, env_list=["ABD"], winner=a, win_mode="dom", dom_edges=2,
                     tie_break="weight", mean_acc=0.61234),
    ]

    rows = build_ledger(winners)
    assert [r.mask for r in rows] == [2, 1, 3]

    lines = ledger_to_csv(rows).split("\n")
    assert lines[0] == ",".join(LEDGER_HEADER)
    assert lines[1] == "(ABD),1,5,org/alpha,1,r1,dom,0.612,2,weight"
    assert lines[2] == '(SAT),1,0,"org/model,v2",2,,dom,0.800,1,-'
    assert lines[3] == '"(SAT,ABD)",2,0,"org/model,v2",2,,mean,0.500,0,-'


def test_csv_missing_mean_acc_and_uid():
    row = LedgerRow(
        mask=1, size=1, subset="(SAT)", ks=2.5, winner_label="m", winner_uid=None,
        winner_rev="", win_mode="mean", mean_acc=None, dom_edges=0, tie_break="-",
    )
    assert ledger_to_csv([row]).split("\n")[1] == "(SAT),1,2.5,m,,,mean,,0,-"


def test_render_matrix_marks_membership():
    column = make_column(1, 1, 2.0, winner="1|m", label="m")
    column.env_list = ["SAT"]
    text = render_matrix(["SAT", "ABD"], [column, OtherBucket(size=2, value=1.0, count=3)], {"1|m": "#1f77b4"}, "pts")

    assert "●" in text and "○" in text
    assert "m [#1f77b4]" in text
    assert "other (3 subsets)" in text

from __future__ import annotations

import pandas as pd
import pytest

from core.data import (
    DATASETS,
    DataContext,
    DatasetSpec,
    column_as_series,
    date_series,
    load_context,
    load_dataset,
    numeric_series,
    round_half_up,
    to_date,
    to_int,
    to_number,
)
from core.errors import LoadError


def _write_catalogue(data_dir, overrides=None):
    overrides = overrides or {}
    for spec in DATASETS:
        for filename in spec.files:
            body = overrides.get(filename, ",".join(spec.columns or ("id",)) + "\n")
            (data_dir / filename).write_text(body, encoding="utf-8")


class TestCoercion:
    def test_to_number_parses_and_defaults(self):
        assert to_number("12.5") == 12.5
        assert to_number(" 3 ") == 3.0
        assert to_number("") == 0.0
        assert to_number(None) == 0.0
        assert to_number("abc", default=-1.0) == -1.0
        assert to_number("nan") == 0.0

    def test_to_number_strips_trailing_percent(self):
        assert to_number("92.5%", percent=True) == 92.5
        assert to_number("92.5%") == 0.0

    def test_to_int_truncates(self):
        assert to_int("12.9") == 12
        assert to_int("-3.5") == -3
        assert to_int("") == 0
        assert to_int("x", default=7) == 7

    def test_to_date(self):
        assert to_date("2018-01-31") == pd.Timestamp("2018-01-31")
        assert to_date("not a date") is pd.NaT
        assert to_date("") is pd.NaT
        assert to_date("2024-03-31T23:00:00-02:00") == pd.Timestamp("2024-03-31 23:00")

    def test_date_series_keeps_wall_clock_for_offsets(self):
        df = pd.DataFrame({"d": ["2024-03-31T23:00:00-02:00", "2024-04-01T01:30:00-02:00"]})
        assert date_series(df, "d").tolist() == [pd.Timestamp("2024-03-31 23:00"), pd.Timestamp("2024-04-01 01:30")]

    def test_date_series_mixed_offsets(self):
        df = pd.DataFrame({"d": ["2024-03-31T23:00:00-02:00", "2024-04-01T01:00:00+05:00", "bad"]})
        parsed = date_series(df, "d")
        assert parsed.iloc[0] == pd.Timestamp("2024-03-31 23:00")
        assert parsed.iloc[1] == pd.Timestamp("2024-04-01 01:00")
        assert pd.isna(parsed.iloc[2])

    def test_numeric_series_matches_scalar_rules(self):
        df = pd.DataFrame({"v": ["1", "", "2.5", "oops", "40%"]})
        assert numeric_series(df, "v").tolist() == [1.0, 0.0, 2.5, 0.0, 0.0]
        assert numeric_series(df, "v", percent=True).tolist() == [1.0, 0.0, 2.5, 0.0, 40.0]
        assert numeric_series(df, "v", integer=True).tolist() == [1, 0, 2, 0, 0]

    def test_absent_column_reads_as_empty(self):
        df = pd.DataFrame({"a": ["1", "2"]})
        assert column_as_series(df, "missing").tolist() == ["", ""]
        assert numeric_series(df, "missing", default=3.0).tolist() == [3.0, 3.0]
        assert date_series(df, "missing").isna().all()

    def test_date_series_mixed_formats(self):
        df = pd.DataFrame({"d": ["2018-01-31", "1/2/2018 08:15", "bad", ""]})
        parsed = date_series(df, "d")
        assert parsed.iloc[0] == pd.Timestamp("2018-01-31")
        assert parsed.iloc[1] == pd.Timestamp("2018-01-02 08:15")
        assert parsed.iloc[2:].isna().all()

    def test_round_half_up(self):
        assert round_half_up(2.675, 2) == 2.68
        assert round_half_up(0.15 * 100, 2) == 15.0
        assert round_half_up(float("nan"), 2) is None


class TestDataContext:
    def test_unknown_dataset_is_empty(self, ctx):
        assert ctx["no_such_dataset"].empty

    def test_datasets_mapping_is_read_only(self, ctx):
        with pytest.raises(TypeError):
            ctx.datasets["sales"] = pd.DataFrame()

    def test_from_records_fills_missing_cells(self):
        built = DataContext.from_records({"t": [{"a": "1"}, {"b": "2"}]})
        assert built["t"].to_dict(orient="records") == [{"a": "1", "b": ""}, {"a": "", "b": "2"}]

    def test_row_counts_cover_catalogue(self, ctx):
        counts = ctx.row_counts()
        assert set(counts) == {spec.name for spec in DATASETS}
        assert counts["sales"] == 4
        assert counts["leave_requests"] == 2


class TestLoaders:
    def test_load_dataset_keeps_raw_strings(self, tmp_path):
        (tmp_path / "s.csv").write_text("SKU_No,Qty,Note\n007,1.50,\nA2,3,hello\n", encoding="utf-8")
        df = load_dataset(DatasetSpec("s", ("s.csv",), ("SKU_No", "Qty")), tmp_path)
        assert df.to_dict(orient="records") == [
            {"SKU_No": "007", "Qty": "1.50", "Note": ""},
            {"SKU_No": "A2", "Qty": "3", "Note": "hello"},
        ]

    def test_multi_file_dataset_concatenates_in_order(self, tmp_path):
        (tmp_path / "jan.csv").write_text("operator_id,reason\nOP1,Sick\n", encoding="utf-8")
        (tmp_path / "feb.csv").write_text("operator_id,status\nOP2,Approved\n", encoding="utf-8")
        df = load_dataset(DatasetSpec("leaves", ("jan.csv", "feb.csv")), tmp_path)
        assert df["operator_id"].tolist() == ["OP1", "OP2"]
        assert df["status"].tolist() == ["", "Approved"]

    def test_missing_file_raises_load_error(self, tmp_path):
        with pytest.raises(LoadError) as info:
            load_dataset(DatasetSpec("ghost", ("ghost.csv",)), tmp_path)
        assert info.value.dataset == "ghost"

    def test_empty_file_raises_load_error(self, tmp_path):
        (tmp_path / "empty.csv").write_text("", encoding="utf-8")
        with pytest.raises(LoadError):
            load_dataset(DatasetSpec("empty", ("empty.csv",)), tmp_path)

    def test_load_context_loads_every_dataset(self, tmp_path):
        _write_catalogue(tmp_path, {"suppliers.csv": "Supplier_Name,SKU_No\nAcme,SKU1\n"})
        loaded = load_context(tmp_path, workers=4)
        assert set(loaded.datasets) == {spec.name for spec in DATASETS}
        assert loaded["suppliers"]["Supplier_Name"].tolist() == ["Acme"]
        assert loaded.data_dir == tmp_path

    def test_load_context_fails_when_any_dataset_fails(self, tmp_path):
        _write_catalogue(tmp_path)
        (tmp_path / "suppliers.csv").unlink()
        with pytest.raises(LoadError) as info:
            load_context(tmp_path)
        assert info.value.dataset == "suppliers"

    def test_header_only_file_gives_empty_dataset(self, tmp_path):
        (tmp_path / "h.csv").write_text("a,b\n", encoding="utf-8")
        df = load_dataset(DatasetSpec("h", ("h.csv",)), tmp_path)
        assert df.empty
        assert list(df.columns) == ["a", "b"]

import pandas as pd
import pytest

from ingestion.csv_loader import write_heat_sheet_template
from scripts.analysis.run_lot_batch import CSV_COLUMNS, main, parse_args, run_batch


def _write_filled_sheet(path, passing_values, crack_count=None):
    rows = ["heat_no,section,sample,field,value"]
    if crack_count is None:
        rows.append("H001,visual,,No Defect,x")
    else:
        rows.append(f"H001,visual,,Crack,{crack_count}")
    rows.extend(f"H001,dimensional,{i},diameter,20.64" for i in range(1, 21))
    for sample in (1, 2):
        rows.extend(f"H001,material,{sample},{key},{value}" for key, value in passing_values.items())
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")


def test_run_batch_mixed_folder(tmp_path, passing_values):
    _write_filled_sheet(tmp_path / "lot_a.csv", passing_values)
    _write_filled_sheet(tmp_path / "lot_b.csv", passing_values, crack_count=2)
    write_heat_sheet_template(["H010", "H011"], tmp_path / "lot_c.csv")
    (tmp_path / "lot_d.csv").write_text("heat,value\n", encoding="utf-8")

    df = run_batch(tmp_path, "ERC MK-III", progress_interval=1)

    assert list(df.columns) == CSV_COLUMNS
    lots = df.groupby("lot")["lot_status"].first().to_dict()
    assert lots["lot_a"] == "Accepted"
    assert lots["lot_b"] == "Rejected"
    assert lots["lot_c"] == "Pending"
    assert pd.isna(lots["lot_d"])
    assert (df.loc[df["lot"] == "lot_c", "heat_no"].tolist()) == ["H010", "H011"]
    assert df.loc[df["lot"] == "lot_d", "status"].item() == "error"


def test_unknown_model_is_reported_per_lot(tmp_path, passing_values):
    _write_filled_sheet(tmp_path / "lot_a.csv", passing_values)
    df = run_batch(tmp_path, "MK-VI")
    assert df["status"].tolist() == ["error"]
    assert "MK-VI" in df["status_message"].item()


def test_main_writes_results(tmp_path, passing_values):
    sheets = tmp_path / "sheets"
    sheets.mkdir()
    _write_filled_sheet(sheets / "lot_a.csv", passing_values)
    output = tmp_path / "out" / "results.csv"

    main([str(sheets), "--product-model", "MK-III", "--output", str(output)])

    results = pd.read_csv(output)
    assert results["heat_status"].tolist() == ["Accepted"]


def test_parse_args_rejects_bad_interval():
    with pytest.raises(SystemExit):
        parse_args(["sheets", "--product-model", "MK-III", "--progress-interval", "0"])

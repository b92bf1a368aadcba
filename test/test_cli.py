import json

import pytest

from sales_ledger.cli import main

HEADER = "date,customer,product,vendor_code,our_item_code,quantity,revenue,invoice,source,uploaded_at\n"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (
        "SALES_LEDGER_STORE",
        "SALES_LEDGER_STORE_KIND",
        "SALES_LEDGER_RETRIES",
        "SALES_LEDGER_BACKOFF",
        "SALES_LEDGER_RETENTION_YEARS",
        "SALES_LEDGER_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def upload_file(tmp_path):
    path = tmp_path / "alpine.csv"
    path.write_text(
        HEADER
        + "2025-01-05,Acme - Store 1,Widget,W1,OUR-1,5,50.00,INV1,Alpine Report,\n"
        + "2025-02-05,Acme - Store 1,Widget,W1,OUR-1,7,70.00,INV2,Alpine Report,\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def store_args(tmp_path):
    return ["--store", str(tmp_path / "store")]


def test_upload_then_summary(store_args, upload_file, tmp_path, capsys):
    report_path = tmp_path / "report.json"

    code = main(store_args + ["upload", str(upload_file), "--output", str(report_path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "OK: Alpine +2" in out
    assert json.loads(report_path.read_text(encoding="utf-8"))["status"] == "success"

    assert main(store_args + ["summary", "alpine"]) == 0
    out = capsys.readouterr().out
    assert "Alpine: 2 total rows" in out
    assert "  2025-01: 1 rows" in out


def test_summary_of_empty_store(store_args, capsys):
    assert main(store_args + ["summary"]) == 0
    assert "Mike Hudson: No data uploaded" in capsys.readouterr().out


def test_compare_prints_json(store_args, upload_file, tmp_path, capsys):
    main(store_args + ["upload", str(upload_file), "--output", str(tmp_path / "r.json")])
    capsys.readouterr()

    code = main(
        store_args
        + ["compare", "alpine", "--a", "2025-01", "2025-01", "--b", "2025-02", "2025-02"]
    )

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["rows"][0]["key"] == "Acme - Store 1"
    assert payload["rows"][0]["revenue_delta"] == 20.0
    assert payload["total"]["b_quantity"] == 7.0


def test_hierarchy_and_clear_month(store_args, upload_file, tmp_path, capsys):
    main(store_args + ["upload", str(upload_file), "--output", str(tmp_path / "r.json")])
    capsys.readouterr()

    assert main(store_args + ["hierarchy", "alpine", "2025"]) == 0
    tree = json.loads(capsys.readouterr().out)
    assert list(tree["Acme"]["sub_accounts"]) == ["Store 1"]

    assert main(store_args + ["clear-month", "alpine", "2025", "1"]) == 0
    assert "Alpine: removed 1 rows" in capsys.readouterr().out


def test_upload_without_token_is_rejected(store_args, upload_file, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("SALES_LEDGER_TOKEN", "s3cret")

    code = main(store_args + ["upload", str(upload_file), "--output", str(tmp_path / "r.json")])

    assert code == 1
    assert "Rejected: Unauthorized" in capsys.readouterr().out


def test_summary_reports_unreadable_ledger(tmp_path, capsys):
    store_dir = tmp_path / "store"
    store_dir.mkdir()
    (store_dir / "kehe.json").write_text("{not json", encoding="utf-8")

    code = main(["--store", str(store_dir), "summary"])

    out = capsys.readouterr().out
    assert code == 1
    assert "KeHe: could not read ledger" in out
    assert "Alpine: No data uploaded" in out

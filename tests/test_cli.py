import json

from budget_core.services import STORAGE_KEY
from budget_tracker.cli import main


def _run(tmp_path, *args):
    return main(["--data-dir", str(tmp_path), *args])


def _stored(tmp_path):
    return json.loads((tmp_path / f"{STORAGE_KEY}.json").read_text(encoding="utf-8"))


def test_income_and_summary(tmp_path, capsys):
    assert _run(tmp_path, "income", "add", "1000") == 0
    assert _run(tmp_path, "expense", "add", "Rent", "500", "--note", "March") == 0
    assert _run(tmp_path, "limit", "set", "Rent", "600") == 0
    capsys.readouterr()

    assert _run(tmp_path, "summary") == 0
    out = capsys.readouterr().out
    assert "Income:" in out and "1000.00" in out
    assert "Remaining:" in out and "500.00" in out
    assert "Rent" in out and "600.00" in out and " ok" in out


def test_expense_warning_is_printed(tmp_path, capsys):
    _run(tmp_path, "limit", "set", "Food", "100")
    _run(tmp_path, "expense", "add", "Food", "95")
    captured = capsys.readouterr()
    assert "within 10%" in captured.err

    _run(tmp_path, "expense", "add", "Food", "10")
    assert "over its limit" in capsys.readouterr().err


def test_list_and_delete(tmp_path, capsys):
    _run(tmp_path, "expense", "add", "Food", "12.50")
    _run(tmp_path, "expense", "add", "Rent", "300")
    capsys.readouterr()

    assert _run(tmp_path, "expense", "list", "--category", "Food") == 0
    out = capsys.readouterr().out
    assert "Found 1 expenses (total 12.50)" in out

    expense_id = _stored(tmp_path)["expenses"][0]["id"]
    assert _run(tmp_path, "expense", "delete", expense_id) == 0
    assert f"Expense {expense_id} deleted." in capsys.readouterr().out
    assert _run(tmp_path, "expense", "delete", expense_id) == 0
    assert "not found" in capsys.readouterr().out
    assert [item["category"] for item in _stored(tmp_path)["expenses"]] == ["Rent"]


def test_validation_errors_exit_non_zero(tmp_path, capsys):
    assert _run(tmp_path, "income", "add", "-5") == 1
    assert "Validation error" in capsys.readouterr().err
    assert _run(tmp_path, "expense", "add", "  ", "10") == 1
    assert "category cannot be empty" in capsys.readouterr().err


def test_reset_requires_confirmation(tmp_path, capsys):
    _run(tmp_path, "income", "add", "10")
    assert _run(tmp_path, "reset") == 1
    assert _stored(tmp_path)["income"] == 10
    assert _run(tmp_path, "reset", "--yes") == 0
    assert _stored(tmp_path)["income"] == 0


def test_malformed_data_is_reported_and_replaced(tmp_path, capsys):
    (tmp_path / f"{STORAGE_KEY}.json").write_text("garbage", encoding="utf-8")
    assert _run(tmp_path, "income", "add", "5") == 0
    assert "unreadable" in capsys.readouterr().err
    assert _stored(tmp_path)["income"] == 5


def test_rollover_notice(tmp_path, capsys):
    (tmp_path / f"{STORAGE_KEY}.json").write_text(
        json.dumps({"period": "1999-01", "income": 5, "expenses": [], "limits": {}}),
        encoding="utf-8",
    )
    assert _run(tmp_path, "summary") == 0
    assert "new month has started" in capsys.readouterr().out
    assert _stored(tmp_path)["income"] == 0

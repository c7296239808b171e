from ecostore_admin.database import FileBackedDB
from ecostore_admin.services.save_warnings import SaveWarningLedger


def test_record_list_dismiss(tmp_path):
    ledger = SaveWarningLedger(FileBackedDB(tmp_path))

    first = ledger.record("p1", "delete", "removing images failed", ["img/a.jpg", "img/b.jpg"])
    ledger.record("p2", "upload", "uploading images failed", ["new.jpg"])

    assert first["id"]
    assert first["items"] == ["img/a.jpg", "img/b.jpg"]
    assert (tmp_path / "save_warnings.csv").exists()

    all_rows = ledger.list()
    assert [r["product_id"] for r in all_rows] == ["p1", "p2"]
    assert ledger.list("p2")[0]["items"] == ["new.jpg"]
    assert ledger.get(first["id"])["items"] == ["img/a.jpg", "img/b.jpg"]

    assert ledger.dismiss(first["id"]) is True
    assert ledger.dismiss(first["id"]) is False
    assert ledger.get(first["id"]) is None
    assert [r["product_id"] for r in ledger.list()] == ["p2"]


def test_empty_ledger(tmp_path):
    ledger = SaveWarningLedger(FileBackedDB(tmp_path / "nothing-here"))
    assert ledger.list() == []
    assert ledger.dismiss("x") is False
    assert ledger.get("x") is None

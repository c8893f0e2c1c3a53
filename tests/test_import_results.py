"""Tests for the result import script."""

import json

import pytest

from scripts.import_results import import_file, read_rows


def test_read_rows_from_json_list(tmp_path):
    path = tmp_path / "results.json"
    path.write_text(json.dumps([{"seatNumber": "S1", "total": "410"}, "junk"]), encoding="utf-8")

    assert read_rows(path) == [{"seatNumber": "S1", "total": "410"}]


def test_read_rows_from_json_object(tmp_path):
    path = tmp_path / "results.json"
    path.write_text(json.dumps({"results": [{"seatNumber": "S2"}]}), encoding="utf-8")

    assert read_rows(path) == [{"seatNumber": "S2"}]


def test_read_rows_from_csv_with_bom(tmp_path):
    path = tmp_path / "results.csv"
    path.write_text("\ufeffseatNumber,total\nS1,410\nS2,395\n", encoding="utf-8")

    assert read_rows(path) == [
        {"seatNumber": "S1", "total": "410"},
        {"seatNumber": "S2", "total": "395"},
    ]


def test_read_rows_rejects_other_formats(tmp_path):
    path = tmp_path / "results.xlsx"
    path.write_bytes(b"PK")

    with pytest.raises(ValueError):
        read_rows(path)


def test_read_rows_rejects_json_scalar(tmp_path):
    path = tmp_path / "results.json"
    path.write_text("42", encoding="utf-8")

    with pytest.raises(ValueError):
        read_rows(path)


@pytest.mark.asyncio
async def test_import_file_skips_rows_without_seat(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    path = tmp_path / "results.csv"
    path.write_text("seatNumber,total\nS1,410\n,300\n", encoding="utf-8")

    assert await import_file(path) == 1

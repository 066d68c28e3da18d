import base64

from csv_formatter.config import Settings
from csv_formatter.pipeline import (
    decode_text,
    format_csv_bytes,
    output_filename,
    preview,
    run_pipeline,
)


def test_run_pipeline_end_to_end():
    text = "name,phone\r\nAnn,1234567890\r\nAnn,1234567890\r\n , \r\n"
    result = run_pipeline(text)

    assert result.table == [("name", "phone"), ("Ann", "(123) 456-7890")]
    assert result.csv == "name,phone\nAnn,(123) 456-7890"
    assert result.rows_parsed == 3
    assert result.duplicates_removed == 1
    assert result.rows_out == 2


def test_run_pipeline_empty_text():
    result = run_pipeline("")
    assert result.table == []
    assert result.csv == ""


def test_decode_keeps_non_ascii_text():
    # Include a Latin-1 character to force non-ASCII handling
    raw = "name,city\nPaul,Montréal\n".encode("latin-1")
    assert "Montréal" in decode_text(raw).text


def test_bom_never_reaches_output():
    raw = "\ufeffa,b\n".encode("utf-8")
    assert run_pipeline(decode_text(raw).text).table == [("a", "b")]


def test_preview_truncates_rows_and_columns():
    table = [tuple(str(c) for c in range(8)) for _ in range(10)]
    shown = preview(table, max_rows=6, max_columns=6)
    assert len(shown) == 6
    assert all(len(row) == 6 for row in shown)


def test_output_filename():
    assert output_filename("leads.csv") == "processed-leads.csv"
    assert output_filename(None) == "processed-output.csv"
    assert output_filename("") == "processed-output.csv"


def test_format_csv_bytes_envelope():
    raw = b'id,note\n1,"a, b"\n1,"a, b"\n2,x\n'
    data = format_csv_bytes(raw, "notes.csv", Settings())

    out = base64.b64decode(data["output"]["content_b64"]).decode("utf-8")
    assert out == 'id,note\n1,"a, b"\n2,x'
    assert data["output"]["filename"] == "processed-notes.csv"
    assert data["preview"] == [["id", "note"], ["1", "a, b"], ["2", "x"]]
    assert data["summary"]["duplicates_removed"] == 1
    assert data["summary"]["rows"] == 3
    assert data["summary"]["columns"] == 2

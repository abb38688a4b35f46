import io
from types import SimpleNamespace

import openpyxl
import pymupdf
import pytest

import app.services.question_import.file_parser as file_parser_module
from app.services.question_import import (
    FileParseError,
    FileParser,
    MalformedRecord,
    UnsupportedFileTypeError,
    detect_file_type,
)


def _xlsx_bytes(rows):
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _pdf_bytes(text):
    document = pymupdf.open()
    page = document.new_page()
    page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data


def test_detect_file_type():
    assert detect_file_type("bank.CSV") == "csv"
    assert detect_file_type("bank.xlsx") == "excel"
    assert detect_file_type("paper.pdf") == "pdf"
    assert detect_file_type("paper.docx") == "word"


def test_detect_file_type_rejects_unknown_extensions():
    for filename in ["notes.txt", "legacy.xls", "noextension", ""]:
        with pytest.raises(UnsupportedFileTypeError):
            detect_file_type(filename)


def test_csv_with_bom_and_unicode():
    content = (
        "Question_EN,Question_TE,a,b,c,d,answer\n"
        "Capital?,రాజధాని?,Delhi,Mumbai,,Kolkata,A\n"
    ).encode("utf-8-sig")

    parsed = FileParser().parse_tabular(content, "csv")

    assert parsed.headers[0] == "Question_EN"
    assert parsed.records == [{
        "Question_EN": "Capital?", "Question_TE": "రాజధాని?", "a": "Delhi",
        "b": "Mumbai", "c": "", "d": "Kolkata", "answer": "A",
    }]


def test_csv_keeps_values_as_text_and_skips_blank_lines():
    content = b"question,option_a,option_b,option_c,option_d,correct_answer\n\n1+1?,01,2,3,4,2\n\n"

    parsed = FileParser().parse_tabular(content, "csv")

    assert len(parsed.records) == 1
    assert parsed.records[0]["option_a"] == "01"
    assert parsed.records[0]["correct_answer"] == "2"


def test_csv_rows_ending_in_a_delimiter_keep_their_columns():
    content = (
        b"question,option_a,option_b,option_c,option_d,correct_answer\n"
        b"2+2?,3,4,5,6,B,\n"
        b"Capital?,Paris,Rome,,Madrid,A,,\n"
        b"3+3?,5,6,7,8,B\n"
    )

    parsed = FileParser().parse_tabular(content, "csv")

    assert parsed.records[0] == {
        "question": "2+2?", "option_a": "3", "option_b": "4",
        "option_c": "5", "option_d": "6", "correct_answer": "B",
    }
    assert parsed.records[1]["option_c"] == ""
    assert parsed.records[1]["correct_answer"] == "A"
    assert parsed.records[2]["question"] == "3+3?"


def test_header_ending_in_a_delimiter_is_trimmed():
    content = b"question,option_a,option_b,option_c,option_d,correct_answer,\nQ,1,2,3,4,A,\n"

    parsed = FileParser().parse_tabular(content, "csv")

    assert parsed.headers == ["question", "option_a", "option_b", "option_c", "option_d", "correct_answer"]
    assert parsed.records[0]["correct_answer"] == "A"


def test_csv_row_with_extra_fields_is_kept_as_malformed():
    content = (
        b"question,option_a,option_b,option_c,option_d,correct_answer\n"
        b"Q1,1,2,3,4,A\n"
        b"Q2,1,2,3,4,B,extra,fields\n"
        b"Q3,1,2,3,4,C\n"
    )

    parsed = FileParser().parse_tabular(content, "csv")

    assert len(parsed.records) == 3
    assert parsed.records[0]["question"] == "Q1"
    assert isinstance(parsed.records[1], MalformedRecord)
    assert parsed.records[1].detail == "line 3 has 8 fields, expected 6"
    assert parsed.records[2]["question"] == "Q3"


def test_csv_short_rows_are_padded():
    parsed = FileParser().parse_tabular(b"question,a,b,c,d,answer\nQ,1,2\n", "csv")

    assert parsed.records == [{"question": "Q", "a": "1", "b": "2", "c": "", "d": "", "answer": ""}]


def test_csv_repeated_headers_are_suffixed():
    parsed = FileParser().parse_tabular(b"question,a,a\nQ,1,2\n", "csv")

    assert parsed.headers == ["question", "a", "a.1"]
    assert parsed.records[0]["a.1"] == "2"


def test_csv_header_only_has_no_records():
    parsed = FileParser().parse_tabular(b"question,a,b,c,d\n", "csv")

    assert parsed.headers == ["question", "a", "b", "c", "d"]
    assert parsed.records == []


def test_csv_errors():
    parser = FileParser()

    with pytest.raises(FileParseError):
        parser.parse_tabular(b"\xff\xfe\x00bad", "csv")
    with pytest.raises(FileParseError):
        parser.parse_tabular(b"   \n", "csv")


def test_excel_first_sheet_with_empty_cells():
    content = _xlsx_bytes([
        ["Question", "Option_A", "Option_B", "Option_C", "Option_D", "Answer"],
        ["2+2?", 3, 4, 5, 6, "B"],
        ["Blank option?", "x", None, "z", "w", 1],
    ])

    parsed = FileParser().parse_tabular(content, "excel")

    assert parsed.headers == ["Question", "Option_A", "Option_B", "Option_C", "Option_D", "Answer"]
    assert len(parsed.records) == 2
    assert str(parsed.records[0]["Option_B"]) == "4"
    assert parsed.records[1]["Option_B"] == ""
    assert str(parsed.records[1]["Answer"]) == "1"


def test_excel_blank_rows_are_dropped():
    content = _xlsx_bytes([
        ["question", "a", "b", "c", "d", "answer"],
        ["Q1", 1, 2, 3, 4, "A"],
        [None, None, None, None, None, None],
        ["Q3", 1, 2, 3, 4, "C"],
    ])

    parsed = FileParser().parse_tabular(content, "excel")

    assert [record["question"] for record in parsed.records] == ["Q1", "Q3"]


def test_excel_garbage_raises():
    with pytest.raises(FileParseError):
        FileParser().parse_tabular(b"not a workbook", "excel")


def test_pdf_text_extraction():
    content = _pdf_bytes("1. What is 2+2?\nA. 3\nB. 4")

    text = FileParser().extract_document_text(content, "pdf")

    assert "What is 2+2?" in text
    assert "B. 4" in text


def test_docx_text_extraction_uses_mammoth(monkeypatch):
    calls = []

    def fake_extract_raw_text(fileobj):
        calls.append(fileobj.read())
        return SimpleNamespace(value="1. Question?\nA. yes", messages=[])

    monkeypatch.setattr(
        file_parser_module,
        "mammoth",
        SimpleNamespace(extract_raw_text=fake_extract_raw_text),
    )

    text = FileParser().extract_document_text(b"docx-bytes", "word")

    assert text == "1. Question?\nA. yes"
    assert calls == [b"docx-bytes"]


def test_docx_failure_raises(monkeypatch):
    def broken(fileobj):
        raise ValueError("not a zip file")

    monkeypatch.setattr(file_parser_module, "mammoth", SimpleNamespace(extract_raw_text=broken))

    with pytest.raises(FileParseError, match="Word extraction failed"):
        FileParser().extract_document_text(b"nope", "word")


def test_wrong_family_is_rejected():
    with pytest.raises(UnsupportedFileTypeError):
        FileParser().parse_tabular(b"x", "pdf")
    with pytest.raises(UnsupportedFileTypeError):
        FileParser().extract_document_text(b"x", "csv")

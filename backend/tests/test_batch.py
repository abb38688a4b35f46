from app.services.question_import import BatchPipeline, NormalizedQuestion, RowError


def _record(question, answer="A"):
    return {
        "question": question, "option_a": "1", "option_b": "2",
        "option_c": "3", "option_d": "4", "correct_answer": answer,
    }


def test_malformed_row_does_not_affect_neighbours(resolve_mapping, standard_headers):
    mapping = resolve_mapping(standard_headers)
    records = [_record("First?"), "not a record", _record("Third?")]

    result = BatchPipeline().run(records, "exam-1", mapping)

    assert len(result.rows) == 3
    assert result.rows[0].errors == []
    assert RowError.MALFORMED_ROW in result.rows[1].errors
    assert result.rows[2].errors == []
    assert result.rows[2].question == "Third?"


def test_output_order_and_row_index_follow_input(resolve_mapping, standard_headers):
    mapping = resolve_mapping(standard_headers)
    records = [_record(f"Q{i}") for i in range(5)]

    result = BatchPipeline().run(records, "exam-1", mapping)

    assert [row.question for row in result.rows] == ["Q0", "Q1", "Q2", "Q3", "Q4"]
    assert [row.row_index for row in result.rows] == [0, 1, 2, 3, 4]
    assert all(row.exam_id == "exam-1" for row in result.rows)


def test_summary_counts(resolve_mapping, standard_headers):
    mapping = resolve_mapping(standard_headers)
    records = [_record("Q1"), _record("", answer="A"), _record("Q3", answer="9"), _record("Q4")]

    result = BatchPipeline().run(records, "exam-1", mapping)

    assert result.summary.total_rows == 4
    assert result.summary.valid_count == 2
    assert result.summary.invalid_count == 2
    assert result.summary.validation_logs == [
        "Row 2: Valid",
        "Row 3: Missing Question",
        "Row 4: Invalid Answer",
        "Row 5: Valid",
    ]
    assert [row.question for row in result.valid_rows] == ["Q1", "Q4"]
    assert len(result.invalid_rows) == 2


def test_escaped_processor_failure_is_contained(resolve_mapping, standard_headers):
    class ExplodingProcessor:
        def process_row(self, record, row_index, exam_id, mapping):
            if row_index == 1:
                raise RuntimeError("processor bug")
            return NormalizedQuestion(row_index, exam_id, validation_log=f"Row {row_index + 2}: Valid")

    mapping = resolve_mapping(standard_headers)
    result = BatchPipeline(ExplodingProcessor()).run([{}, {}, {}], "exam-1", mapping)

    assert len(result.rows) == 3
    assert result.rows[1].errors == [RowError.MALFORMED_ROW]
    assert result.rows[1].validation_log == "Row 3: Malformed Row - processor bug"


def test_empty_batch(resolve_mapping, standard_headers):
    result = BatchPipeline().run([], "exam-1", resolve_mapping(standard_headers))

    assert result.rows == []
    assert result.summary.to_dict() == {
        "total_rows": 0, "valid_count": 0, "invalid_count": 0, "validation_logs": [],
    }

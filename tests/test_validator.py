import pytest

from dna_intake.core.exceptions import RecordValidationError
from dna_intake.core.validator import validate_record


@pytest.mark.parametrize(
    "row",
    [
        ("rs1801133", "1", "11796321", "TT"),
        ("rs1", "22", "1", "A"),
        ("rs429358", "X", "45411941", "CT"),
        ("rs2000001", "MT", "16000", "--"),
        ("rs2000002", "Y", "2655180", "G"),
        ("rs3", "10", "99", "-A"),
    ],
)
def test_accepts_valid_rows(row) -> None:
    record = validate_record(*row)
    assert record.rsid == row[0]
    assert record.chromosome == row[1]
    assert record.position == int(row[2])
    assert record.genotype == row[3]


@pytest.mark.parametrize(
    "row, field",
    [
        (("i3000001", "1", "100", "AA"), "rsid"),
        (("rs", "1", "100", "AA"), "rsid"),
        (("RS123", "1", "100", "AA"), "rsid"),
        (("rs12a", "1", "100", "AA"), "rsid"),
        (("rs1", "23", "100", "AA"), "chromosome"),
        (("rs1", "x", "100", "AA"), "chromosome"),
        (("rs1", "M", "100", "AA"), "chromosome"),
        (("rs1", "chr1", "100", "AA"), "chromosome"),
        (("rs1", "1", "abc", "AA"), "position"),
        (("rs1", "1", "0", "AA"), "position"),
        (("rs1", "1", "-5", "AA"), "position"),
        (("rs1", "1", "12.5", "AA"), "position"),
        (("rs1", "1", "+5", "AA"), "position"),
        (("rs1", "1", "100", "AGT"), "genotype"),
        (("rs1", "1", "100", ""), "genotype"),
        (("rs1", "1", "100", "aa"), "genotype"),
        (("rs1", "1", "100", "AN"), "genotype"),
    ],
)
def test_rejects_single_rule_violation(row, field) -> None:
    with pytest.raises(RecordValidationError) as excinfo:
        validate_record(*row)
    assert excinfo.value.field == field


def test_rejects_trailing_newline_in_rsid() -> None:
    with pytest.raises(RecordValidationError):
        validate_record("rs1\n", "1", "100", "AA")


def test_validation_error_is_value_error() -> None:
    with pytest.raises(ValueError, match="chromosome"):
        validate_record("rs1", "0", "100", "AA")

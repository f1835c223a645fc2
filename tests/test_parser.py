from pathlib import Path

import pytest

from dna_intake.core.exceptions import NoVariantsError
from dna_intake.core.knowledge_base import KnowledgeBase, load_knowledge_base
from dna_intake.core.parser import (
    ParseStats,
    iter_genotype_records,
    open_genetic_file,
    parse_genetic_handle,
    parse_genetic_text,
    parse_raw_genetic_text,
)

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="module")
def kb() -> KnowledgeBase:
    return load_knowledge_base()


@pytest.fixture(scope="module")
def sample_text() -> str:
    return (FIXTURES / "genome_sample.txt").read_text(encoding="utf-8")


def test_parse_annotated_sample(kb: KnowledgeBase, sample_text: str) -> None:
    result = parse_genetic_text(sample_text, kb, "23andme")

    rsids = [variant.rsid for variant in result.variants]
    assert rsids == [
        "rs4477212",
        "rs3094315",
        "rs1801133",
        "rs6025",
        "rs4149056",
        "rs1050828",
        "rs4988235",
        "rs1799853",
        "rs2000001",
        "rs2000002",
    ]
    meta = result.metadata
    assert meta.total_variants == 10
    assert meta.annotated_variants == 6
    assert meta.clinically_relevant_variants == 4
    assert meta.data_source == "23andme"
    assert meta.chromosomes == ["1", "10", "12", "2", "MT", "X", "Y"]


def test_mthfr_line_is_annotated() -> None:
    kb = KnowledgeBase.from_mapping(
        {"rs1801133": {"gene_name": "MTHFR", "clinical_significance": "likely_pathogenic"}}
    )
    result = parse_genetic_text("rs1801133\t1\t11796321\tTT\n", kb)

    variant = result.variants[0]
    assert variant.annotation is not None
    assert variant.annotation.gene_name == "MTHFR"
    assert variant.genotype == "TT"
    assert variant.position == 11796321


def test_invalid_chromosome_line_is_skipped(kb: KnowledgeBase) -> None:
    content = "rs1\t1\t100\tAA\nrs2\t23\t200\tAG\n"
    result = parse_genetic_text(content, kb)

    assert [variant.rsid for variant in result.variants] == ["rs1"]
    assert result.metadata.total_variants == 1


def test_metadata_counts_are_consistent(kb: KnowledgeBase, sample_text: str) -> None:
    meta = parse_genetic_text(sample_text, kb).metadata
    unannotated = sum(1 for variant in parse_genetic_text(sample_text, kb).variants if variant.annotation is None)

    assert meta.total_variants == meta.annotated_variants + unannotated
    assert meta.clinically_relevant_variants <= meta.annotated_variants <= meta.total_variants


def test_parsing_is_deterministic(kb: KnowledgeBase, sample_text: str) -> None:
    first = parse_genetic_text(sample_text, kb)
    second = parse_genetic_text(sample_text, kb)
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_raw_mode_keeps_only_rsid_and_genotype(sample_text: str) -> None:
    result = parse_raw_genetic_text(sample_text, "ancestry")

    assert result.metadata.total_variants == 10
    assert result.metadata.data_source == "ancestry"
    assert result.variants[2].model_dump() == {"rsid": "rs1801133", "genotype": "TT"}


def test_raw_and_annotated_modes_accept_same_lines(kb: KnowledgeBase, sample_text: str) -> None:
    annotated = parse_genetic_text(sample_text, kb)
    raw = parse_raw_genetic_text(sample_text)
    assert [(v.rsid, v.genotype) for v in annotated.variants] == [(v.rsid, v.genotype) for v in raw.variants]


def test_stats_count_skipped_lines(sample_text: str) -> None:
    stats = ParseStats()
    records = list(iter_genotype_records(sample_text.splitlines(), stats))

    assert len(records) == 10
    assert stats.data_lines == 15
    assert stats.skipped_short == 1
    assert stats.skipped_invalid == 4
    assert stats.accepted == 10


def test_fields_are_trimmed_and_crlf_tolerated(kb: KnowledgeBase) -> None:
    result = parse_genetic_text("rs1 \t 1\t100 \tAG\r\n", kb)
    assert result.variants[0].genotype == "AG"


def test_no_valid_rows_raises() -> None:
    with pytest.raises(NoVariantsError):
        parse_raw_genetic_text("# only a header\n\nrs1\t99\t1\tAA\n")


def test_parse_from_file_handle(kb: KnowledgeBase) -> None:
    with open_genetic_file(FIXTURES / "genome_sample.txt") as handle:
        result = parse_genetic_handle(handle, kb)
    assert result.metadata.total_variants == 10

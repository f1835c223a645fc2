from pathlib import Path

from dna_intake.core.knowledge_base import KnowledgeBase, load_knowledge_base
from dna_intake.core.models import AnnotatedVariant, ClinicalAnnotation
from dna_intake.core.parser import parse_genetic_text
from dna_intake.core.risk import (
    COUNSELOR_RECOMMENDATION,
    PROVIDER_RECOMMENDATION,
    assess_risk,
    is_carrier_phenotype,
    risk_level,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _variant(rsid: str, genotype: str, **annotation) -> AnnotatedVariant:
    return AnnotatedVariant(
        rsid=rsid,
        chromosome="1",
        position=100,
        genotype=genotype,
        annotation=ClinicalAnnotation(**annotation) if annotation else None,
    )


def test_assess_sample_file() -> None:
    kb = load_knowledge_base()
    content = (FIXTURES / "genome_sample.txt").read_text(encoding="utf-8")
    parsed = parse_genetic_text(content, kb)

    result = assess_risk(parsed.variants)

    assert [v.rsid for v in result.high_risk_variants] == ["rs1801133", "rs6025", "rs4149056", "rs1050828"]
    assert [v.rsid for v in result.drug_response_variants] == ["rs1801133", "rs4149056", "rs1050828", "rs1799853"]
    assert [v.rsid for v in result.carrier_status] == ["rs1050828"]
    assert result.recommendations == [
        "Factor V Leiden detected - discuss with doctor before surgery or taking hormones",
        "Increased statin sensitivity - discuss with doctor if prescribed statins",
        "Altered warfarin metabolism - inform doctor if anticoagulants are prescribed",
        COUNSELOR_RECOMMENDATION,
        PROVIDER_RECOMMENDATION,
    ]


def test_rule_requires_allele() -> None:
    variants = [_variant("rs6025", "CC", clinical_significance="pathogenic")]
    result = assess_risk(variants)
    assert result.recommendations == [COUNSELOR_RECOMMENDATION]


def test_rule_requires_category() -> None:
    # rs7903146 advice is only given for a pathogenic annotation.
    variants = [_variant("rs7903146", "TT", phenotype="Type 2 diabetes risk")]
    assert assess_risk(variants).recommendations == []


def test_unannotated_variants_are_ignored() -> None:
    result = assess_risk([_variant("rs1", "AA")])
    assert result.high_risk_variants == []
    assert result.drug_response_variants == []
    assert result.carrier_status == []
    assert result.recommendations == []


def test_empty_drug_response_does_not_count() -> None:
    result = assess_risk([_variant("rs2", "AG", drug_response="")])
    assert result.drug_response_variants == []


def test_carrier_match_is_case_sensitive() -> None:
    assert is_carrier_phenotype("Sickle cell anemia")
    assert is_carrier_phenotype("G6PD deficiency")
    assert not is_carrier_phenotype("Anemia")
    assert not is_carrier_phenotype(None)


def test_assessment_is_pure() -> None:
    kb = KnowledgeBase.from_mapping(
        {
            "rs334": {"clinical_significance": "pathogenic", "phenotype": "Sickle cell anemia"},
            "rs1799853": {"drug_response": "Warfarin sensitivity"},
        }
    )
    parsed = parse_genetic_text("rs334\t11\t5248232\tAT\nrs1799853\t10\t96702047\tCT\n", kb)

    first = assess_risk(parsed.variants)
    second = assess_risk(parsed.variants)

    assert first.model_dump_json() == second.model_dump_json()
    assert first.recommendations[0] == "Sickle cell trait detected - genetic counseling recommended"
    assert [v.rsid for v in first.carrier_status] == ["rs334"]


def test_risk_level() -> None:
    assert risk_level("pathogenic") == "high"
    assert risk_level("likely_pathogenic") == "high"
    assert risk_level("uncertain") == "moderate"
    assert risk_level("benign") == "low"
    assert risk_level(None) == "low"

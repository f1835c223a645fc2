from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

from dna_intake.core.models import AnnotatedVariant, RiskAssessment

RuleCategory = Literal["high_risk", "drug_response"]

CARRIER_KEYWORDS = ("anemia", "deficiency")

COUNSELOR_RECOMMENDATION = "Consult with a genetic counselor to discuss your results"
PROVIDER_RECOMMENDATION = "Share these results with your healthcare provider before starting new medications"


@dataclass(frozen=True)
class RecommendationRule:
    rsid: str
    category: RuleCategory
    allele: str | None
    message: str

    def applies(self, variant: AnnotatedVariant, category: RuleCategory) -> bool:
        if category != self.category or variant.rsid != self.rsid:
            return False
        return self.allele is None or self.allele in variant.genotype


RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        "rs334", "high_risk", "T",
        "Sickle cell trait detected - genetic counseling recommended",
    ),
    RecommendationRule(
        "rs6025", "high_risk", "T",
        "Factor V Leiden detected - discuss with doctor before surgery or taking hormones",
    ),
    RecommendationRule(
        "rs7903146", "high_risk", "T",
        "Increased diabetes risk - maintain healthy diet and exercise",
    ),
    RecommendationRule(
        "rs4149056", "drug_response", "T",
        "Increased statin sensitivity - discuss with doctor if prescribed statins",
    ),
    RecommendationRule(
        "rs1799853", "drug_response", None,
        "Altered warfarin metabolism - inform doctor if anticoagulants are prescribed",
    ),
)


def _matching_messages(
    variant: AnnotatedVariant,
    category: RuleCategory,
    rules: Iterable[RecommendationRule],
) -> list[str]:
    return [rule.message for rule in rules if rule.applies(variant, category)]


def is_carrier_phenotype(phenotype: str | None) -> bool:
    # Case-sensitive: "Anemia" alone does not match.
    if not phenotype:
        return False
    return any(keyword in phenotype for keyword in CARRIER_KEYWORDS)


def risk_level(clinical_significance: str | None) -> str:
    if clinical_significance in {"pathogenic", "likely_pathogenic"}:
        return "high"
    if clinical_significance == "uncertain":
        return "moderate"
    return "low"


def assess_risk(
    variants: Iterable[AnnotatedVariant],
    rules: Iterable[RecommendationRule] = RECOMMENDATION_RULES,
) -> RiskAssessment:
    """Sort annotated variants into findings and build advisory text.

    Pure function of its input: variants without an annotation are ignored,
    list order follows input order and rule order.
    """
    rules = tuple(rules)
    assessment = RiskAssessment()

    for variant in variants:
        annotation = variant.annotation
        if annotation is None:
            continue

        if annotation.is_pathogenic():
            assessment.high_risk_variants.append(variant)
            assessment.recommendations.extend(_matching_messages(variant, "high_risk", rules))

        if annotation.drug_response:
            assessment.drug_response_variants.append(variant)
            assessment.recommendations.extend(_matching_messages(variant, "drug_response", rules))

        if is_carrier_phenotype(annotation.phenotype):
            assessment.carrier_status.append(variant)

    if assessment.high_risk_variants:
        assessment.recommendations.append(COUNSELOR_RECOMMENDATION)
    if assessment.drug_response_variants:
        assessment.recommendations.append(PROVIDER_RECOMMENDATION)
    return assessment

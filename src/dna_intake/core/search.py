from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel

from dna_intake.core.knowledge_base import KnowledgeBase
from dna_intake.core.models import ClinicalSignificance
from dna_intake.core.risk import risk_level


class VariantQuery(BaseModel):
    rsids: list[str] | None = None
    genes: list[str] | None = None
    phenotype: str | None = None
    clinical_significance: list[ClinicalSignificance] | None = None


def _describe(row: dict, kb: KnowledgeBase) -> dict:
    annotation = kb.get(row["rsid"])
    return {
        "rsid": row["rsid"],
        "genotype": row["genotype"],
        "gene": annotation.gene_name if annotation else None,
        "annotation": annotation.model_dump(exclude_none=True) if annotation else None,
        "risk_level": risk_level(annotation.clinical_significance if annotation else None),
    }


def query_variants(stored: Iterable[dict], kb: KnowledgeBase, query: VariantQuery) -> list[dict]:
    """Join stored ``{rsid, genotype}`` rows with the knowledge base and filter them."""
    results = [_describe(row, kb) for row in stored]

    if query.rsids:
        wanted = set(query.rsids)
        results = [item for item in results if item["rsid"] in wanted]

    if query.genes:
        genes = [gene.lower() for gene in query.genes]
        results = [
            item for item in results
            if item["gene"] and any(gene in item["gene"].lower() for gene in genes)
        ]

    if query.phenotype and query.phenotype.lower() != "all":
        phenotype = query.phenotype.lower()
        results = [
            item for item in results
            if item["annotation"] and phenotype in item["annotation"].get("phenotype", "").lower()
        ]

    if query.clinical_significance:
        wanted_significance = set(query.clinical_significance)
        results = [
            item for item in results
            if item["annotation"] and item["annotation"].get("clinical_significance") in wanted_significance
        ]

    return results

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dna_intake.constants import PATHOGENIC_LABELS

ClinicalSignificance = Literal["pathogenic", "likely_pathogenic", "uncertain", "likely_benign", "benign"]

RSID_PATTERN = r"^rs[0-9]+$"
GENOTYPE_PATTERN = r"^[ATCG-]{1,2}$"


class ClinicalAnnotation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    gene_name: str | None = None
    clinical_significance: ClinicalSignificance | None = None
    phenotype: str | None = None
    drug_response: str | None = None
    frequency: float | None = Field(default=None, ge=0.0, le=1.0)
    consequence: str | None = None
    risk_allele: str | None = None
    interpretation: str | None = None

    def is_pathogenic(self) -> bool:
        return self.clinical_significance in PATHOGENIC_LABELS


class KnowledgeBaseManifest(BaseModel):
    kb_version: str
    build: str
    sources: list[str] = Field(default_factory=list)
    annotation_files: list[str] = Field(default_factory=list)


class GenotypeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsid: str
    chromosome: str
    position: int = Field(ge=1)
    genotype: str


class RawVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsid: str = Field(pattern=RSID_PATTERN)
    genotype: str = Field(pattern=GENOTYPE_PATTERN)


class AnnotatedVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsid: str
    chromosome: str
    position: int
    genotype: str
    annotation: ClinicalAnnotation | None = None


class ParseMetadata(BaseModel):
    total_variants: int
    annotated_variants: int
    clinically_relevant_variants: int
    data_source: str
    chromosomes: list[str]


class ParsedFileResult(BaseModel):
    variants: list[AnnotatedVariant]
    metadata: ParseMetadata


class RawParseMetadata(BaseModel):
    total_variants: int
    data_source: str


class RawParseResult(BaseModel):
    variants: list[RawVariant]
    metadata: RawParseMetadata


class RiskAssessment(BaseModel):
    high_risk_variants: list[AnnotatedVariant] = Field(default_factory=list)
    drug_response_variants: list[AnnotatedVariant] = Field(default_factory=list)
    carrier_status: list[AnnotatedVariant] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class UploadChunk(BaseModel):
    variants: list[RawVariant]
    chunk_index: int = Field(ge=1)
    total_chunks: int = Field(ge=1)
    is_last_chunk: bool


class UploadSummary(BaseModel):
    total_variants: int
    variants_saved: int
    report_generated: bool
    total_chunks: int


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestMetadata(_WireModel):
    data_source: str = Field(min_length=1)
    total_variants: int = Field(ge=0)
    chunk_index: int = Field(ge=1)
    total_chunks: int = Field(ge=1)
    is_last_chunk: bool
    batch_index: int = Field(default=1, ge=1)
    total_batches: int = Field(default=1, ge=1)

    def is_first_batch(self) -> bool:
        return self.chunk_index == 1 and self.batch_index == 1

    def is_final_batch(self) -> bool:
        return self.is_last_chunk and self.batch_index == self.total_batches


class IngestRequest(_WireModel):
    variants: list[RawVariant]
    metadata: IngestMetadata


class IngestResponse(_WireModel):
    variants_saved: int = 0
    report_generated: bool = False
    error: str | None = None


class GeneticReport(BaseModel):
    user_id: str
    data_source: str
    stored_variants: int
    annotated_variants: int
    clinically_relevant_variants: int
    kb_version: str
    generated_at: str

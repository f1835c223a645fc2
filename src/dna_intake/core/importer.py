from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from dna_intake.core.file_gate import validate_genetic_file
from dna_intake.core.knowledge_base import KnowledgeBase
from dna_intake.core.models import ParsedFileResult, RiskAssessment, UploadSummary
from dna_intake.core.parser import parse_genetic_text, parse_raw_genetic_text
from dna_intake.core.risk import assess_risk
from dna_intake.core.settings import IntakeSettings
from dna_intake.core.uploader import BatchSubmitter, ChunkCallback, UploadCoordinator


@dataclass
class IngestOutcome:
    parsed: ParsedFileResult
    risk: RiskAssessment
    upload: UploadSummary | None


def analyze_genetic_file(
    *,
    file_path: Path,
    kb: KnowledgeBase,
    settings: IntakeSettings,
    source: str | None = None,
) -> tuple[str, ParsedFileResult, RiskAssessment]:
    source = source or settings.data_source
    content = validate_genetic_file(file_path, settings)

    parse_start = time.monotonic()
    parsed = parse_genetic_text(content, kb, source)
    parse_duration = max(time.monotonic() - parse_start, 0.001)
    logging.info(
        "Parsed %s variants in %.2fs (%s annotated, %s clinically relevant).",
        parsed.metadata.total_variants,
        parse_duration,
        parsed.metadata.annotated_variants,
        parsed.metadata.clinically_relevant_variants,
    )
    return content, parsed, assess_risk(parsed.variants)


async def ingest_genetic_file(
    *,
    file_path: Path,
    kb: KnowledgeBase,
    settings: IntakeSettings,
    submitter: BatchSubmitter | None,
    source: str | None = None,
    on_chunk_complete: ChunkCallback | None = None,
) -> IngestOutcome:
    """Gate, parse, assess and (when a submitter is given) upload one export.

    The annotated parse feeds the risk assessment; a separate raw parse of the
    same content is what gets uploaded, so annotations are never stored.
    """
    source = source or settings.data_source
    content, parsed, risk = analyze_genetic_file(file_path=file_path, kb=kb, settings=settings, source=source)
    if submitter is None:
        return IngestOutcome(parsed=parsed, risk=risk, upload=None)

    raw = parse_raw_genetic_text(content, source)
    coordinator = UploadCoordinator.from_settings(submitter, settings, on_chunk_complete=on_chunk_complete)
    upload_start = time.monotonic()
    summary = await coordinator.upload(raw.variants, source)
    logging.info(
        "Uploaded %s/%s variants in %.2fs.",
        summary.variants_saved,
        summary.total_variants,
        max(time.monotonic() - upload_start, 0.001),
    )
    return IngestOutcome(parsed=parsed, risk=risk, upload=summary)

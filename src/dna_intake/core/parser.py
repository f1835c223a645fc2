from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from dna_intake.constants import DEFAULT_DATA_SOURCE
from dna_intake.core.exceptions import NoVariantsError, RecordValidationError
from dna_intake.core.knowledge_base import KnowledgeBase
from dna_intake.core.models import (
    AnnotatedVariant,
    GenotypeRecord,
    ParsedFileResult,
    ParseMetadata,
    RawParseMetadata,
    RawParseResult,
    RawVariant,
)
from dna_intake.core.validator import validate_record

MIN_FIELDS = 4


@dataclass
class ParseStats:
    data_lines: int = 0
    skipped_short: int = 0
    skipped_invalid: int = 0

    @property
    def accepted(self) -> int:
        return self.data_lines - self.skipped_short - self.skipped_invalid


def open_genetic_file(path: Path) -> io.TextIOBase:
    return path.open("r", encoding="utf-8", errors="replace")


def iter_genotype_records(lines: Iterable[str], stats: ParseStats | None = None) -> Iterator[GenotypeRecord]:
    """Yield a validated record for every usable data line.

    Comment lines, blank lines, rows with fewer than four tab-separated fields
    and rows that fail validation are skipped; the file as a whole is never
    rejected here.
    """
    stats = stats if stats is not None else ParseStats()
    for line_number, line in enumerate(lines, start=1):
        if line.startswith("#") or not line.strip():
            continue
        stats.data_lines += 1

        parts = [part.strip() for part in line.rstrip("\r\n").split("\t")]
        if len(parts) < MIN_FIELDS:
            stats.skipped_short += 1
            continue

        rsid, chromosome, position, genotype = parts[:MIN_FIELDS]
        try:
            record = validate_record(rsid, chromosome, position, genotype)
        except RecordValidationError as exc:
            stats.skipped_invalid += 1
            logging.debug("Skipping line %s: %s", line_number, exc)
            continue
        yield record


def _log_stats(stats: ParseStats, source: str) -> None:
    if stats.skipped_short or stats.skipped_invalid:
        logging.info(
            "Parsed %s export: %s accepted, %s short rows and %s invalid rows skipped.",
            source,
            stats.accepted,
            stats.skipped_short,
            stats.skipped_invalid,
        )


def parse_genetic_handle(
    lines: Iterable[str],
    kb: KnowledgeBase,
    source: str = DEFAULT_DATA_SOURCE,
) -> ParsedFileResult:
    stats = ParseStats()
    variants: list[AnnotatedVariant] = []
    chromosomes: set[str] = set()
    annotated = 0
    clinically_relevant = 0

    for record in iter_genotype_records(lines, stats):
        chromosomes.add(record.chromosome)
        annotation = kb.get(record.rsid)
        if annotation is not None:
            annotated += 1
            if annotation.is_pathogenic():
                clinically_relevant += 1
        variants.append(
            AnnotatedVariant.model_construct(
                rsid=record.rsid,
                chromosome=record.chromosome,
                position=record.position,
                genotype=record.genotype,
                annotation=annotation,
            )
        )

    _log_stats(stats, source)
    if not variants:
        raise NoVariantsError("No valid genetic variants were found in the file.")

    return ParsedFileResult(
        variants=variants,
        metadata=ParseMetadata(
            total_variants=len(variants),
            annotated_variants=annotated,
            clinically_relevant_variants=clinically_relevant,
            data_source=source,
            chromosomes=sorted(chromosomes),
        ),
    )


def parse_raw_genetic_handle(lines: Iterable[str], source: str = DEFAULT_DATA_SOURCE) -> RawParseResult:
    stats = ParseStats()
    variants = [
        RawVariant.model_construct(rsid=record.rsid, genotype=record.genotype)
        for record in iter_genotype_records(lines, stats)
    ]

    _log_stats(stats, source)
    if not variants:
        raise NoVariantsError("No valid genetic variants were found in the file.")

    return RawParseResult(
        variants=variants,
        metadata=RawParseMetadata(total_variants=len(variants), data_source=source),
    )


def parse_genetic_text(content: str, kb: KnowledgeBase, source: str = DEFAULT_DATA_SOURCE) -> ParsedFileResult:
    return parse_genetic_handle(content.splitlines(), kb, source)


def parse_raw_genetic_text(content: str, source: str = DEFAULT_DATA_SOURCE) -> RawParseResult:
    return parse_raw_genetic_handle(content.splitlines(), source)

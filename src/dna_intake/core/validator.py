from __future__ import annotations

import re

from dna_intake.constants import VALID_CHROMOSOMES
from dna_intake.core.exceptions import RecordValidationError
from dna_intake.core.models import GENOTYPE_PATTERN, RSID_PATTERN, GenotypeRecord

_RSID_RE = re.compile(RSID_PATTERN)
_POSITION_RE = re.compile(r"^[0-9]+$")
_GENOTYPE_RE = re.compile(GENOTYPE_PATTERN)


def validate_rsid(rsid: str) -> str:
    if not _RSID_RE.fullmatch(rsid):
        raise RecordValidationError("rsid", f"{rsid!r} must be 'rs' followed by digits")
    return rsid


def validate_chromosome(chromosome: str) -> str:
    if chromosome not in VALID_CHROMOSOMES:
        raise RecordValidationError("chromosome", f"{chromosome!r} is not one of 1-22, X, Y, MT")
    return chromosome


def validate_position(position: str) -> int:
    if not _POSITION_RE.fullmatch(position):
        raise RecordValidationError("position", f"{position!r} is not a base-10 integer")
    value = int(position, 10)
    if value < 1:
        raise RecordValidationError("position", f"{value} must be a positive coordinate")
    return value


def validate_genotype(genotype: str) -> str:
    if not _GENOTYPE_RE.fullmatch(genotype):
        raise RecordValidationError("genotype", "must be 1-2 characters from A, T, C, G or '-'")
    return genotype


def validate_record(rsid: str, chromosome: str, position: str, genotype: str) -> GenotypeRecord:
    """Check one raw row against the genotype grammar.

    Fields are checked in column order and the first violation is raised, so
    ``RecordValidationError.field`` always names a single column.
    """
    return GenotypeRecord.model_construct(
        rsid=validate_rsid(rsid),
        chromosome=validate_chromosome(chromosome),
        position=validate_position(position),
        genotype=validate_genotype(genotype),
    )

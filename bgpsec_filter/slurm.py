"""
SLURM (RFC 8416) document import and export for BGPsec filters

Only the ``validationOutputFilters.bgpsecFilters`` member is managed here.
Prefix filters and locally added assertions are written as empty lists on
export and ignored on import.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from bgpsec_filter.filters.service import FilterService
from bgpsec_filter.models import AddFilter, FilterRecord
from bgpsec_filter.utils.error_handling import InvalidFilter, SlurmFormatError

logger = logging.getLogger('bgpsec_filter.slurm')

SLURM_VERSION = 1


class SlurmBgpsecFilter(BaseModel):
    """One bgpsecFilters member"""
    model_config = ConfigDict(populate_by_name=True)

    asn: Optional[Union[int, str]] = None
    ski: Optional[str] = Field(default=None, alias="SKI")
    comment: Optional[str] = None


class SlurmValidationOutputFilters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prefix_filters: List[Dict[str, Any]] = Field(default_factory=list, alias="prefixFilters")
    bgpsec_filters: List[SlurmBgpsecFilter] = Field(default_factory=list, alias="bgpsecFilters")


class SlurmLocallyAddedAssertions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prefix_assertions: List[Dict[str, Any]] = Field(default_factory=list, alias="prefixAssertions")
    bgpsec_assertions: List[Dict[str, Any]] = Field(default_factory=list, alias="bgpsecAssertions")


class SlurmDocument(BaseModel):
    """Top-level SLURM file"""
    model_config = ConfigDict(populate_by_name=True)

    slurm_version: int = Field(alias="slurmVersion")
    validation_output_filters: SlurmValidationOutputFilters = Field(
        default_factory=SlurmValidationOutputFilters, alias="validationOutputFilters"
    )
    locally_added_assertions: SlurmLocallyAddedAssertions = Field(
        default_factory=SlurmLocallyAddedAssertions, alias="locallyAddedAssertions"
    )


def parse_slurm(data: Dict[str, Any]) -> List[FilterRecord]:
    """
    Extract BGPsec filter records from a SLURM document

    Raises:
        SlurmFormatError: document structure, version or a filter is invalid
    """
    try:
        document = SlurmDocument.model_validate(data)
    except PydanticValidationError as e:
        raise SlurmFormatError(
            "Malformed SLURM document",
            guidance="Check the file against RFC 8416 section 3"
        ) from e

    if document.slurm_version != SLURM_VERSION:
        raise SlurmFormatError(
            f"Unsupported slurmVersion {document.slurm_version}",
            "slurmVersion",
            f"Only slurmVersion {SLURM_VERSION} is supported"
        )

    ignored = (
        len(document.validation_output_filters.prefix_filters)
        + len(document.locally_added_assertions.prefix_assertions)
        + len(document.locally_added_assertions.bgpsec_assertions)
    )
    if ignored:
        logger.warning(f"Ignoring {ignored} SLURM entries that are not BGPsec filters")

    records = []
    for index, entry in enumerate(document.validation_output_filters.bgpsec_filters):
        try:
            records.append(FilterRecord.from_command(
                AddFilter(asn=entry.asn, ski=entry.ski, comment=entry.comment)
            ))
        except InvalidFilter as e:
            raise SlurmFormatError(
                f"Invalid bgpsecFilters entry {index}: {e.message}",
                "bgpsecFilters",
                e.guidance
            ) from e
    return records


def build_slurm(records) -> Dict[str, Any]:
    """Render filter records as a complete SLURM document"""
    return {
        "slurmVersion": SLURM_VERSION,
        "validationOutputFilters": {
            "prefixFilters": [],
            "bgpsecFilters": [record.to_slurm() for record in records],
        },
        "locallyAddedAssertions": {
            "prefixAssertions": [],
            "bgpsecAssertions": [],
        },
    }


def export_slurm(service: FilterService) -> Dict[str, Any]:
    """Export the current filter set"""
    return build_slurm(service.list())


def import_slurm(service: FilterService, data: Dict[str, Any]) -> List[int]:
    """Replace all BGPsec filters with those of a SLURM document"""
    records = parse_slurm(data)
    filter_ids = service.replace(records)
    logger.info(f"Imported {len(filter_ids)} BGPsec filters from SLURM document")
    return filter_ids


def load_slurm_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a SLURM JSON file"""
    try:
        with open(path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SlurmFormatError(
            f"SLURM file {path} is not valid JSON",
            guidance="Check the file syntax"
        ) from e


def write_slurm_file(document: Dict[str, Any], path: Union[str, Path]) -> Path:
    """Write a SLURM document as indented JSON"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(document, f, indent=2)
        f.write("\n")
    return path

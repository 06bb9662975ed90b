"""
DataLoader class responsible for turning raw organization and program records
(dicts, JSON files or pandas DataFrames) into validated, immutable records.

Shape validation happens here, at the boundary, through the pydantic schemas in
schemas.py; the scorers assume well-formed input and never raise for absent data.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Type, Union

import pandas as pd
from pydantic import ValidationError

from .data_models import FundingProgram, Organization
from .schemas import OrganizationRecord, ProgramRecord, RecordSchema

logger = logging.getLogger(__name__)

RecordSource = Union[str, Path, pd.DataFrame, Iterable[Dict[str, Any]]]


class RecordValidationError(ValueError):
    """Raised when a raw record cannot be turned into a valid model."""


class DataLoader:
    """Handles loading and validation of organization and program records."""

    def __init__(self, data_dir: Optional[str] = None):
        """Initialize with an optional base directory for relative JSON paths."""
        self.data_dir = Path(data_dir) if data_dir else None

    # ------------------------------------------------------------------
    # Record conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(schema: Type[RecordSchema], record: Any, kind: str) -> RecordSchema:
        try:
            return schema.model_validate(record)
        except ValidationError as e:
            record_id = record.get("id") if isinstance(record, dict) else None
            raise RecordValidationError(f"Invalid {kind} record {record_id!r}: {e}") from e

    def organization_from_dict(self, record: Dict[str, Any]) -> Organization:
        return self._validate(OrganizationRecord, record, "organization").to_model()

    def program_from_dict(self, record: Dict[str, Any]) -> FundingProgram:
        return self._validate(ProgramRecord, record, "program").to_model()

    # ------------------------------------------------------------------
    # Bulk loading
    # ------------------------------------------------------------------

    def _records(self, source: RecordSource) -> List[Dict[str, Any]]:
        if isinstance(source, pd.DataFrame):
            return source.to_dict(orient="records")
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.is_absolute() and self.data_dir is not None:
                path = self.data_dir / path
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            if isinstance(payload, dict):
                payload = [payload]
            return payload
        return list(source)

    def load_organizations(self, source: RecordSource) -> List[Organization]:
        """Load organizations from a JSON file, a DataFrame or an iterable of dicts."""
        organizations = [self.organization_from_dict(r) for r in self._records(source)]
        logger.info("Loaded %d organizations", len(organizations))
        return organizations

    def load_programs(self, source: RecordSource) -> List[FundingProgram]:
        """Load funding programs from a JSON file, a DataFrame or an iterable of dicts."""
        programs = [self.program_from_dict(r) for r in self._records(source)]
        logger.info("Loaded %d funding programs", len(programs))
        return programs

"""Audit pipeline orchestration."""
from .processor import AuditPipeline, build_pipeline, parse_mode

__all__ = ["AuditPipeline", "build_pipeline", "parse_mode"]

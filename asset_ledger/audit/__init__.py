"""Audit logging package."""

from asset_ledger.audit.logger import AuditLogger

__all__ = ["AuditLogger"]

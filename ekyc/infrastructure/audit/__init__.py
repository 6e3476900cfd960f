"""
Audit logging infrastructure for KYC decisions.

This module provides the audit trail for compliance review of onboarding
decisions.
"""

from ekyc.infrastructure.audit.audit_logger import AuditLogger, audit_logger

__all__ = ["AuditLogger", "audit_logger"]

"""Notas crédito y débito derivadas de facturas electrónicas."""

from stockflow_dian.notes.issuer import NoteIssuer, NoteIssueResult

__all__ = ["NoteIssueResult", "NoteIssuer"]

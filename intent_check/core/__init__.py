"""
Reconciliation engine: declared features in, compliance report out.
"""

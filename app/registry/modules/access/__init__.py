"""
Access Control Ledger: additive (document, grantee) grants created by the submitter.
"""

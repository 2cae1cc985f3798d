"""
Principal Directory.

- One owner, fixed when the registry is initialized (also holds admin)
- Admins and verifiers are plain role sets with no expiry
- Student profiles are created once by an admin; no update or delete
"""

"""
Document Store.

- Ids are sequential from 1 and never reused
- Content hash and metadata are immutable once submitted
- Verification is one-shot: Unverified -> Verified (terminal)
"""

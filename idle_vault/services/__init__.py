"""Services Layer — async orchestration around the pure economy core.

Invariants:
    - Services own locking and the commit boundary; core functions never do IO
"""

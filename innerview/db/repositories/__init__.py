"""
Per-domain repository modules for database access.

Each module exposes plain functions taking a `Session` first; callers import
them as `from innerview.db.repositories import students as student_repo`.
"""

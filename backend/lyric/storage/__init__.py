"""
Database schema management: the SQL migration runner.
"""

from .migrate import MigrationError, apply_migrations, ensure_table, split_statements

__all__ = ["MigrationError", "apply_migrations", "ensure_table", "split_statements"]

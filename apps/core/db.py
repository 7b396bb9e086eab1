"""
Database helpers shared across apps.

SQLite's built-in LOWER() and LIKE only fold ASCII letters. ``UnicodeLower``
compiles to LOWER() everywhere except SQLite, where it calls a
``UNICODE_LOWER`` function backed by Python's ``str.lower`` and
registered on every new connection.
"""
from django.db.models import Func, TextField

SQLITE_LOWER_FUNCTION = 'UNICODE_LOWER'


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def register_sqlite_functions(sender, connection, **kwargs):
    """``connection_created`` receiver adding UNICODE_LOWER to SQLite connections."""
    if connection.vendor != 'sqlite':
        return
    connection.connection.create_function(
        SQLITE_LOWER_FUNCTION, 1, _unicode_lower, deterministic=True,
    )


class UnicodeLower(Func):
    function = 'LOWER'
    output_field = TextField()

    def as_sqlite(self, compiler, connection, **extra_context):
        return super().as_sql(compiler, connection, function=SQLITE_LOWER_FUNCTION, **extra_context)

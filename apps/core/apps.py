from django.apps import AppConfig
from django.db.backends.signals import connection_created


class CoreConfig(AppConfig):
    name = 'apps.core'
    label = 'core'

    def ready(self):
        from .db import register_sqlite_functions
        connection_created.connect(register_sqlite_functions, dispatch_uid='core.register_sqlite_functions')

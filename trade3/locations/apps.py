from django.apps import AppConfig


class LocationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'trade3.locations'

    def ready(self):
        """Import cache invalidation signals when app is ready"""
        import trade3.locations.cache  # noqa: F401

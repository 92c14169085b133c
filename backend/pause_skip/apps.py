from django.apps import AppConfig


class PauseSkipConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'pause_skip'

    def ready(self):
        import pause_skip.handlers  # noqa - Register request decision handlers

from django.apps import AppConfig


class TripReportsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tripreports'
    verbose_name = 'Trip cost reports'

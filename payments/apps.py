from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"

    def ready(self):
        from . import checks  # noqa: F401  registers system checks
        from . import conf

        conf.connect_signals()

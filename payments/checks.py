from django.core.checks import Error, Tags, Warning, register

from .conf import PaymentConfig


@register(Tags.compatibility)
def payment_settings_check(app_configs, **kwargs):
    config = PaymentConfig.from_settings()
    problems = []
    if not config.alfa_base_url:
        problems.append(Error("ALFA_BASE_URL is not set", id="payments.E001"))
    if config.gateway_auth_problem:
        problems.append(Error(config.gateway_auth_problem, id="payments.E002"))
    missing = config.missing_settlement_settings
    if missing:
        problems.append(
            Warning(
                f"FastSale is not configured ({', '.join(missing)}); every settlement will fail",
                id="payments.W001",
            )
        )
    return problems

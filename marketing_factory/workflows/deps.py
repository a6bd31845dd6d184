from marketing_factory.config import settings
from marketing_factory.services.social_publisher import SocialPublisher
from marketing_factory.workflows.marketing import InlineMarketingEngine
from marketing_factory.workflows.types import MarketingEngine
from marketing_factory.workflows.webhook_engine import WebhookMarketingEngine


def get_marketing_engine() -> MarketingEngine:
    if settings.WORKFLOW_MODE == "webhook":
        return WebhookMarketingEngine()
    return InlineMarketingEngine()


def get_social_publisher() -> SocialPublisher:
    return SocialPublisher()

from marketing_factory.routers import health, images, influencers, videos, workflows

__all__ = [
    "health",
    "images",
    "influencers",
    "videos",
    "workflows",
]

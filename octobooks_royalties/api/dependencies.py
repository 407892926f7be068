"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from octobooks_royalties.config import settings
from octobooks_royalties.domain.models import RoyaltyConfig
from octobooks_royalties.infrastructure.clients.payout_gateway import PayoutGatewayClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_royalty_config() -> RoyaltyConfig:
    """Royalty rates from settings"""
    return RoyaltyConfig.from_rates(
        settings.platform_fee_rate,
        settings.default_author_royalty_rate,
        settings.default_publisher_royalty_rate,
    )


def get_payout_gateway() -> PayoutGatewayClient:
    """Provide payout gateway webhook client instance"""
    return PayoutGatewayClient()

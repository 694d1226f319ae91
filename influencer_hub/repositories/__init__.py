from .base import (
    ACCOUNT_MODELS,
    Account,
    AccountRepository,
    CampaignRepository,
    OTPRepository,
    Repositories,
)
from .memory import build_memory_repositories
from .sql import build_sql_repositories

__all__ = [
    "ACCOUNT_MODELS",
    "Account",
    "AccountRepository",
    "CampaignRepository",
    "OTPRepository",
    "Repositories",
    "build_memory_repositories",
    "build_sql_repositories",
]

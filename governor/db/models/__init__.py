from governor.db.models.catalog import PointsPackage, SubscriptionPlan
from governor.db.models.cdk import Cdk
from governor.db.models.cdk_redemptions import CdkRedemption
from governor.db.models.ip_concurrency import IpConcurrency
from governor.db.models.user_cdk_daily_limits import UserCdkDailyLimit
from governor.db.models.user_points import UserPoints
from governor.db.models.users import User

__all__ = [
    "Cdk",
    "CdkRedemption",
    "IpConcurrency",
    "PointsPackage",
    "SubscriptionPlan",
    "User",
    "UserCdkDailyLimit",
    "UserPoints",
]

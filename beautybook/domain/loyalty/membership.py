"""Membership tiers, points earning and the rewards catalog"""

import math
from typing import Optional

MEMBERSHIP_LEVELS = [
    {
        "tier": "bronze",
        "name": "Bronze",
        "minPoints": 0,
        "maxPoints": 999,
        "pointsMultiplier": 1,
        "discountPercentage": 0,
        "benefits": [
            "Earn 1 point per $1 spent",
            "Birthday bonus points",
            "Exclusive member-only promotions",
        ],
    },
    {
        "tier": "silver",
        "name": "Silver",
        "minPoints": 1000,
        "maxPoints": 4999,
        "pointsMultiplier": 1.25,
        "discountPercentage": 5,
        "benefits": [
            "Earn 1.25 points per $1 spent",
            "5% discount on all services",
            "Priority booking access",
        ],
    },
    {
        "tier": "gold",
        "name": "Gold",
        "minPoints": 5000,
        "maxPoints": 14999,
        "pointsMultiplier": 1.5,
        "discountPercentage": 10,
        "benefits": [
            "Earn 1.5 points per $1 spent",
            "10% discount on all services",
            "Priority booking access",
            "Exclusive Gold member events",
        ],
    },
    {
        "tier": "platinum",
        "name": "Platinum",
        "minPoints": 15000,
        "maxPoints": None,
        "pointsMultiplier": 2,
        "discountPercentage": 15,
        "benefits": [
            "Earn 2 points per $1 spent",
            "15% discount on all services",
            "Priority booking access",
            "Complimentary upgrades when available",
        ],
    },
]

TIER_ORDER = [level["tier"] for level in MEMBERSHIP_LEVELS]

REWARDS = [
    {"id": "reward-1", "name": "$10 Off", "description": "Get $10 off your next booking",
     "pointsCost": 500, "type": "discount", "value": 10, "valueType": "fixed", "minTier": None},
    {"id": "reward-2", "name": "$25 Off", "description": "Get $25 off your next booking",
     "pointsCost": 1000, "type": "discount", "value": 25, "valueType": "fixed", "minTier": None},
    {"id": "reward-3", "name": "15% Off", "description": "Get 15% off your next booking",
     "pointsCost": 750, "type": "discount", "value": 15, "valueType": "percentage", "minTier": None},
    {"id": "reward-4", "name": "Free Express Facial", "description": "A complimentary 30-min express facial",
     "pointsCost": 2000, "type": "free_service", "value": 60, "valueType": "fixed", "minTier": "silver"},
    {"id": "reward-5", "name": "Service Upgrade", "description": "Upgrade to the premium service tier for free",
     "pointsCost": 1500, "type": "upgrade", "value": 50, "valueType": "fixed", "minTier": "gold"},
    {"id": "reward-6", "name": "Luxury Gift Set", "description": "Premium skincare gift set",
     "pointsCost": 5000, "type": "gift", "value": 150, "valueType": "fixed", "minTier": "platinum"},
]


def _level(tier: str) -> Optional[dict]:
    return next((level for level in MEMBERSHIP_LEVELS if level["tier"] == tier), None)


def get_membership_level(points: int) -> dict:
    """Highest tier whose threshold the points reach"""
    for level in reversed(MEMBERSHIP_LEVELS):
        if points >= level["minPoints"]:
            return level
    return MEMBERSHIP_LEVELS[0]


def get_next_membership_level(tier: str) -> Optional[dict]:
    index = TIER_ORDER.index(tier)
    if index < len(MEMBERSHIP_LEVELS) - 1:
        return MEMBERSHIP_LEVELS[index + 1]
    return None


def calculate_points_for_booking(amount: float, tier: str) -> int:
    """Points earned for a paid booking, floored"""
    level = _level(tier)
    multiplier = level["pointsMultiplier"] if level else 1
    return math.floor(amount * multiplier)


def calculate_discount(amount: float, tier: str) -> float:
    level = _level(tier)
    if not level:
        return 0
    return amount * (level["discountPercentage"] / 100)


def can_redeem_reward(reward: dict, tier: str, points: int) -> bool:
    """Enough points and a high enough tier"""
    if points < reward["pointsCost"]:
        return False
    if reward.get("minTier") and TIER_ORDER.index(tier) < TIER_ORDER.index(reward["minTier"]):
        return False
    return True


def get_reward(reward_id: str) -> Optional[dict]:
    return next((reward for reward in REWARDS if reward["id"] == reward_id), None)


def membership_summary(current_points: int, lifetime_points: int) -> dict:
    """Tier, progress toward the next tier and points still needed"""
    level = get_membership_level(lifetime_points)
    next_level = get_next_membership_level(level["tier"])
    if next_level:
        span = next_level["minPoints"] - level["minPoints"]
        progress = round((lifetime_points - level["minPoints"]) / span * 100, 1)
        points_to_next = next_level["minPoints"] - lifetime_points
    else:
        progress = 100.0
        points_to_next = None

    return {
        "currentPoints": current_points,
        "lifetimePoints": lifetime_points,
        "tier": level["tier"],
        "level": level,
        "nextLevel": next_level,
        "tierProgress": progress,
        "pointsToNextTier": points_to_next,
    }
